from rest_framework import serializers
from core.users.models import Child
from core.venues.models import Activity
from .models import Booking


class BookingSerializer(serializers.ModelSerializer):
    parent_username = serializers.CharField(source='parent.username', read_only=True)
    child_name = serializers.CharField(source='child.get_full_name', read_only=True)
    activity_title = serializers.CharField(source='activity.title', read_only=True)
    venue = serializers.IntegerField(source='activity.venue_id', read_only=True)
    venue_name = serializers.CharField(source='activity.venue.name', read_only=True)
    tfc_reference = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = ('id', 'booking_number', 'parent', 'parent_username', 'child', 'child_name',
                  'activity', 'activity_title', 'venue', 'venue_name', 'booking_date', 'amount',
                  'status', 'payment_status', 'payment_method', 'credits_applied', 'tfc_reference',
                  'notes', 'cancel_reason', 'cancelled_by', 'created_at', 'updated_at',
                  'confirmed_at', 'cancelled_at')
        read_only_fields = fields

    def get_tfc_reference(self, obj):
        tfc = getattr(obj, 'tfc', None)
        return tfc.reference if tfc else None


class CreateBookingSerializer(serializers.Serializer):
    child = serializers.PrimaryKeyRelatedField(queryset=Child.objects.all())
    activity = serializers.PrimaryKeyRelatedField(queryset=Activity.objects.select_related('venue'))
    booking_date = serializers.DateField()
    payment_method = serializers.ChoiceField(choices=Booking.PAYMENT_METHOD_CHOICES, default='card')

    def validate_child(self, value):
        request = self.context.get('request')
        if request and value.parent_id != request.user.id:
            raise serializers.ValidationError("Child not found")
        return value


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    refund_to_credit = serializers.BooleanField(required=False, default=False)
    provider_cancellation = serializers.BooleanField(required=False, default=True)


class BulkCancelSerializer(serializers.Serializer):
    booking_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False, max_length=500)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    refund_to_credit = serializers.BooleanField(required=False, default=False)
