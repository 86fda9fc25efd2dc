from decimal import Decimal
from rest_framework import serializers
from .models import TFCBooking
from .utils import DEFAULT_CANCEL_REASON


class TFCBookingSerializer(serializers.ModelSerializer):
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)
    parent = serializers.IntegerField(source='booking.parent_id', read_only=True)
    parent_email = serializers.CharField(source='booking.parent.email', read_only=True)
    child_name = serializers.CharField(source='booking.child.get_full_name', read_only=True)
    activity_title = serializers.CharField(source='booking.activity.title', read_only=True)
    venue = serializers.IntegerField(source='booking.activity.venue_id', read_only=True)
    venue_name = serializers.CharField(source='booking.activity.venue.name', read_only=True)
    booking_date = serializers.DateField(source='booking.booking_date', read_only=True)
    remaining_amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    days_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = TFCBooking
        fields = ('id', 'booking', 'booking_number', 'parent', 'parent_email', 'child_name',
                  'activity_title', 'venue', 'venue_name', 'booking_date', 'reference', 'amount',
                  'amount_received', 'remaining_amount', 'status', 'hold_period_days', 'deadline',
                  'days_remaining', 'admin_notes', 'reminder_sent_at', 'paid_at', 'cancelled_at',
                  'cancel_reason', 'credit', 'processed_by', 'created_at', 'updated_at')
        read_only_fields = fields


class MarkPaidSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class PartPaidSerializer(serializers.Serializer):
    amount_received = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TFCCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default=DEFAULT_CANCEL_REASON)


class ConvertToCreditSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class BulkTFCSerializer(serializers.Serializer):
    booking_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False, max_length=500)
    reason = serializers.CharField(required=False, allow_blank=True, default=DEFAULT_CANCEL_REASON)
