from rest_framework import serializers
from .models import Register, Attendance


class AttendanceSerializer(serializers.ModelSerializer):
    child_name = serializers.CharField(source='child.get_full_name', read_only=True)
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True, default=None)

    class Meta:
        model = Attendance
        fields = ('id', 'register', 'booking', 'booking_number', 'child', 'child_name', 'present',
                  'check_in_time', 'check_out_time', 'notes', 'recorded_by', 'updated_at')
        read_only_fields = fields


class RegisterSerializer(serializers.ModelSerializer):
    activity_title = serializers.CharField(source='activity.title', read_only=True)
    venue_name = serializers.CharField(source='activity.venue.name', read_only=True)
    attendance = AttendanceSerializer(many=True, read_only=True)

    class Meta:
        model = Register
        fields = ('id', 'activity', 'activity_title', 'venue_name', 'date', 'notes', 'status',
                  'created_by', 'attendance', 'created_at', 'updated_at')
        read_only_fields = ('created_by', 'created_at', 'updated_at')
        # Duplicate (activity, date) is reported by create_register as a 409
        validators = []

    def validate(self, attrs):
        if self.instance is not None:
            for field in ('activity', 'date'):
                if field in attrs and attrs[field] != getattr(self.instance, field):
                    raise serializers.ValidationError({field: "Cannot be changed once the register exists"})
        return attrs


class AttendanceRecordSerializer(serializers.Serializer):
    child = serializers.IntegerField()
    present = serializers.BooleanField()
    check_in_time = serializers.DateTimeField(required=False, allow_null=True)
    check_out_time = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        check_in = attrs.get('check_in_time')
        check_out = attrs.get('check_out_time')
        if check_in and check_out and check_out < check_in:
            raise serializers.ValidationError("check_out_time cannot be before check_in_time")
        return attrs


class AutoCreateSerializer(serializers.Serializer):
    activity = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError("end_date cannot be before start_date")
        return attrs
