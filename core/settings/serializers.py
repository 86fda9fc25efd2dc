from rest_framework import serializers
from .models import PlatformSettings


class PlatformSettingsSerializer(serializers.ModelSerializer):
    updated_by_username = serializers.CharField(source='updated_by.username', read_only=True)

    class Meta:
        model = PlatformSettings
        fields = [
            'id',
            'default_tfc_hold_period_days',
            'tfc_reminder_hours',
            'auto_cancel_expired_tfc',
            'vat_rate_percentage',
            'credit_expiry_days',
            'updated_at',
            'updated_by',
            'updated_by_username',
        ]
        read_only_fields = ['id', 'updated_at', 'updated_by']

    def validate_default_tfc_hold_period_days(self, value):
        if value < 1:
            raise serializers.ValidationError("default_tfc_hold_period_days must be at least 1 day")
        return value

    def validate_vat_rate_percentage(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("vat_rate_percentage must be between 0 and 100")
        return value
