from rest_framework import serializers
from .models import BusinessAccount, Venue, Activity


class BusinessAccountSerializer(serializers.ModelSerializer):
    venue_count = serializers.IntegerField(source='venues.count', read_only=True)

    class Meta:
        model = BusinessAccount
        fields = '__all__'
        read_only_fields = ('created_at', 'updated_at')

    def validate(self, attrs):
        fee_type = attrs.get('franchise_fee_type', getattr(self.instance, 'franchise_fee_type', 'percent'))
        fee_value = attrs.get('franchise_fee_value', getattr(self.instance, 'franchise_fee_value', 0))
        if fee_value is not None and fee_value < 0:
            raise serializers.ValidationError({'franchise_fee_value': 'Fee value cannot be negative'})
        if fee_type == 'percent' and fee_value is not None and fee_value > 100:
            raise serializers.ValidationError({'franchise_fee_value': 'Percentage fee cannot exceed 100'})
        admin_fee = attrs.get('admin_fee_amount')
        if admin_fee is not None and admin_fee < 0:
            raise serializers.ValidationError({'admin_fee_amount': 'Admin fee cannot be negative'})
        return attrs


class VenueSerializer(serializers.ModelSerializer):
    business_account_name = serializers.CharField(source='business_account.name', read_only=True)

    class Meta:
        model = Venue
        exclude = ('tfc_sort_code', 'tfc_account_number')
        read_only_fields = ('created_at', 'updated_at')

    def validate(self, attrs):
        inherit = attrs.get('inherit_franchise_fee', getattr(self.instance, 'inherit_franchise_fee', True))
        if not inherit:
            fee_type = attrs.get('franchise_fee_type', getattr(self.instance, 'franchise_fee_type', None))
            fee_value = attrs.get('franchise_fee_value', getattr(self.instance, 'franchise_fee_value', None))
            if not fee_type or fee_value is None:
                raise serializers.ValidationError(
                    'franchise_fee_type and franchise_fee_value are required when not inheriting the franchise fee'
                )
        return attrs


class TFCConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = Venue
        fields = (
            'tfc_enabled', 'tfc_hold_period_days', 'tfc_instructions', 'tfc_payee_name',
            'tfc_payee_reference', 'tfc_sort_code', 'tfc_account_number',
        )

    def validate_tfc_hold_period_days(self, value):
        if value is not None and not 1 <= value <= 60:
            raise serializers.ValidationError('Hold period must be between 1 and 60 days')
        return value


class ActivitySerializer(serializers.ModelSerializer):
    venue_name = serializers.CharField(source='venue.name', read_only=True)
    tfc_enabled = serializers.BooleanField(source='venue.tfc_enabled', read_only=True)

    class Meta:
        model = Activity
        fields = '__all__'
        read_only_fields = ('created_at', 'updated_at')

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'end_date cannot be before start_date'})
        price = attrs.get('price')
        if price is not None and price < 0:
            raise serializers.ValidationError({'price': 'Price cannot be negative'})
        return attrs
