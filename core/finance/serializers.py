from rest_framework import serializers
from .models import FeeLedgerEntry
from .utils import FEE_TYPES, VAT_MODES


class FeePreviewSerializer(serializers.Serializer):
    """
    Either a venue (its effective config is used) or an explicit config.
    Amounts are in pence; a fixed franchise_fee_value is in pence too.
    """
    gross_amount = serializers.IntegerField(min_value=0)
    venue = serializers.IntegerField(required=False)
    franchise_fee_type = serializers.ChoiceField(choices=FEE_TYPES, required=False)
    franchise_fee_value = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    vat_mode = serializers.ChoiceField(choices=VAT_MODES, required=False, default='inclusive')
    admin_fee_amount = serializers.IntegerField(min_value=0, required=False, default=0)

    def validate(self, attrs):
        if attrs.get('venue') is None:
            if not attrs.get('franchise_fee_type') or attrs.get('franchise_fee_value') is None:
                raise serializers.ValidationError(
                    'Provide either venue or franchise_fee_type and franchise_fee_value'
                )
            if attrs['franchise_fee_type'] == 'percent' and attrs['franchise_fee_value'] > 100:
                raise serializers.ValidationError({'franchise_fee_value': 'Percentage fee cannot exceed 100'})
        return attrs


class FeeLedgerEntrySerializer(serializers.ModelSerializer):
    venue_name = serializers.CharField(source='venue.name', read_only=True)
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)

    class Meta:
        model = FeeLedgerEntry
        fields = '__all__'
