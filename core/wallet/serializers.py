from decimal import Decimal
from rest_framework import serializers
from core.users.models import User
from .models import Credit, CreditTransaction


class CreditSerializer(serializers.ModelSerializer):
    remaining_amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    parent_username = serializers.CharField(source='parent.username', read_only=True)

    class Meta:
        model = Credit
        fields = ('id', 'parent', 'parent_username', 'venue', 'source_booking', 'amount', 'used_amount',
                  'remaining_amount', 'source', 'status', 'description', 'expires_at',
                  'issued_by', 'created_at', 'updated_at')
        read_only_fields = fields


class IssueCreditSerializer(serializers.Serializer):
    parent = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    source = serializers.ChoiceField(choices=[('manual', 'Manual'), ('goodwill', 'Goodwill'), ('refund', 'Refund')],
                                     default='manual')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    venue = serializers.IntegerField(required=False, allow_null=True)
    expires_in_days = serializers.IntegerField(required=False, min_value=1, max_value=3650)


class CreditTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditTransaction
        fields = ('id', 'credit', 'booking', 'transaction_type', 'amount', 'balance_before',
                  'balance_after', 'description', 'created_at')
        read_only_fields = fields
