from rest_framework import serializers
from .models import WebhookEvent


class CreatePaymentIntentSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()


class WebhookEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = WebhookEvent
        fields = ('id', 'source', 'event_id', 'event_type', 'payload', 'status', 'error_message',
                  'attempts', 'processed_at', 'created_at', 'updated_at')
        read_only_fields = fields
