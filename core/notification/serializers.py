from rest_framework import serializers
from core.users.models import User
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = ('id', 'user', 'username', 'venue', 'notification_type', 'title', 'message',
                  'priority', 'channels', 'data', 'status', 'read_at', 'delivery_status',
                  'sent_at', 'error_message', 'reference_id', 'reference_type', 'created_at')
        read_only_fields = fields


class SendNotificationSerializer(serializers.Serializer):
    """Manual admin send to one user or to every parent"""
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    all_parents = serializers.BooleanField(required=False, default=False)
    venue = serializers.IntegerField(required=False, allow_null=True)
    notification_type = serializers.ChoiceField(choices=Notification.TYPE_CHOICES, default='manual')
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    priority = serializers.ChoiceField(choices=Notification.PRIORITY_CHOICES, default='medium')
    channels = serializers.ListField(
        child=serializers.ChoiceField(choices=Notification.CHANNEL_CHOICES),
        required=False,
        allow_empty=False,
        default=list,
    )

    def validate(self, attrs):
        if not attrs.get('user') and not attrs.get('all_parents'):
            raise serializers.ValidationError('Provide a user or set all_parents')
        if not attrs.get('channels'):
            attrs['channels'] = ['in_app']
        return attrs
