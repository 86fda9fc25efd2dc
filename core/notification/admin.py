from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'notification_type', 'priority', 'status', 'delivery_status', 'created_at')
    list_filter = ('notification_type', 'priority', 'status', 'delivery_status')
    search_fields = ('title', 'message', 'user__username', 'user__email')
    readonly_fields = ('created_at', 'updated_at', 'read_at', 'sent_at')
