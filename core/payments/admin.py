from django.contrib import admin
from .models import WebhookEvent


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ('source', 'event_id', 'event_type', 'status', 'attempts', 'processed_at', 'created_at')
    list_filter = ('source', 'status', 'event_type')
    search_fields = ('event_id', 'event_type')
    readonly_fields = ('source', 'event_id', 'event_type', 'payload', 'attempts', 'processed_at',
                       'created_at', 'updated_at')
