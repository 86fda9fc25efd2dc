from django.db import models


class WebhookEvent(models.Model):
    """
    Inbound webhook, stored before processing so duplicates are detected
    and failures can be retried.
    """
    SOURCE_CHOICES = [
        ('stripe', 'Stripe'),
        ('external', 'External'),
    ]

    STATUS_CHOICES = [
        ('received', 'Received'),
        ('processed', 'Processed'),
        ('failed', 'Failed'),
    ]

    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    event_id = models.CharField(max_length=255, help_text="Provider event ID")
    event_type = models.CharField(max_length=100, db_index=True, help_text="Event type (e.g., payment_intent.succeeded)")
    payload = models.JSONField(help_text="Full webhook payload")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='received', db_index=True)
    error_message = models.TextField(blank=True)
    attempts = models.PositiveIntegerField(default=0)
    processed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'webhook_events'
        verbose_name = 'Webhook Event'
        verbose_name_plural = 'Webhook Events'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['source', 'event_id'], name='unique_webhook_source_event'),
        ]
        indexes = [
            models.Index(fields=['source', 'status']),
            models.Index(fields=['created_at']),
        ]

    def __str__(self):
        return f"Webhook {self.source}:{self.event_id} - {self.event_type} - {self.get_status_display()}"
