from celery import shared_task
from django.utils import timezone
import logging

from .models import Notification

logger = logging.getLogger(__name__)


def _deliver_email(notification):
    recipient = notification.user.email if notification.user else None
    if not recipient:
        raise ValueError('Recipient has no email address')
    logger.info(f"Email notification {notification.id} queued for {recipient}: {notification.title}")


def _deliver_sms(notification):
    recipient = notification.user.mobile if notification.user else None
    if not recipient:
        raise ValueError('Recipient has no mobile number')
    logger.info(f"SMS notification {notification.id} queued for {recipient}: {notification.title}")


def _deliver_push(notification):
    logger.info(f"Push notification {notification.id}: {notification.title}")


CHANNEL_HANDLERS = {
    'email': _deliver_email,
    'sms': _deliver_sms,
    'push': _deliver_push,
}


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def dispatch_notification(self, notification_id):
    """
    Deliver a notification over its external channels.
    In-app notifications need no delivery; the record itself is the message.
    """
    try:
        notification = Notification.objects.select_related('user').get(id=notification_id)
    except Notification.DoesNotExist:
        logger.error(f"Notification {notification_id} not found in dispatch_notification task")
        return

    if notification.delivery_status == 'sent':
        return

    errors = []
    for channel in notification.channels:
        handler = CHANNEL_HANDLERS.get(channel)
        if handler is None:
            continue
        try:
            handler(notification)
        except ValueError as e:
            # Missing contact details will not fix themselves on retry
            errors.append(f"{channel}: {e}")
        except Exception as e:
            logger.warning(f"Delivery of notification {notification_id} over {channel} failed: {e}")
            raise self.retry(exc=e)

    if errors:
        notification.delivery_status = 'failed'
        notification.error_message = '; '.join(errors)
        logger.warning(f"Notification {notification_id} delivery failed: {notification.error_message}")
    else:
        notification.delivery_status = 'sent'
        notification.sent_at = timezone.now()
        notification.error_message = ''
    notification.save(update_fields=['delivery_status', 'sent_at', 'error_message', 'updated_at'])
