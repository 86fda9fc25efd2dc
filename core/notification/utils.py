import logging

from django.core.cache import cache
from django.db import DatabaseError, transaction

from .models import Notification

logger = logging.getLogger(__name__)

UNREAD_CACHE_TTL = 300


def unread_cache_key(user_id):
    return f"notifications:unread:{user_id}"


def invalidate_unread_count(user_id):
    if user_id:
        cache.delete(unread_cache_key(user_id))


def get_unread_count(user):
    key = unread_cache_key(user.id)
    count = cache.get(key)
    if count is None:
        count = Notification.objects.filter(user=user, status='unread').count()
        cache.set(key, count, UNREAD_CACHE_TTL)
    return count


def notify(user, notification_type, title, message, priority='medium', channels=None,
           venue=None, data=None, reference_id=None, reference_type=''):
    """
    Create a notification and queue its delivery. Never raises: a failure to
    notify must not roll back the business action that triggered it.
    """
    channels = list(channels or ['in_app'])
    valid_channels = dict(Notification.CHANNEL_CHOICES)
    unknown = [c for c in channels if c not in valid_channels]
    if unknown:
        logger.warning(f"Dropping unknown notification channels {unknown} for '{title}'")
        channels = [c for c in channels if c in valid_channels] or ['in_app']

    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                user=user,
                venue=venue,
                notification_type=notification_type,
                title=title,
                message=message,
                priority=priority,
                channels=channels,
                data=data or {},
                reference_id=reference_id,
                reference_type=reference_type,
            )
    except DatabaseError as e:
        logger.error(f"Failed to create notification '{title}' for user {getattr(user, 'id', None)}: {e}", exc_info=True)
        return None

    invalidate_unread_count(getattr(user, 'id', None))

    from .tasks import dispatch_notification
    notification_id = notification.id
    transaction.on_commit(lambda: dispatch_notification.delay(notification_id))
    return notification
