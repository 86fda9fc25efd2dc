from celery import shared_task
import logging

from .utils import send_deadline_reminders, process_expired_tfc_bookings

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_tfc_deadline_reminders(self):
    """
    Periodic task: remind parents whose TFC payment deadline is close.
    """
    try:
        return send_deadline_reminders()
    except Exception as exc:
        logger.error(f"Error sending TFC deadline reminders: {exc}", exc_info=True)
        raise self.retry(exc=exc)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def expire_overdue_tfc_bookings(self):
    """
    Periodic task: cancel TFC bookings still unpaid after their deadline.
    """
    try:
        return process_expired_tfc_bookings()
    except Exception as exc:
        logger.error(f"Error expiring overdue TFC bookings: {exc}", exc_info=True)
        raise self.retry(exc=exc)
