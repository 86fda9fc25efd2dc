from celery import shared_task
import logging

from .utils import expire_credits as _expire_credits

logger = logging.getLogger(__name__)


@shared_task
def expire_credits():
    """
    Daily job: expire credits past their expiry date
    """
    count = _expire_credits()
    logger.info(f"expire_credits task finished: {count} credit(s) expired")
    return count
