"""
Shared-secret verification for the generic webhook endpoint
"""
import hmac
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


def verify_webhook_secret(header_secret):
    """
    Compare the x-webhook-secret header with WEBHOOK_SECRET in constant time.

    Returns:
        bool: True if the secret matches, False otherwise (including when
        WEBHOOK_SECRET is not configured)
    """
    expected = settings.WEBHOOK_SECRET
    if not expected:
        logger.error("WEBHOOK_SECRET not configured")
        return False
    if not header_secret:
        return False

    is_valid = hmac.compare_digest(expected.encode('utf-8'), header_secret.encode('utf-8'))
    if not is_valid:
        logger.warning("Invalid webhook secret")
    return is_valid
