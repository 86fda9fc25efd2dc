"""
Stripe client configuration and PaymentIntent helpers
"""
import stripe
from django.conf import settings
import logging

from core.common.exceptions import ServiceError
from core.finance.utils import to_minor_units

logger = logging.getLogger(__name__)


def get_stripe():
    """
    Return the configured stripe module.

    Raises:
        ServiceError: If STRIPE_SECRET_KEY is not configured
    """
    if not settings.STRIPE_SECRET_KEY:
        logger.error("STRIPE_SECRET_KEY not configured")
        raise ServiceError('Card payments are not configured', code='PAYMENTS_NOT_CONFIGURED', status_code=503)
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
    return stripe


def create_payment_intent(booking):
    """
    Create a PaymentIntent for a booking's amount, in pence, with the booking
    id in its metadata.
    """
    client = get_stripe()
    amount = to_minor_units(booking.amount)
    try:
        intent = client.PaymentIntent.create(
            amount=amount,
            currency=settings.BOOKON_CURRENCY,
            metadata={
                'booking_id': str(booking.id),
                'booking_number': booking.booking_number,
                'parent_id': str(booking.parent_id),
            },
            automatic_payment_methods={'enabled': True},
            idempotency_key=f"booking-{booking.id}-{amount}",
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe PaymentIntent creation failed for booking {booking.id}: {e}", exc_info=True)
        raise ServiceError('Payment provider error, please try again', code='PAYMENT_PROVIDER_ERROR',
                           status_code=502)

    logger.info(f"Created PaymentIntent {intent['id']} for booking {booking.id} ({amount} pence)")
    return intent


def construct_event(payload, signature):
    """Verify a Stripe webhook body against its stripe-signature header"""
    return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)


def cancel_payment_intent(intent_id):
    """
    Cancel an open PaymentIntent so it can no longer be paid.

    Failures are logged rather than raised: the intent may already have
    succeeded, in which case the payment_intent.succeeded webhook refunds it.
    """
    if not settings.STRIPE_SECRET_KEY:
        logger.warning(f"STRIPE_SECRET_KEY not configured; PaymentIntent {intent_id} left open")
        return None
    client = get_stripe()
    try:
        intent = client.PaymentIntent.cancel(intent_id, cancellation_reason='abandoned')
    except stripe.StripeError as e:
        logger.warning(f"Could not cancel PaymentIntent {intent_id}: {e}")
        return None
    logger.info(f"Cancelled PaymentIntent {intent_id}")
    return intent


def refund_payment_intent(intent_id, amount=None):
    """
    Refund a captured PaymentIntent, in full or for amount pence.

    Raises:
        ServiceError: PAYMENT_PROVIDER_ERROR when Stripe rejects the refund
    """
    client = get_stripe()
    params = {'payment_intent': intent_id}
    if amount is not None:
        params['amount'] = amount
    try:
        refund = client.Refund.create(idempotency_key=f"refund-{intent_id}", **params)
    except stripe.StripeError as e:
        logger.error(f"Stripe refund failed for PaymentIntent {intent_id}: {e}", exc_info=True)
        raise ServiceError('Payment provider error while refunding', code='PAYMENT_PROVIDER_ERROR',
                           status_code=502)

    logger.info(f"Refunded PaymentIntent {intent_id} ({refund['id']})")
    return refund
