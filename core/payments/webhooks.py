"""
Webhook event processing.

Events are recorded in WebhookEvent keyed by (source, event_id). An event
that has already been processed is acknowledged without running again;
received or failed events are (re)processed.
"""
import logging

from django.db import transaction
from django.utils import timezone

from core.audit.utils import log_event
from core.booking.models import Booking
from core.booking.utils import confirm_paid_booking, cancel_booking, mark_payment_failed
from core.common.exceptions import ServiceError, NotFoundError
from core.notification.utils import notify
from .models import WebhookEvent

logger = logging.getLogger(__name__)

ACKNOWLEDGED_EXTERNAL_EVENTS = (
    'user.created',
    'user.updated',
    'booking.created',
    'booking.updated',
    'activity.scheduled',
)


def _booking_for_intent(intent):
    booking = Booking.objects.filter(payment_intent_id=intent.get('id')).first()
    if booking is None:
        booking_id = (intent.get('metadata') or {}).get('booking_id')
        if booking_id:
            booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise NotFoundError(f"No booking for payment intent {intent.get('id')}")
    return booking


def _booking_from_data(data):
    booking_id = (data or {}).get('booking_id')
    if not booking_id:
        raise ServiceError('booking_id is required', code='MISSING_PARAMETERS')
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise NotFoundError(f'Booking {booking_id} not found')
    return booking


def refund_cancelled_booking_payment(booking, intent):
    """
    Refund a payment that arrived after its booking was cancelled. The refund
    goes back to the card; the booking stays cancelled.
    """
    from core.booking.utils import get_booking
    from .utils.stripe_client import refund_payment_intent

    intent_id = intent.get('id', '')
    booking = get_booking(booking.pk, lock=True)
    # Only bookings cancelled before payment; paid-then-cancelled ones were settled at cancellation
    if booking.payment_status != 'cancelled':
        logger.info(f"Payment {intent_id} for cancelled booking {booking.id} already settled "
                    f"({booking.payment_status}); skipping")
        return f'booking {booking.id} already settled'

    refund = refund_payment_intent(intent_id)
    booking.payment_status = 'refunded'
    booking.append_note(f"Payment {intent_id} received after cancellation; refunded ({refund['id']})")
    booking.save(update_fields=['payment_status', 'notes', 'updated_at'])

    log_event(None, 'late_payment_refunded', 'booking', booking.id,
              details={'payment_intent': intent_id, 'refund': refund['id'],
                       'amount': intent.get('amount_received', intent.get('amount'))})
    notify(
        booking.parent,
        'payment_success',
        'Payment refunded',
        f"Your payment for cancelled booking {booking.booking_number} has been refunded to your card.",
        channels=['in_app', 'email'],
        reference_id=booking.id,
        reference_type='booking',
    )
    logger.warning(f"Refunded late payment {intent_id} for cancelled booking {booking.id}")
    return f'booking {booking.id} cancelled; payment refunded'


def handle_stripe_event(event):
    event_type = event.event_type
    intent = ((event.payload.get('data') or {}).get('object')) or {}

    if event_type == 'payment_intent.succeeded':
        booking = _booking_for_intent(intent)
        if booking.status == 'cancelled':
            return refund_cancelled_booking_payment(booking, intent)

        from core.finance.utils import to_minor_units
        expected = to_minor_units(booking.amount)
        received = intent.get('amount_received', intent.get('amount'))
        if received is not None and received != expected:
            logger.warning(
                f"PaymentIntent {intent.get('id')} amount {received} differs from booking "
                f"{booking.id} amount {expected}"
            )
        confirm_paid_booking(booking, 'stripe', reference=intent.get('id', ''))
        return f'booking {booking.id} confirmed'

    if event_type == 'payment_intent.payment_failed':
        booking = _booking_for_intent(intent)
        error = intent.get('last_payment_error') or {}
        mark_payment_failed(booking, reason=error.get('message', ''))
        return f'booking {booking.id} payment failed'

    logger.info(f"Unhandled Stripe event type {event_type} ({event.event_id})")
    return 'ignored'


def handle_external_event(event):
    event_type = event.event_type
    data = event.payload.get('data') or {}

    if event_type == 'payment.completed':
        booking = _booking_from_data(data)
        reference = data.get('payment_reference') or event.event_id
        confirm_paid_booking(booking, 'webhook', reference=reference)
        return f'booking {booking.id} confirmed'

    if event_type == 'booking.cancelled':
        booking = _booking_from_data(data)
        cancel_booking(booking, reason=data.get('reason') or 'Cancelled by external system')
        return f'booking {booking.id} cancelled'

    if event_type in ACKNOWLEDGED_EXTERNAL_EVENTS:
        logger.info(f"Acknowledged external event {event_type} ({event.event_id})")
        return 'acknowledged'

    logger.info(f"Unhandled external event {event_type} from {event.payload.get('source', 'unknown')}")
    return 'ignored'


HANDLERS = {
    'stripe': handle_stripe_event,
    'external': handle_external_event,
}


def process_event(event):
    """
    Run the handler for a stored event and record the outcome on it.
    Handler changes are rolled back on failure; the event row is kept.
    """
    event.attempts += 1
    try:
        with transaction.atomic():
            result = HANDLERS[event.source](event)
    except Exception as e:
        logger.error(f"Webhook {event.source}:{event.event_id} ({event.event_type}) failed: {e}", exc_info=True)
        event.status = 'failed'
        event.error_message = str(e)
    else:
        logger.info(f"Webhook {event.source}:{event.event_id} ({event.event_type}) processed: {result}")
        event.status = 'processed'
        event.error_message = ''
        event.processed_at = timezone.now()
    event.save(update_fields=['event_type', 'payload', 'status', 'error_message', 'attempts',
                             'processed_at', 'updated_at'])

    log_event(None, 'webhook_processed' if event.status == 'processed' else 'webhook_failed',
              'webhook_event', event.id,
              details={'source': event.source, 'event_type': event.event_type,
                       'error': event.error_message or None})
    return event


def receive_event(source, event_id, event_type, payload):
    """
    Store an inbound event and process it unless it was already processed.

    Returns:
        tuple: (WebhookEvent, duplicate) where duplicate is True when the
        event had already been processed and nothing was run
    """
    with transaction.atomic():
        event, created = WebhookEvent.objects.select_for_update().get_or_create(
            source=source,
            event_id=event_id,
            defaults={'event_type': event_type, 'payload': payload},
        )
        if not created and event.status == 'processed':
            logger.info(f"Webhook {source}:{event_id} already processed at {event.processed_at}; skipping")
            return event, True

        if not created:
            event.payload = payload
            event.event_type = event_type
        return process_event(event), False


def retry_event(event):
    if event.status == 'processed':
        raise ServiceError('Webhook event has already been processed', code='ALREADY_PROCESSED')
    with transaction.atomic():
        event = WebhookEvent.objects.select_for_update().get(pk=event.pk)
        return process_event(event)
