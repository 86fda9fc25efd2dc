"""
Booking lifecycle: checkout, payment confirmation and cancellation
"""
from datetime import datetime, time
from decimal import Decimal
import logging

from django.db import transaction
from django.utils import timezone

from core.audit.utils import log_event
from core.common.exceptions import ServiceError, NotFoundError
from core.notification.utils import notify
from .models import Booking

logger = logging.getLogger(__name__)


def get_booking(booking_id, lock=False):
    queryset = Booking.objects.select_related('activity__venue__business_account', 'parent', 'child')
    if lock:
        queryset = queryset.select_for_update(of=('self',))
    try:
        return queryset.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f'Booking {booking_id} not found')


def create_booking(parent, child, activity, booking_date, payment_method='card', created_by=None, request=None):
    """
    Parent checkout.

    card:   booking stays pending until the Stripe payment succeeds
    tfc:    a TFC booking with reference and deadline is opened
    credit: credits are redeemed and the booking is confirmed immediately
    """
    from core.venues.models import Activity

    if child.parent_id != parent.id:
        raise ServiceError('Child does not belong to this parent', code='INVALID_CHILD')
    if not child.is_active:
        raise ServiceError('Child profile is inactive', code='INVALID_CHILD')
    if activity.status != 'active':
        raise ServiceError('Activity is not open for booking', code='ACTIVITY_UNAVAILABLE')
    if not activity.runs_on(booking_date):
        raise ServiceError('Activity does not run on the selected date', code='INVALID_DATE')
    if payment_method not in dict(Booking.PAYMENT_METHOD_CHOICES):
        raise ServiceError(f'Unknown payment method: {payment_method}', code='INVALID_PAYMENT_METHOD')

    with transaction.atomic():
        # Serialise checkouts for the same activity so capacity is not oversold
        activity = Activity.objects.select_for_update().get(pk=activity.pk)

        active = Booking.objects.filter(activity=activity, booking_date=booking_date).exclude(status='cancelled')
        if active.filter(child=child).exists():
            raise ServiceError('Child is already booked on this activity for this date', code='DUPLICATE_BOOKING',
                               status_code=409)
        if active.count() >= activity.capacity:
            raise ServiceError('Activity is fully booked for this date', code='ACTIVITY_FULL', status_code=409)

        booking = Booking.objects.create(
            parent=parent,
            child=child,
            activity=activity,
            booking_date=booking_date,
            amount=activity.price,
            payment_method=payment_method,
        )

        if payment_method == 'tfc':
            from core.tfc.utils import create_tfc_booking
            create_tfc_booking(booking)
        elif payment_method == 'credit':
            from core.wallet.utils import use_credits
            use_credits(parent, booking.amount, booking=booking, venue=activity.venue)
            booking.credits_applied = booking.amount
            booking.save(update_fields=['credits_applied', 'updated_at'])
            booking = confirm_paid_booking(booking, 'credit', user=created_by)
        elif booking.amount == Decimal('0'):
            booking = confirm_paid_booking(booking, 'manual', reference='free', user=created_by)

        log_event(created_by or parent, 'booking_created', 'booking', booking.id,
                  details={'payment_method': payment_method, 'amount': str(booking.amount)},
                  request=request)

    logger.info(
        f"Created booking {booking.booking_number} for child {child.id} on activity {activity.id} "
        f"({booking_date}, {payment_method})"
    )
    return booking


def confirm_paid_booking(booking, source, reference='', user=None):
    """
    Record payment and confirm a booking, writing its fee ledger entry in the
    same transaction. Calling it again for a paid, confirmed booking is a no-op.
    """
    from core.finance.utils import record_fee_ledger_entry

    with transaction.atomic():
        booking = get_booking(booking.pk, lock=True)
        if booking.status == 'confirmed' and booking.payment_status == 'paid':
            logger.info(f"Booking {booking.id} already confirmed and paid; skipping")
            return booking

        if booking.status != 'confirmed':
            booking.transition_to('confirmed', user=user)
        booking.payment_status = 'paid'
        booking.save(update_fields=['status', 'payment_status', 'confirmed_at', 'updated_at'])

        record_fee_ledger_entry(booking, source, payment_reference=reference)
        log_event(user, 'booking_confirmed', 'booking', booking.id,
                  details={'source': source, 'reference': reference})

        notify(
            booking.parent,
            'booking_confirmation',
            'Booking confirmed',
            f"{booking.child.get_full_name()} is booked on {booking.activity.title} "
            f"on {booking.booking_date:%d %b %Y}.",
            channels=['in_app', 'email'],
            venue=booking.activity.venue,
            reference_id=booking.id,
            reference_type='booking',
        )
    return booking


def session_start(booking):
    """Aware datetime at which the booked session starts (midnight when the activity has no start time)"""
    start_time = booking.activity.start_time or time.min
    return timezone.make_aware(datetime.combine(booking.booking_date, start_time))


def calculate_refund(booking, provider_cancellation=False, at=None):
    """
    Apply the cancellation refund policy to a booking.

    - Provider cancellation: full refund, no admin fee
    - Parent, 24 hours or more before the session: refund minus the admin fee
    - Parent, under 24 hours: pro-rata credit for the unused session minus
      the admin fee
    - Parent, session already started: nothing refundable

    Refunds are issued as account credit. Amounts are Decimal pounds.
    """
    at = at or timezone.now()
    hours_to_start = (session_start(booking) - at).total_seconds() / 3600
    total_paid = booking.amount if booking.payment_status == 'paid' else Decimal('0.00')
    admin_fee = booking.activity.venue.business_account.admin_fee_amount or Decimal('0.00')

    if total_paid <= 0:
        policy, reason = 'not_paid', 'Booking has not been paid - nothing to refund'
        refundable, admin_fee = Decimal('0.00'), Decimal('0.00')
    elif provider_cancellation:
        policy, reason = 'provider_cancellation', 'Provider cancellation - full refund (no admin fee)'
        refundable, admin_fee = total_paid, Decimal('0.00')
    elif hours_to_start < 0:
        policy, reason = 'session_started', 'Session has already started - no refund available'
        refundable, admin_fee = Decimal('0.00'), Decimal('0.00')
    elif hours_to_start >= 24:
        policy, reason = 'parent_24h_plus', 'Parent cancellation 24h or more before - refund minus admin fee'
        refundable = total_paid
    else:
        # Bookings cover a single session, so an unstarted session is wholly unused
        policy, reason = 'parent_under_24h', 'Parent cancellation under 24h - pro-rata credit minus admin fee'
        refundable = total_paid

    net_refund = max(Decimal('0.00'), refundable - admin_fee)
    return {
        'booking': booking.id,
        'policy': policy,
        'reason': reason,
        'hours_to_start': round(hours_to_start, 1),
        'total_paid': total_paid,
        'refundable_amount': refundable,
        'admin_fee': admin_fee,
        'net_refund': net_refund,
        'refund_method': 'credit' if net_refund > 0 else 'none',
    }


def cancel_booking(booking, reason='', user=None, refund_to_credit=False, request=None,
                   provider_cancellation=None):
    """
    Soft-cancel a booking. A paid booking may be refunded as credit under the
    cancellation refund policy, and its fee ledger entry is reversed for the
    refunded amount. provider_cancellation defaults to True unless the
    booking's own parent is cancelling.
    """
    from core.finance.utils import record_fee_reversal
    from core.wallet.utils import issue_credit

    with transaction.atomic():
        booking = get_booking(booking.pk, lock=True)

        tfc = getattr(booking, 'tfc', None)
        if tfc is not None and tfc.status == 'part_paid':
            raise ServiceError(
                'Booking has a part-paid TFC payment; resolve the TFC payment first',
                code='TFC_PAYMENT_IN_PROGRESS',
            )

        if provider_cancellation is None:
            provider_cancellation = user is None or user.pk != booking.parent_id
        refund = calculate_refund(booking, provider_cancellation=provider_cancellation)

        was_paid = booking.payment_status == 'paid'
        open_intent = booking.payment_intent_id if not was_paid else None
        booking.transition_to('cancelled', reason=reason, user=user)

        credit = None
        if was_paid and refund_to_credit and refund['net_refund'] > 0:
            credit = issue_credit(
                booking.parent,
                refund['net_refund'],
                'refund',
                description=f'Refund for cancelled booking {booking.booking_number}',
                source_booking=booking,
                issued_by=user,
            )
            record_fee_reversal(booking, refund['net_refund'], payment_reference=f'credit-{credit.id}')
            booking.payment_status = 'refunded'
        elif not was_paid:
            booking.payment_status = 'cancelled'
        booking.save(update_fields=['status', 'payment_status', 'cancelled_at', 'cancel_reason',
                                    'cancelled_by', 'updated_at'])

        if tfc is not None and tfc.status == 'pending_payment':
            from core.tfc.utils import close_tfc_for_cancelled_booking
            close_tfc_for_cancelled_booking(tfc, reason or 'Booking cancelled', user=user)

        if open_intent:
            from core.payments.utils.stripe_client import cancel_payment_intent
            transaction.on_commit(lambda: cancel_payment_intent(open_intent))

        log_event(user, 'booking_cancelled', 'booking', booking.id,
                  details={'reason': reason, 'refund_to_credit': bool(credit),
                           'credit_id': credit.id if credit else None,
                           'refund_policy': refund['policy'],
                           'admin_fee': str(refund['admin_fee']) if credit else None},
                  request=request)

        notify(
            booking.parent,
            'booking_cancelled',
            'Booking cancelled',
            f"The booking for {booking.child.get_full_name()} on {booking.activity.title} "
            f"({booking.booking_date:%d %b %Y}) has been cancelled."
            + (f" £{credit.amount} has been added to your account as credit." if credit else ''),
            channels=['in_app', 'email'],
            venue=booking.activity.venue,
            reference_id=booking.id,
            reference_type='booking',
        )
    return booking


def mark_payment_failed(booking, reason=''):
    with transaction.atomic():
        booking = get_booking(booking.pk, lock=True)
        if booking.payment_status == 'paid' or booking.status == 'cancelled':
            logger.warning(
                f"Ignoring payment failure for booking {booking.id} "
                f"({booking.status}, payment {booking.payment_status})"
            )
            return booking
        booking.payment_status = 'failed'
        booking.save(update_fields=['payment_status', 'updated_at'])
        notify(
            booking.parent,
            'payment_failed',
            'Payment failed',
            f"Payment for booking {booking.booking_number} failed"
            + (f": {reason}" if reason else '.') + " Please try again.",
            priority='high',
            channels=['in_app', 'email'],
            reference_id=booking.id,
            reference_type='booking',
        )
    return booking
