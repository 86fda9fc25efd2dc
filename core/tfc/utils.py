"""
Tax-Free Childcare reconciliation.

A TFC booking moves pending_payment -> part_paid -> paid, or
pending_payment -> cancelled (optionally converting the amount to credit).
Every state change locks the TFC row and updates the underlying booking in
the same transaction.
"""
from datetime import timedelta
from decimal import Decimal
import logging
import random

from django.db import transaction
from django.db.models import Count, Sum, Avg, F, Q
from django.utils import timezone

from core.audit.utils import log_event
from core.common.bulk import run_bulk
from core.common.exceptions import ServiceError, NotFoundError
from core.notification.utils import notify
from core.settings.models import PlatformSettings
from core.venues.utils import get_tfc_config, get_tfc_hold_period
from .models import TFCBooking

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = 'Payment not received by deadline'
DEADLINE_CANCEL_REASON = 'Payment deadline exceeded'
OUTSTANDING_STATUSES = ('pending_payment', 'part_paid')


def generate_tfc_reference(now=None):
    """TFC-YYYYMMDD-XXXXXX with six random digits, unique across TFC bookings"""
    now = now or timezone.now()
    while True:
        reference = f"TFC-{now:%Y%m%d}-{random.randint(0, 999999):06d}"
        if not TFCBooking.objects.filter(reference=reference).exists():
            return reference


def get_tfc_booking(tfc_id, lock=False):
    queryset = TFCBooking.objects.select_related('booking__activity__venue', 'booking__parent', 'booking__child')
    if lock:
        queryset = queryset.select_for_update(of=('self',))
    try:
        return queryset.get(pk=tfc_id)
    except (TFCBooking.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f'TFC booking {tfc_id} not found')


def get_tfc_instructions(tfc):
    config = get_tfc_config(tfc.booking.activity.venue)
    return {
        'reference': tfc.reference,
        'amount': tfc.amount,
        'amount_received': tfc.amount_received,
        'remaining_amount': tfc.remaining_amount,
        'deadline': tfc.deadline,
        'status': tfc.status,
        'payee_details': config['payee_details'],
        'instructions': config['instructions'],
    }


def create_tfc_booking(booking):
    """
    Open a TFC payment for a pending booking at a TFC-enabled venue.
    """
    venue = booking.activity.venue
    if not venue.tfc_enabled:
        raise ServiceError(f'Tax-Free Childcare is not enabled for {venue.name}', code='TFC_NOT_ENABLED')

    hold_days = get_tfc_hold_period(venue)
    now = timezone.now()
    tfc = TFCBooking.objects.create(
        booking=booking,
        reference=generate_tfc_reference(now),
        amount=booking.amount,
        hold_period_days=hold_days,
        deadline=now + timedelta(days=hold_days),
    )
    logger.info(f"Created TFC booking {tfc.reference} for booking {booking.id}, deadline {tfc.deadline}")

    notify(
        booking.parent,
        'tfc_update',
        'Tax-Free Childcare payment required',
        f"Please pay £{tfc.amount} from your Tax-Free Childcare account using reference "
        f"{tfc.reference} by {tfc.deadline:%d %b %Y %H:%M}.",
        priority='high',
        channels=['in_app', 'email'],
        venue=venue,
        data={'reference': tfc.reference, 'deadline': tfc.deadline.isoformat()},
        reference_id=booking.id,
        reference_type='booking',
    )
    return tfc


def mark_paid(tfc, user=None, notes=''):
    """Full payment received: confirm the booking and write its ledger entry"""
    from core.booking.utils import confirm_paid_booking

    with transaction.atomic():
        tfc = get_tfc_booking(tfc.pk, lock=True)
        tfc.transition_to('paid', user=user)
        tfc.amount_received = tfc.amount
        if notes:
            tfc.append_note(notes, user)
        tfc.save()

        confirm_paid_booking(tfc.booking, 'tfc', reference=tfc.reference, user=user)
        log_event(user, 'tfc_marked_paid', 'tfc_booking', tfc.id,
                  details={'reference': tfc.reference, 'amount': str(tfc.amount)})
    return tfc


def mark_part_paid(tfc, amount_received, user=None, notes=''):
    """Record a partial payment; 0 < amount_received < amount"""
    amount_received = Decimal(str(amount_received)).quantize(Decimal('0.01'))

    with transaction.atomic():
        tfc = get_tfc_booking(tfc.pk, lock=True)
        if tfc.status != 'pending_payment':
            raise ServiceError(
                f'Part payment can only be recorded for pending TFC bookings (current: {tfc.status})',
                code='INVALID_STATUS_TRANSITION',
            )
        if amount_received <= 0 or amount_received >= tfc.amount:
            raise ServiceError(
                f'Part payment must be greater than 0 and less than £{tfc.amount}',
                code='INVALID_AMOUNT',
                details={'amount': str(tfc.amount), 'amount_received': str(amount_received)},
            )

        tfc.transition_to('part_paid', user=user)
        tfc.amount_received = amount_received
        tfc.append_note(notes or f'Part payment of £{amount_received} received', user)
        tfc.save()

        log_event(user, 'tfc_part_paid', 'tfc_booking', tfc.id,
                  details={'amount_received': str(amount_received),
                           'remaining': str(tfc.remaining_amount)})
        notify(
            tfc.booking.parent,
            'tfc_update',
            'Part payment received',
            f"We have received £{amount_received} for reference {tfc.reference}. "
            f"£{tfc.remaining_amount} is still outstanding.",
            channels=['in_app', 'email'],
            venue=tfc.booking.activity.venue,
            reference_id=tfc.booking_id,
            reference_type='booking',
        )
    return tfc


def cancel_tfc_booking(tfc, reason=DEFAULT_CANCEL_REASON, user=None):
    """Cancel an unpaid TFC booking and the booking it holds"""
    from core.booking.utils import cancel_booking

    reason = reason or DEFAULT_CANCEL_REASON
    with transaction.atomic():
        tfc = get_tfc_booking(tfc.pk, lock=True)
        tfc.transition_to('cancelled', reason=reason, user=user)
        tfc.save()

        cancel_booking(tfc.booking, reason=reason, user=user)
        log_event(user, 'tfc_cancelled', 'tfc_booking', tfc.id,
                  details={'reference': tfc.reference, 'reason': reason})
    return tfc


def close_tfc_for_cancelled_booking(tfc, reason, user=None):
    """Booking was cancelled directly; mark its pending TFC payment cancelled"""
    tfc.transition_to('cancelled', reason=reason, user=user)
    tfc.save()
    return tfc


def convert_to_credit(tfc, reason='', user=None):
    """
    Cancel an unpaid TFC booking and give the parent its full amount as credit.
    """
    from core.wallet.utils import issue_credit

    with transaction.atomic():
        tfc = get_tfc_booking(tfc.pk, lock=True)
        booking = tfc.booking
        reason = reason or 'Converted to credit'
        tfc.transition_to('cancelled', reason=reason, user=user)

        credit = issue_credit(
            booking.parent,
            tfc.amount,
            'tfc_conversion',
            description=f'TFC booking {tfc.reference} converted to credit',
            source_booking=booking,
            issued_by=user,
        )
        tfc.credit = credit
        tfc.append_note(f'Converted to credit ({credit.id}): {reason}', user)
        tfc.save()

        booking.transition_to('cancelled', reason=reason, user=user)
        booking.payment_status = 'refunded'
        booking.save(update_fields=['status', 'payment_status', 'cancelled_at', 'cancel_reason',
                                    'cancelled_by', 'updated_at'])

        log_event(user, 'tfc_converted_to_credit', 'tfc_booking', tfc.id,
                  details={'reference': tfc.reference, 'credit_id': credit.id,
                           'amount': str(credit.amount), 'reason': reason})
    logger.info(f"TFC booking {tfc.reference} converted to credit {credit.id}")
    return tfc


def bulk_mark_paid(tfc_ids, user=None):
    return run_bulk(
        tfc_ids,
        lambda tfc_id: mark_paid(get_tfc_booking(tfc_id), user=user),
        label='TFC mark paid',
    )


def bulk_cancel(tfc_ids, reason=DEFAULT_CANCEL_REASON, user=None):
    return run_bulk(
        tfc_ids,
        lambda tfc_id: cancel_tfc_booking(get_tfc_booking(tfc_id), reason=reason, user=user),
        label='TFC cancel',
    )


def get_pending_queue(venue_id=None):
    queryset = TFCBooking.objects.select_related(
        'booking__activity__venue', 'booking__parent', 'booking__child'
    ).filter(status__in=OUTSTANDING_STATUSES).order_by('deadline')
    if venue_id:
        queryset = queryset.filter(booking__activity__venue_id=venue_id)
    return queryset


def get_pending_stats(queryset):
    now = timezone.now()
    end_of_today = timezone.localtime(now).replace(hour=23, minute=59, second=59, microsecond=999999)
    totals = queryset.aggregate(
        total_pending=Count('id'),
        total_outstanding=Sum(F('amount') - F('amount_received')),
        expiring_today=Count('id', filter=Q(deadline__gte=now, deadline__lte=end_of_today)),
        overdue=Count('id', filter=Q(deadline__lt=now)),
    )
    totals['total_outstanding'] = (totals['total_outstanding'] or Decimal('0')).quantize(Decimal('0.01'))
    return totals


def get_tfc_analytics(date_from=None, date_to=None, venue_id=None):
    queryset = TFCBooking.objects.all()
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)
    if venue_id:
        queryset = queryset.filter(booking__activity__venue_id=venue_id)

    by_status = {key: {'count': 0, 'amount': Decimal('0.00')} for key, _ in TFCBooking.STATUS_CHOICES}
    for row in queryset.values('status').annotate(count=Count('id'), amount=Sum('amount')):
        by_status[row['status']] = {'count': row['count'], 'amount': row['amount'] or Decimal('0.00')}

    by_venue = [
        {
            'venue': row['booking__activity__venue_id'],
            'venue_name': row['booking__activity__venue__name'],
            'count': row['count'],
            'paid_revenue': row['paid_revenue'] or Decimal('0.00'),
        }
        for row in queryset.values('booking__activity__venue_id', 'booking__activity__venue__name')
        .annotate(count=Count('id'), paid_revenue=Sum('amount', filter=Q(status='paid')))
        .order_by('booking__activity__venue__name')
    ]

    total = queryset.count()
    paid = by_status['paid']['count']
    average = queryset.aggregate(avg=Avg('amount'))['avg']
    return {
        'total': total,
        'by_status': by_status,
        'by_venue': by_venue,
        'average_booking_value': Decimal(str(average or 0)).quantize(Decimal('0.01')),
        'conversion_rate': round(paid / total * 100, 1) if total else 0.0,
    }


def send_deadline_reminders():
    """Remind parents whose TFC deadline falls within the reminder window"""
    hours = PlatformSettings.get_settings().tfc_reminder_hours
    now = timezone.now()
    due = TFCBooking.objects.select_related('booking__parent', 'booking__activity__venue').filter(
        status__in=OUTSTANDING_STATUSES,
        reminder_sent_at__isnull=True,
        deadline__gt=now,
        deadline__lte=now + timedelta(hours=hours),
    )

    sent = 0
    for tfc in due:
        with transaction.atomic():
            updated = TFCBooking.objects.filter(pk=tfc.pk, reminder_sent_at__isnull=True).update(
                reminder_sent_at=now
            )
            if not updated:
                continue
            notify(
                tfc.booking.parent,
                'tfc_reminder',
                'Tax-Free Childcare payment due soon',
                f"£{tfc.remaining_amount} for reference {tfc.reference} must reach us by "
                f"{tfc.deadline:%d %b %Y %H:%M} or the place will be released.",
                priority='high',
                channels=['in_app', 'email'],
                venue=tfc.booking.activity.venue,
                reference_id=tfc.booking_id,
                reference_type='booking',
            )
        sent += 1

    logger.info(f"Sent {sent} TFC deadline reminders")
    return sent


def process_expired_tfc_bookings():
    """Cancel pending TFC bookings whose deadline has passed"""
    if not PlatformSettings.get_settings().auto_cancel_expired_tfc:
        logger.info("Auto-cancel of expired TFC bookings is disabled")
        return 0

    expired_ids = list(
        TFCBooking.objects.filter(status='pending_payment', deadline__lt=timezone.now())
        .values_list('id', flat=True)
    )
    if not expired_ids:
        return 0

    result = bulk_cancel(expired_ids, reason=DEADLINE_CANCEL_REASON)
    logger.info(f"Auto-cancelled {result['succeeded']} expired TFC bookings ({result['failed']} failed)")
    return result['succeeded']


def run_deadline_job():
    return {
        'reminders_sent': send_deadline_reminders(),
        'cancelled': process_expired_tfc_bookings(),
    }
