from decimal import Decimal
from datetime import timedelta
import logging

from django.db import transaction
from django.db.models import Sum, F, Q
from django.utils import timezone

from core.common.exceptions import ServiceError, InsufficientCreditsError
from .models import Credit, CreditTransaction

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def _to_decimal(value):
    return Decimal(str(value or 0)).quantize(Decimal('0.01'))


def usable_credits(parent, venue=None):
    """Active, unexpired credits; venue-specific credits only count at their venue"""
    now = timezone.now()
    queryset = Credit.objects.filter(parent=parent, status='active').filter(
        Q(expires_at__isnull=True) | Q(expires_at__gt=now)
    )
    if venue is not None:
        queryset = queryset.filter(Q(venue__isnull=True) | Q(venue=venue))
    return queryset


def get_available_balance(parent, venue=None):
    total = usable_credits(parent, venue).aggregate(
        total=Sum(F('amount') - F('used_amount'))
    )['total']
    return _to_decimal(total)


def issue_credit(parent, amount, source, description='', venue=None, source_booking=None,
                 issued_by=None, expires_in_days=None):
    """
    Issue a credit to a parent and record it in the credit ledger.
    """
    from core.settings.models import PlatformSettings
    from core.notification.utils import notify

    amount = _to_decimal(amount)
    if amount <= ZERO:
        raise ServiceError('Credit amount must be greater than zero', code='INVALID_AMOUNT')
    if source not in dict(Credit.SOURCE_CHOICES):
        raise ServiceError(f'Unknown credit source: {source}', code='INVALID_SOURCE')

    if expires_in_days is None:
        expires_in_days = PlatformSettings.get_settings().credit_expiry_days

    with transaction.atomic():
        balance_before = get_available_balance(parent)
        credit = Credit.objects.create(
            parent=parent,
            venue=venue,
            source_booking=source_booking,
            amount=amount,
            source=source,
            description=description,
            expires_at=timezone.now() + timedelta(days=expires_in_days) if expires_in_days else None,
            issued_by=issued_by if getattr(issued_by, 'is_authenticated', False) else None,
        )
        CreditTransaction.objects.create(
            parent=parent,
            credit=credit,
            booking=source_booking,
            transaction_type='ISSUE',
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_before + amount,
            description=description,
        )

    logger.info(f"Issued credit {credit.id} of £{amount} ({source}) to parent {parent.id}")
    notify(
        parent,
        'credit_issued',
        'Credit added to your account',
        f'£{amount} credit has been added to your account'
        + (f' and expires on {credit.expires_at:%d %b %Y}.' if credit.expires_at else '.'),
        reference_id=credit.id,
        reference_type='credit',
    )
    return credit


def use_credits(parent, amount, booking=None, venue=None):
    """
    Redeem credits against a booking, earliest-expiring first.

    Locks the parent's usable credits for the duration of the redemption so
    concurrent redemptions cannot spend the same credit twice.

    Returns:
        list of (credit, amount_used) tuples
    """
    amount = _to_decimal(amount)
    if amount <= ZERO:
        raise ServiceError('Redemption amount must be greater than zero', code='INVALID_AMOUNT')

    with transaction.atomic():
        credits = list(
            usable_credits(parent, venue)
            .select_for_update()
            .order_by(F('expires_at').asc(nulls_last=True), 'created_at', 'id')
        )
        available = sum((c.remaining_amount for c in credits), ZERO)
        if available < amount:
            raise InsufficientCreditsError(
                f'Insufficient credits: £{available} available, £{amount} required',
                details={'available': str(available), 'required': str(amount)},
            )

        balance = get_available_balance(parent)
        remaining = amount
        used = []
        for credit in credits:
            if remaining <= ZERO:
                break
            take = min(credit.remaining_amount, remaining)
            if take <= ZERO:
                continue
            credit.used_amount += take
            if credit.used_amount >= credit.amount:
                credit.status = 'used'
            credit.save(update_fields=['used_amount', 'status', 'updated_at'])
            CreditTransaction.objects.create(
                parent=parent,
                credit=credit,
                booking=booking,
                transaction_type='REDEEM',
                amount=-take,
                balance_before=balance,
                balance_after=balance - take,
                description=f'Redeemed against booking {booking.booking_number}' if booking else 'Redeemed',
            )
            balance -= take
            remaining -= take
            used.append((credit, take))

    logger.info(f"Parent {parent.id} redeemed £{amount} of credit across {len(used)} credit(s)")
    return used


def cancel_credit(credit, cancelled_by=None, reason=''):
    with transaction.atomic():
        credit = Credit.objects.select_for_update().get(pk=credit.pk)
        if credit.status != 'active':
            raise ServiceError(f'Cannot cancel a credit with status: {credit.status}', code='INVALID_CREDIT_STATUS')
        remaining = credit.remaining_amount
        balance_before = get_available_balance(credit.parent)
        credit.status = 'cancelled'
        credit.save(update_fields=['status', 'updated_at'])
        CreditTransaction.objects.create(
            parent=credit.parent,
            credit=credit,
            transaction_type='CANCEL',
            amount=-remaining,
            balance_before=balance_before,
            balance_after=balance_before - remaining,
            description=reason or f'Cancelled by {cancelled_by.username if cancelled_by else "system"}',
        )
    logger.info(f"Credit {credit.id} cancelled; £{remaining} removed from parent {credit.parent_id}")
    return credit


def expire_credits():
    """
    Mark active credits past their expiry date as expired.

    Returns:
        int: number of credits expired
    """
    now = timezone.now()
    expired = 0
    candidate_ids = list(
        Credit.objects.filter(status='active', expires_at__lte=now).values_list('id', flat=True)
    )
    for credit_id in candidate_ids:
        with transaction.atomic():
            credit = Credit.objects.select_for_update().get(pk=credit_id)
            if credit.status != 'active':
                continue
            remaining = credit.remaining_amount
            credit.status = 'expired'
            credit.save(update_fields=['status', 'updated_at'])
            balance_after = get_available_balance(credit.parent)
            CreditTransaction.objects.create(
                parent=credit.parent,
                credit=credit,
                transaction_type='EXPIRE',
                amount=-remaining,
                balance_before=balance_after + remaining,
                balance_after=balance_after,
                description=f'Expired on {now:%Y-%m-%d}',
            )
            expired += 1
    if expired:
        logger.info(f"Expired {expired} credit(s)")
    return expired


def get_expiring_credits(parent, days=30):
    cutoff = timezone.now() + timedelta(days=days)
    return usable_credits(parent).filter(expires_at__lte=cutoff).order_by('expires_at')


def get_credit_stats(queryset=None):
    queryset = queryset if queryset is not None else Credit.objects.all()
    totals = queryset.aggregate(issued=Sum('amount'), used=Sum('used_amount'))
    outstanding = queryset.filter(status='active').aggregate(
        total=Sum(F('amount') - F('used_amount'))
    )['total']
    by_source = {
        row['source']: _to_decimal(row['total'])
        for row in queryset.values('source').annotate(total=Sum('amount')).order_by()
    }
    return {
        'total_issued': _to_decimal(totals['issued']),
        'total_used': _to_decimal(totals['used']),
        'outstanding': _to_decimal(outstanding),
        'by_source': by_source,
    }
