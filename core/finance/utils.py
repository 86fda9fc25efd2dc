"""
Franchise fee and VAT split.

All arithmetic is on integer minor units (pence) with half-up rounding.
The split always balances:

    net_to_venue + franchise_fee_total + admin_fee == gross

Inclusive VAT sits inside the franchise fee, so the venue is charged the fee
as configured. Exclusive VAT is charged to the venue on top of the fee.
"""
from decimal import Decimal, ROUND_HALF_UP
import logging

from django.db import transaction

from .models import FeeLedgerEntry

logger = logging.getLogger(__name__)

DEFAULT_VAT_RATE = Decimal('0.20')
FEE_TYPES = ('percent', 'fixed')
VAT_MODES = ('inclusive', 'exclusive')


def round_half_up(value):
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def to_minor_units(amount):
    """Pounds (Decimal, str or int) to integer pence"""
    return round_half_up(Decimal(str(amount)) * 100)


def from_minor_units(pence):
    return (Decimal(pence) / Decimal(100)).quantize(Decimal('0.01'))


def calculate_fee_split(gross, fee_type, fee_value, vat_mode='inclusive', admin_fee=0, vat_rate=DEFAULT_VAT_RATE):
    """
    Split a gross amount into franchise fee, VAT, admin fee and venue net.

    Args:
        gross (int): gross amount in pence
        fee_type (str): 'percent' or 'fixed'
        fee_value: percentage for 'percent', pence for 'fixed'
        vat_mode (str): 'inclusive' or 'exclusive'
        admin_fee (int): admin fee in pence
        vat_rate: VAT as a fraction (0.20 for 20%)

    Returns:
        dict with gross, franchise_fee, vat_amount, net_franchise_fee,
        franchise_fee_total, admin_fee and net_to_venue (all pence)
    """
    if fee_type not in FEE_TYPES:
        raise ValueError(f"Unknown franchise fee type: {fee_type}")
    if vat_mode not in VAT_MODES:
        raise ValueError(f"Unknown VAT mode: {vat_mode}")

    gross = int(gross)
    admin_fee = int(admin_fee or 0)
    fee_value = Decimal(str(fee_value))
    vat_rate = Decimal(str(vat_rate))

    if gross < 0:
        raise ValueError("Gross amount cannot be negative")
    if fee_value < 0 or admin_fee < 0:
        raise ValueError("Fees cannot be negative")

    if fee_type == 'percent':
        franchise_fee = round_half_up(Decimal(gross) * fee_value / Decimal(100))
    else:
        franchise_fee = round_half_up(fee_value)

    if vat_mode == 'inclusive':
        vat_amount = round_half_up(Decimal(franchise_fee) * vat_rate / (Decimal(1) + vat_rate))
        net_franchise_fee = franchise_fee - vat_amount
        franchise_fee_total = franchise_fee
    else:
        vat_amount = round_half_up(Decimal(franchise_fee) * vat_rate)
        net_franchise_fee = franchise_fee
        franchise_fee_total = franchise_fee + vat_amount

    net_to_venue = gross - franchise_fee_total - admin_fee
    if net_to_venue < 0:
        logger.warning(
            f"Fees exceed gross amount: gross={gross} franchise_fee_total={franchise_fee_total} "
            f"admin_fee={admin_fee} net_to_venue={net_to_venue}"
        )

    return {
        'gross': gross,
        'franchise_fee': franchise_fee,
        'vat_amount': vat_amount,
        'net_franchise_fee': net_franchise_fee,
        'franchise_fee_total': franchise_fee_total,
        'admin_fee': admin_fee,
        'net_to_venue': net_to_venue,
    }


def get_vat_rate():
    from core.settings.models import PlatformSettings
    return Decimal(str(PlatformSettings.get_settings().vat_rate_percentage)) / Decimal(100)


def calculate_venue_fee_split(venue, gross):
    """
    Split a gross amount (pence) using the venue's effective fee config.

    Returns:
        tuple: (split dict, config dict with fee_value/admin_fee as stored)
    """
    from core.venues.utils import get_effective_fee_config

    config = get_effective_fee_config(venue)
    vat_rate = get_vat_rate()
    # Fixed fees and admin fees are configured in pounds
    fee_value = config['fee_value']
    if config['fee_type'] == 'fixed':
        fee_value = to_minor_units(fee_value)
    split = calculate_fee_split(
        gross,
        config['fee_type'],
        fee_value,
        vat_mode=config['vat_mode'],
        admin_fee=to_minor_units(config['admin_fee']),
        vat_rate=vat_rate,
    )
    config['vat_rate'] = vat_rate
    return split, config


def record_fee_ledger_entry(booking, source, payment_reference=''):
    """
    Write the fee split for a paid booking. Idempotent per booking.
    """
    with transaction.atomic():
        existing = FeeLedgerEntry.objects.filter(booking=booking, entry_type='payment').first()
        if existing:
            logger.info(f"Fee ledger entry already exists for booking {booking.id}; skipping")
            return existing

        venue = booking.activity.venue
        split, config = calculate_venue_fee_split(venue, to_minor_units(booking.amount))
        entry = FeeLedgerEntry.objects.create(
            booking=booking,
            venue=venue,
            business_account=venue.business_account,
            source=source,
            payment_reference=payment_reference or '',
            fee_type=config['fee_type'],
            fee_value=config['fee_value'],
            vat_mode=config['vat_mode'],
            vat_rate=config['vat_rate'],
            gross_amount=split['gross'],
            franchise_fee=split['franchise_fee'],
            vat_amount=split['vat_amount'],
            net_franchise_fee=split['net_franchise_fee'],
            franchise_fee_total=split['franchise_fee_total'],
            admin_fee=split['admin_fee'],
            net_to_venue=split['net_to_venue'],
        )
        logger.info(
            f"Recorded fee ledger entry {entry.id} for booking {booking.id} ({source}): "
            f"gross={entry.gross_amount} fee={entry.franchise_fee_total} net={entry.net_to_venue}"
        )
        return entry


SPLIT_FIELDS = (
    ('gross_amount', 'gross'),
    ('franchise_fee', 'franchise_fee'),
    ('vat_amount', 'vat_amount'),
    ('net_franchise_fee', 'net_franchise_fee'),
    ('franchise_fee_total', 'franchise_fee_total'),
    ('admin_fee', 'admin_fee'),
    ('net_to_venue', 'net_to_venue'),
)


def record_fee_reversal(booking, refund_amount, payment_reference=''):
    """
    Reverse the fee split for the refunded part of a paid booking.

    A full refund negates the payment entry exactly. A partial refund negates
    the split of the refunded amount under the payment entry's snapshot,
    leaving the booking admin fee with the venue. Idempotent per booking;
    returns None when the booking has no payment entry.
    """
    refund = to_minor_units(refund_amount)
    with transaction.atomic():
        payment = FeeLedgerEntry.objects.filter(booking=booking, entry_type='payment').first()
        if payment is None:
            logger.info(f"No payment ledger entry for booking {booking.id}; nothing to reverse")
            return None
        existing = FeeLedgerEntry.objects.filter(booking=booking, entry_type='reversal').first()
        if existing:
            logger.info(f"Fee ledger reversal already exists for booking {booking.id}; skipping")
            return existing

        refund = min(refund, payment.gross_amount)
        if refund == payment.gross_amount:
            amounts = {field: -getattr(payment, field) for field, _ in SPLIT_FIELDS}
        else:
            fee_value = payment.fee_value
            if payment.fee_type == 'fixed':
                fee_value = to_minor_units(fee_value)
            split = calculate_fee_split(
                refund,
                payment.fee_type,
                fee_value,
                vat_mode=payment.vat_mode,
                admin_fee=0,
                vat_rate=payment.vat_rate,
            )
            amounts = {field: -split[key] for field, key in SPLIT_FIELDS}

        entry = FeeLedgerEntry.objects.create(
            booking=booking,
            venue=payment.venue,
            business_account=payment.business_account,
            entry_type='reversal',
            source='refund',
            payment_reference=payment_reference or '',
            fee_type=payment.fee_type,
            fee_value=payment.fee_value,
            vat_mode=payment.vat_mode,
            vat_rate=payment.vat_rate,
            **amounts,
        )
        logger.info(
            f"Recorded fee ledger reversal {entry.id} for booking {booking.id}: "
            f"gross={entry.gross_amount} fee={entry.franchise_fee_total} net={entry.net_to_venue}"
        )
        return entry
