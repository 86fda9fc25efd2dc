"""
Venue-level configuration lookups used by the fee calculator and TFC flow
"""
from core.settings.models import PlatformSettings


DEFAULT_TFC_INSTRUCTIONS = (
    "Please make your Tax-Free Childcare payment using the reference number provided.\n"
    "\n"
    "Payment Instructions:\n"
    "1. Log into your Tax-Free Childcare account\n"
    "2. Use the reference number shown above\n"
    "3. Make payment for the exact amount\n"
    "4. Payment must be received within the deadline to secure your place\n"
    "\n"
    "If you have any questions, please contact us immediately."
)


def get_effective_fee_config(venue):
    """
    Resolve the franchise fee configuration that applies to a venue.

    The fee type and value come from the venue when it overrides its business
    account; VAT mode and admin fee always come from the business account.

    Returns:
        dict: fee_type, fee_value (Decimal), vat_mode, admin_fee (Decimal pounds)
    """
    account = venue.business_account
    if not venue.inherit_franchise_fee and venue.franchise_fee_type and venue.franchise_fee_value is not None:
        fee_type = venue.franchise_fee_type
        fee_value = venue.franchise_fee_value
    else:
        fee_type = account.franchise_fee_type
        fee_value = account.franchise_fee_value

    return {
        'fee_type': fee_type,
        'fee_value': fee_value,
        'vat_mode': account.vat_mode,
        'admin_fee': account.admin_fee_amount,
    }


def get_tfc_hold_period(venue):
    if venue.tfc_hold_period_days:
        return venue.tfc_hold_period_days
    return PlatformSettings.get_settings().default_tfc_hold_period_days


def get_tfc_config(venue):
    """TFC settings for a venue with defaults filled in"""
    return {
        'venue': venue.id,
        'tfc_enabled': venue.tfc_enabled,
        'hold_period_days': get_tfc_hold_period(venue),
        'instructions': venue.tfc_instructions or DEFAULT_TFC_INSTRUCTIONS,
        'payee_details': {
            'name': venue.tfc_payee_name or 'BookOn Platform',
            'reference': venue.tfc_payee_reference or 'BOOKON-TFC',
            'sort_code': venue.tfc_sort_code or '20-00-00',
            'account_number': venue.tfc_account_number or '12345678',
        },
    }
