"""
Unit tests for the franchise fee / VAT split and the fee ledger
"""
from decimal import Decimal
from datetime import date

from django.test import TestCase
from rest_framework.test import APIClient

from core.booking.utils import create_booking, confirm_paid_booking, cancel_booking
from core.common.testing import make_user, make_admin, make_child, make_venue, make_activity
from core.finance.models import FeeLedgerEntry
from core.finance.utils import (
    calculate_fee_split,
    calculate_venue_fee_split,
    record_fee_reversal,
    to_minor_units,
    from_minor_units,
)


class FeeSplitCalculationTest(TestCase):
    """Pure calculator on pence"""

    def test_percent_fee_vat_inclusive(self):
        split = calculate_fee_split(10000, 'percent', Decimal('10'), vat_mode='inclusive')
        self.assertEqual(split['franchise_fee'], 1000)
        self.assertEqual(split['vat_amount'], 167)
        self.assertEqual(split['net_franchise_fee'], 833)
        self.assertEqual(split['franchise_fee_total'], 1000)
        self.assertEqual(split['net_to_venue'], 9000)

    def test_percent_fee_vat_exclusive(self):
        split = calculate_fee_split(10000, 'percent', Decimal('10'), vat_mode='exclusive')
        self.assertEqual(split['franchise_fee'], 1000)
        self.assertEqual(split['vat_amount'], 200)
        self.assertEqual(split['net_franchise_fee'], 1000)
        self.assertEqual(split['franchise_fee_total'], 1200)
        self.assertEqual(split['net_to_venue'], 8800)

    def test_fixed_fee_with_admin_fee(self):
        split = calculate_fee_split(2500, 'fixed', 250, vat_mode='inclusive', admin_fee=50)
        self.assertEqual(split['franchise_fee'], 250)
        self.assertEqual(split['vat_amount'], 42)
        self.assertEqual(split['admin_fee'], 50)
        self.assertEqual(split['net_to_venue'], 2200)

    def test_rounds_half_up(self):
        split = calculate_fee_split(1005, 'percent', Decimal('10'))
        self.assertEqual(split['franchise_fee'], 101)

    def test_split_always_balances(self):
        cases = [
            (1999, 'percent', Decimal('7.5'), 'exclusive', 35),
            (333, 'percent', Decimal('33.33'), 'inclusive', 0),
            (12345, 'fixed', 999, 'exclusive', 100),
        ]
        for gross, fee_type, value, mode, admin_fee in cases:
            split = calculate_fee_split(gross, fee_type, value, vat_mode=mode, admin_fee=admin_fee)
            self.assertEqual(
                split['net_to_venue'] + split['franchise_fee_total'] + split['admin_fee'],
                gross,
            )

    def test_zero_gross(self):
        split = calculate_fee_split(0, 'percent', Decimal('10'))
        self.assertEqual(split['franchise_fee'], 0)
        self.assertEqual(split['net_to_venue'], 0)

    def test_invalid_config_raises(self):
        with self.assertRaises(ValueError):
            calculate_fee_split(1000, 'tiered', 10)
        with self.assertRaises(ValueError):
            calculate_fee_split(1000, 'percent', 10, vat_mode='none')
        with self.assertRaises(ValueError):
            calculate_fee_split(-1, 'percent', 10)

    def test_minor_unit_conversion(self):
        self.assertEqual(to_minor_units(Decimal('12.345')), 1235)
        self.assertEqual(to_minor_units('0.10'), 10)
        self.assertEqual(from_minor_units(1235), Decimal('12.35'))


class VenueFeeConfigTest(TestCase):

    def test_venue_override_uses_account_vat_mode(self):
        venue = make_venue(fee_type='percent', fee_value=Decimal('10'), vat_mode='exclusive')
        venue.inherit_franchise_fee = False
        venue.franchise_fee_type = 'fixed'
        venue.franchise_fee_value = Decimal('2.00')
        venue.save()

        split, config = calculate_venue_fee_split(venue, 5000)
        self.assertEqual(config['fee_type'], 'fixed')
        self.assertEqual(config['vat_mode'], 'exclusive')
        self.assertEqual(split['franchise_fee'], 200)
        self.assertEqual(split['franchise_fee_total'], 240)


class FeeLedgerTest(TestCase):

    def setUp(self):
        self.parent = make_user('parent1')
        self.child = make_child(self.parent)
        self.venue = make_venue(fee_type='percent', fee_value=Decimal('10'), admin_fee=Decimal('0.50'))
        self.activity = make_activity(self.venue, price=Decimal('20.00'))

    def _paid_booking(self):
        booking = create_booking(self.parent, self.child, self.activity, date.today(), payment_method='card')
        return confirm_paid_booking(booking, 'stripe', reference='pi_123')

    def test_confirming_payment_writes_ledger_entry(self):
        booking = self._paid_booking()
        entry = FeeLedgerEntry.objects.get(booking=booking)
        self.assertEqual(entry.gross_amount, 2000)
        self.assertEqual(entry.franchise_fee, 200)
        self.assertEqual(entry.admin_fee, 50)
        self.assertEqual(entry.net_to_venue, 1750)
        self.assertEqual(entry.source, 'stripe')
        self.assertEqual(entry.payment_reference, 'pi_123')

    def test_ledger_entry_is_written_once(self):
        booking = self._paid_booking()
        confirm_paid_booking(booking, 'stripe', reference='pi_123')
        self.assertEqual(FeeLedgerEntry.objects.filter(booking=booking).count(), 1)

    def test_ledger_keeps_config_in_effect_at_payment(self):
        booking = self._paid_booking()
        account = self.venue.business_account
        account.franchise_fee_value = Decimal('50')
        account.save()

        entry = FeeLedgerEntry.objects.get(booking=booking)
        self.assertEqual(entry.fee_value, Decimal('10.00'))
        self.assertEqual(entry.franchise_fee, 200)

    def test_refund_to_credit_reverses_ledger_entry(self):
        booking = self._paid_booking()
        cancel_booking(booking, reason='Venue closed', refund_to_credit=True)

        reversal = FeeLedgerEntry.objects.get(booking=booking, entry_type='reversal')
        self.assertEqual(reversal.source, 'refund')
        self.assertTrue(reversal.payment_reference.startswith('credit-'))
        self.assertEqual(reversal.gross_amount, -2000)
        self.assertEqual(reversal.franchise_fee_total, -200)
        self.assertEqual(reversal.admin_fee, -50)
        self.assertEqual(reversal.net_to_venue, -1750)

    def test_reversal_is_written_once(self):
        booking = self._paid_booking()
        first = record_fee_reversal(booking, Decimal('20.00'))
        second = record_fee_reversal(booking, Decimal('20.00'))
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(FeeLedgerEntry.objects.filter(booking=booking).count(), 2)

    def test_partial_reversal_keeps_admin_fee_with_venue(self):
        booking = self._paid_booking()
        reversal = record_fee_reversal(booking, Decimal('10.00'))
        self.assertEqual(reversal.gross_amount, -1000)
        self.assertEqual(reversal.franchise_fee, -100)
        self.assertEqual(reversal.admin_fee, 0)
        self.assertEqual(reversal.net_to_venue, -900)

    def test_unpaid_booking_has_nothing_to_reverse(self):
        booking = create_booking(self.parent, self.child, self.activity, date.today())
        self.assertIsNone(record_fee_reversal(booking, Decimal('20.00')))


class FinanceAPITest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_admin()
        self.parent = make_user('parent1')

    def test_fee_preview_explicit_config(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/v1/finance/fee-preview/', {
            'gross_amount': 10000,
            'franchise_fee_type': 'percent',
            'franchise_fee_value': '10',
            'vat_mode': 'exclusive',
        }, format='json')
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['split']['net_to_venue'], 8800)

    def test_fee_preview_requires_config(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/v1/finance/fee-preview/', {'gross_amount': 100}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'VALIDATION_ERROR')

    def test_fee_preview_forbidden_for_parents(self):
        self.client.force_authenticate(self.parent)
        response = self.client.post('/api/v1/finance/fee-preview/', {'gross_amount': 100}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()['success'])

    def test_ledger_export_csv(self):
        child = make_child(self.parent)
        venue = make_venue()
        activity = make_activity(venue, price=Decimal('10.00'))
        booking = create_booking(self.parent, child, activity, date.today())
        confirm_paid_booking(booking, 'manual')

        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/v1/finance/ledger/export/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn(booking.booking_number, lines[1])

    def test_summary_totals(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/v1/finance/summary/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['totals']['count'], 0)

    def test_summary_counts_refunded_then_respent_payment_once(self):
        parent = make_user('parent2')
        child = make_child(parent)
        activity = make_activity(make_venue(), price=Decimal('25.00'))
        booking = create_booking(parent, child, activity, date.today())
        confirm_paid_booking(booking, 'stripe', reference='pi_1')
        cancel_booking(booking, reason='Venue closed', user=self.admin, refund_to_credit=True)
        create_booking(parent, child, activity, date.today(), payment_method='credit')

        self.client.force_authenticate(self.admin)
        totals = self.client.get('/api/v1/finance/summary/').json()['data']['totals']
        self.assertEqual(totals['count'], 3)
        self.assertEqual(totals['gross_amount'], 2500)
        self.assertEqual(totals['franchise_fee_total'], 250)
        self.assertEqual(totals['net_to_venue'], 2250)
