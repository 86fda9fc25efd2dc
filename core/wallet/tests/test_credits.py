"""
Tests for parent credits: issue, redeem, expire and the credits API
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.common.exceptions import ServiceError, InsufficientCreditsError
from core.common.testing import make_user, make_admin, make_venue
from core.wallet.models import Credit, CreditTransaction
from core.wallet.utils import (
    issue_credit,
    use_credits,
    cancel_credit,
    expire_credits,
    get_available_balance,
)


class CreditLedgerTest(TestCase):

    def setUp(self):
        self.parent = make_user('parent1')

    def test_issue_credit_records_transaction(self):
        credit = issue_credit(self.parent, Decimal('12.50'), 'goodwill', description='Sorry!')
        self.assertEqual(credit.status, 'active')
        self.assertIsNotNone(credit.expires_at)
        txn = CreditTransaction.objects.get(credit=credit)
        self.assertEqual(txn.transaction_type, 'ISSUE')
        self.assertEqual(txn.balance_after, Decimal('12.50'))

    def test_issue_rejects_non_positive_amount(self):
        with self.assertRaises(ServiceError):
            issue_credit(self.parent, Decimal('0'), 'manual')

    def test_redeems_earliest_expiring_first(self):
        late = issue_credit(self.parent, Decimal('10.00'), 'manual', expires_in_days=90)
        soon = issue_credit(self.parent, Decimal('10.00'), 'manual', expires_in_days=10)

        use_credits(self.parent, Decimal('15.00'))

        soon.refresh_from_db()
        late.refresh_from_db()
        self.assertEqual(soon.status, 'used')
        self.assertEqual(soon.used_amount, Decimal('10.00'))
        self.assertEqual(late.used_amount, Decimal('5.00'))
        self.assertEqual(get_available_balance(self.parent), Decimal('5.00'))

    def test_insufficient_balance_spends_nothing(self):
        credit = issue_credit(self.parent, Decimal('5.00'), 'manual')
        with self.assertRaises(InsufficientCreditsError) as ctx:
            use_credits(self.parent, Decimal('5.01'))
        self.assertEqual(ctx.exception.code, 'INSUFFICIENT_CREDITS')
        credit.refresh_from_db()
        self.assertEqual(credit.used_amount, Decimal('0.00'))

    def test_venue_credit_only_counts_at_its_venue(self):
        venue = make_venue()
        other = make_venue(name='Other Hall')
        issue_credit(self.parent, Decimal('10.00'), 'manual', venue=venue)
        self.assertEqual(get_available_balance(self.parent, venue=venue), Decimal('10.00'))
        self.assertEqual(get_available_balance(self.parent, venue=other), Decimal('0.00'))

    def test_expire_credits(self):
        credit = issue_credit(self.parent, Decimal('8.00'), 'manual')
        Credit.objects.filter(pk=credit.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

        self.assertEqual(expire_credits(), 1)
        credit.refresh_from_db()
        self.assertEqual(credit.status, 'expired')
        self.assertEqual(get_available_balance(self.parent), Decimal('0.00'))
        self.assertEqual(expire_credits(), 0)

    def test_cancel_credit(self):
        credit = cancel_credit(issue_credit(self.parent, Decimal('8.00'), 'manual'))
        self.assertEqual(credit.status, 'cancelled')
        with self.assertRaises(ServiceError):
            cancel_credit(credit)


class CreditAPITest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_admin()
        self.parent = make_user('parent1')

    def test_admin_issues_credit(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/v1/wallet/credits/', {
            'parent': self.parent.id,
            'amount': '15.00',
            'source': 'goodwill',
            'description': 'Cancelled session',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['remaining_amount'], '15.00')

    def test_parent_cannot_issue_credit(self):
        self.client.force_authenticate(self.parent)
        response = self.client.post('/api/v1/wallet/credits/', {
            'parent': self.parent.id, 'amount': '15.00',
        }, format='json')
        self.assertEqual(response.status_code, 403)

    def test_balance(self):
        issue_credit(self.parent, Decimal('7.25'), 'manual')
        self.client.force_authenticate(self.parent)
        data = self.client.get('/api/v1/wallet/credits/balance/').json()['data']
        self.assertEqual(Decimal(str(data['available_balance'])), Decimal('7.25'))
        self.assertEqual(data['active_credits'], 1)

    def test_admin_balance_for_parent(self):
        issue_credit(self.parent, Decimal('4.00'), 'manual')
        self.client.force_authenticate(self.admin)
        data = self.client.get('/api/v1/wallet/credits/balance/', {'parent': self.parent.id}).json()['data']
        self.assertEqual(Decimal(str(data['available_balance'])), Decimal('4.00'))

    def test_admin_balance_for_malformed_parent_id(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/v1/wallet/credits/balance/', {'parent': 'abc'})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error']['code'], 'NOT_FOUND')

    def test_admin_balance_for_unknown_parent(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/v1/wallet/credits/balance/', {'parent': 999999})
        self.assertEqual(response.status_code, 404)

    def test_admin_list_filtered_by_malformed_parent_id(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/v1/wallet/credits/', {'parent': 'abc'})
        self.assertEqual(response.status_code, 404)
