"""
Tests for Tax-Free Childcare reconciliation
"""
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.booking.utils import create_booking
from core.common.exceptions import ServiceError, InvalidTransitionError
from core.common.testing import make_user, make_admin, make_child, make_venue, make_activity
from core.finance.models import FeeLedgerEntry
from core.notification.models import Notification
from core.settings.models import PlatformSettings
from core.tfc.models import TFCBooking
from core.tfc.utils import (
    mark_paid,
    mark_part_paid,
    cancel_tfc_booking,
    convert_to_credit,
    bulk_mark_paid,
    get_pending_queue,
    get_pending_stats,
    get_tfc_analytics,
    send_deadline_reminders,
    process_expired_tfc_bookings,
    DEFAULT_CANCEL_REASON,
    DEADLINE_CANCEL_REASON,
)
from core.wallet.models import Credit


class TFCTestMixin:

    def setUp(self):
        self.admin = make_admin()
        self.parent = make_user('parent1')
        self.venue = make_venue(tfc_hold_period_days=3)
        self.activity = make_activity(self.venue, price=Decimal('40.00'))

    def make_tfc(self, first_name='Sam'):
        child = make_child(self.parent, first_name=first_name)
        booking = create_booking(self.parent, child, self.activity, date.today(), payment_method='tfc')
        return TFCBooking.objects.get(booking=booking)


class TFCCreateTest(TFCTestMixin, TestCase):

    def test_deadline_uses_venue_hold_period(self):
        tfc = self.make_tfc()
        self.assertEqual(tfc.hold_period_days, 3)
        delta = tfc.deadline - tfc.created_at
        self.assertAlmostEqual(delta.total_seconds(), timedelta(days=3).total_seconds(), delta=5)

    def test_deadline_falls_back_to_platform_default(self):
        self.venue.tfc_hold_period_days = None
        self.venue.save()
        tfc = self.make_tfc()
        self.assertEqual(tfc.hold_period_days, PlatformSettings.get_settings().default_tfc_hold_period_days)
        self.assertEqual(tfc.hold_period_days, 5)

    def test_references_are_unique(self):
        first = self.make_tfc('Sam')
        second = self.make_tfc('Alex')
        self.assertNotEqual(first.reference, second.reference)


class TFCTransitionTest(TFCTestMixin, TestCase):

    def test_mark_paid_confirms_booking_and_writes_ledger(self):
        tfc = mark_paid(self.make_tfc(), user=self.admin)
        self.assertEqual(tfc.status, 'paid')
        self.assertEqual(tfc.amount_received, Decimal('40.00'))
        self.assertEqual(tfc.processed_by, self.admin)
        tfc.booking.refresh_from_db()
        self.assertEqual(tfc.booking.status, 'confirmed')
        self.assertEqual(tfc.booking.payment_status, 'paid')
        entry = FeeLedgerEntry.objects.get(booking=tfc.booking)
        self.assertEqual(entry.source, 'tfc')
        self.assertEqual(entry.payment_reference, tfc.reference)

    def test_part_paid_then_paid(self):
        tfc = mark_part_paid(self.make_tfc(), Decimal('15.00'), user=self.admin)
        self.assertEqual(tfc.status, 'part_paid')
        self.assertEqual(tfc.remaining_amount, Decimal('25.00'))
        tfc.booking.refresh_from_db()
        self.assertEqual(tfc.booking.status, 'pending')

        tfc = mark_paid(tfc, user=self.admin)
        self.assertEqual(tfc.status, 'paid')
        self.assertEqual(tfc.remaining_amount, Decimal('0.00'))

    def test_part_paid_amount_must_be_partial(self):
        tfc = self.make_tfc()
        for amount in (Decimal('0'), Decimal('40.00'), Decimal('50.00')):
            with self.assertRaises(ServiceError) as ctx:
                mark_part_paid(tfc, amount, user=self.admin)
            self.assertEqual(ctx.exception.code, 'INVALID_AMOUNT')

    def test_part_paid_only_from_pending(self):
        tfc = mark_part_paid(self.make_tfc(), Decimal('10.00'))
        with self.assertRaises(ServiceError) as ctx:
            mark_part_paid(tfc, Decimal('5.00'))
        self.assertEqual(ctx.exception.code, 'INVALID_STATUS_TRANSITION')

    def test_part_paid_cannot_be_cancelled(self):
        tfc = mark_part_paid(self.make_tfc(), Decimal('10.00'))
        with self.assertRaises(InvalidTransitionError):
            cancel_tfc_booking(tfc)

    def test_paid_is_terminal(self):
        tfc = mark_paid(self.make_tfc())
        with self.assertRaises(InvalidTransitionError):
            mark_paid(tfc)
        with self.assertRaises(InvalidTransitionError):
            convert_to_credit(tfc)

    def test_cancel_uses_default_reason_and_cancels_booking(self):
        tfc = cancel_tfc_booking(self.make_tfc(), reason='', user=self.admin)
        self.assertEqual(tfc.status, 'cancelled')
        self.assertEqual(tfc.cancel_reason, DEFAULT_CANCEL_REASON)
        tfc.booking.refresh_from_db()
        self.assertEqual(tfc.booking.status, 'cancelled')
        self.assertEqual(tfc.booking.payment_status, 'cancelled')

    def test_convert_to_credit(self):
        tfc = convert_to_credit(self.make_tfc(), reason='Parent asked for credit', user=self.admin)
        self.assertEqual(tfc.status, 'cancelled')
        credit = Credit.objects.get(pk=tfc.credit_id)
        self.assertEqual(credit.amount, Decimal('40.00'))
        self.assertEqual(credit.source, 'tfc_conversion')
        self.assertIsNotNone(credit.expires_at)
        tfc.booking.refresh_from_db()
        self.assertEqual(tfc.booking.status, 'cancelled')
        self.assertEqual(tfc.booking.payment_status, 'refunded')

        with self.assertRaises(InvalidTransitionError):
            convert_to_credit(tfc)
        self.assertEqual(Credit.objects.count(), 1)


class TFCBulkTest(TFCTestMixin, TestCase):

    def test_bulk_mark_paid_reports_each_id(self):
        pending = self.make_tfc('Sam')
        cancelled = cancel_tfc_booking(self.make_tfc('Alex'))

        result = bulk_mark_paid([pending.id, cancelled.id, 424242], user=self.admin)

        self.assertEqual(result['succeeded'], 1)
        self.assertEqual(result['failed'], 2)
        by_id = {r['id']: r for r in result['results']}
        self.assertTrue(by_id[pending.id]['success'])
        self.assertEqual(by_id[pending.id]['status'], 'paid')
        self.assertEqual(by_id[cancelled.id]['error']['code'], 'INVALID_STATUS_TRANSITION')
        self.assertEqual(by_id[424242]['error']['code'], 'NOT_FOUND')

        cancelled.refresh_from_db()
        self.assertEqual(cancelled.status, 'cancelled')


class TFCQueueAndDeadlineTest(TFCTestMixin, TestCase):

    def test_pending_queue_and_stats(self):
        first = self.make_tfc('Sam')
        second = mark_part_paid(self.make_tfc('Alex'), Decimal('10.00'))
        mark_paid(self.make_tfc('Kim'))
        TFCBooking.objects.filter(pk=first.pk).update(deadline=timezone.now() - timedelta(hours=1))

        queue = get_pending_queue()
        self.assertEqual([t.id for t in queue], [first.id, second.id])
        stats = get_pending_stats(queue)
        self.assertEqual(stats['total_pending'], 2)
        self.assertEqual(stats['total_outstanding'], Decimal('70.00'))
        self.assertEqual(stats['overdue'], 1)

    def test_analytics(self):
        mark_paid(self.make_tfc('Sam'))
        self.make_tfc('Alex')
        analytics = get_tfc_analytics()
        self.assertEqual(analytics['total'], 2)
        self.assertEqual(analytics['by_status']['paid']['count'], 1)
        self.assertEqual(analytics['conversion_rate'], 50.0)
        self.assertEqual(analytics['by_venue'][0]['paid_revenue'], Decimal('40.00'))
        self.assertEqual(analytics['average_booking_value'], Decimal('40.00'))

    def test_reminders_sent_once_within_window(self):
        due = self.make_tfc('Sam')
        later = self.make_tfc('Alex')
        TFCBooking.objects.filter(pk=due.pk).update(deadline=timezone.now() + timedelta(hours=24))
        TFCBooking.objects.filter(pk=later.pk).update(deadline=timezone.now() + timedelta(hours=72))

        self.assertEqual(send_deadline_reminders(), 1)
        self.assertEqual(send_deadline_reminders(), 0)
        due.refresh_from_db()
        self.assertIsNotNone(due.reminder_sent_at)
        self.assertEqual(Notification.objects.filter(notification_type='tfc_reminder').count(), 1)

    def test_expired_pending_bookings_cancelled(self):
        expired = self.make_tfc('Sam')
        part_paid = mark_part_paid(self.make_tfc('Alex'), Decimal('5.00'))
        TFCBooking.objects.filter(pk__in=[expired.pk, part_paid.pk]).update(
            deadline=timezone.now() - timedelta(minutes=1)
        )

        self.assertEqual(process_expired_tfc_bookings(), 1)
        expired.refresh_from_db()
        part_paid.refresh_from_db()
        self.assertEqual(expired.status, 'cancelled')
        self.assertEqual(expired.cancel_reason, DEADLINE_CANCEL_REASON)
        self.assertEqual(part_paid.status, 'part_paid')

    def test_auto_cancel_can_be_disabled(self):
        expired = self.make_tfc()
        TFCBooking.objects.filter(pk=expired.pk).update(deadline=timezone.now() - timedelta(minutes=1))
        settings_obj = PlatformSettings.get_settings()
        settings_obj.auto_cancel_expired_tfc = False
        settings_obj.save()

        self.assertEqual(process_expired_tfc_bookings(), 0)
        expired.refresh_from_db()
        self.assertEqual(expired.status, 'pending_payment')


class TFCAPITest(TFCTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_part_paid_endpoint(self):
        tfc = self.make_tfc()
        self.client.force_authenticate(self.admin)
        response = self.client.post(f'/api/v1/tfc/bookings/{tfc.id}/part-paid/',
                                    {'amount_received': '15.00'}, format='json')
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['status'], 'part_paid')
        self.assertEqual(data['remaining_amount'], '25.00')

    def test_parent_cannot_mark_paid(self):
        tfc = self.make_tfc()
        self.client.force_authenticate(self.parent)
        response = self.client.post(f'/api/v1/tfc/bookings/{tfc.id}/mark-paid/')
        self.assertEqual(response.status_code, 403)

    def test_parent_can_read_instructions(self):
        tfc = self.make_tfc()
        self.client.force_authenticate(self.parent)
        response = self.client.get(f'/api/v1/tfc/bookings/{tfc.id}/instructions/')
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['reference'], tfc.reference)
        self.assertEqual(data['payee_details']['name'], 'BookOn Platform')
        self.assertIn('Tax-Free Childcare', data['instructions'])

    def test_bulk_cancel_endpoint(self):
        first = self.make_tfc('Sam')
        second = self.make_tfc('Alex')
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/v1/tfc/bookings/bulk-cancel/',
                                    {'booking_ids': [first.id, second.id]}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['succeeded'], 2)

    def test_pending_endpoint(self):
        self.make_tfc()
        self.client.force_authenticate(self.admin)
        data = self.client.get('/api/v1/tfc/bookings/pending/').json()['data']
        self.assertEqual(data['stats']['total_pending'], 1)
        self.assertEqual(len(data['bookings']), 1)
        self.assertIn('days_remaining', data['bookings'][0])

    @patch('core.notification.tasks.dispatch_notification.delay')
    def test_run_deadline_job_endpoint(self, mock_delay):
        expired = self.make_tfc()
        TFCBooking.objects.filter(pk=expired.pk).update(deadline=timezone.now() - timedelta(minutes=1))
        self.client.force_authenticate(self.admin)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post('/api/v1/tfc/bookings/run-deadline-job/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['cancelled'], 1)
        self.assertTrue(mock_delay.called)
