"""
Tests for Stripe PaymentIntents and the Stripe / external webhooks
"""
import hashlib
import hmac
import json
import time
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import stripe

from django.conf import settings
from django.test import TestCase, Client, override_settings
from rest_framework.test import APIClient

from core.booking.models import Booking
from core.booking.utils import create_booking, cancel_booking
from core.common.testing import make_user, make_admin, make_child, make_venue, make_activity
from core.finance.models import FeeLedgerEntry
from core.payments.models import WebhookEvent
from core.payments.utils.signature import verify_webhook_secret
from core.wallet.models import Credit


def stripe_signature(body, secret, timestamp=None):
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{body.decode('utf-8')}".encode('utf-8')
    digest = hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class WebhookSecretTest(TestCase):
    """Test shared-secret verification"""

    def test_valid_secret(self):
        self.assertTrue(verify_webhook_secret('test_webhook_secret'))

    def test_invalid_secret(self):
        self.assertFalse(verify_webhook_secret('wrong'))
        self.assertFalse(verify_webhook_secret(''))

    @override_settings(WEBHOOK_SECRET='')
    def test_missing_configured_secret(self):
        self.assertFalse(verify_webhook_secret('anything'))


class PaymentsTestMixin:

    def setUp(self):
        self.client = Client()
        self.parent = make_user('parent1')
        self.child = make_child(self.parent)
        self.activity = make_activity(make_venue(), price=Decimal('25.00'))
        self.booking = create_booking(self.parent, self.child, self.activity, date.today())
        Booking.objects.filter(pk=self.booking.pk).update(payment_intent_id='pi_test_123')


class StripeWebhookTest(PaymentsTestMixin, TestCase):

    def _post(self, payload, signature=None):
        body = json.dumps(payload).encode('utf-8')
        headers = {}
        if signature is not False:
            headers['HTTP_STRIPE_SIGNATURE'] = signature or stripe_signature(body, settings.STRIPE_WEBHOOK_SECRET)
        return self.client.post('/api/v1/webhooks/stripe/', data=body, content_type='application/json', **headers)

    def _event(self, event_id='evt_1', event_type='payment_intent.succeeded', **intent):
        obj = {'id': 'pi_test_123', 'object': 'payment_intent', 'amount': 2500, 'amount_received': 2500,
               'metadata': {'booking_id': str(self.booking.id)}}
        obj.update(intent)
        return {'id': event_id, 'object': 'event', 'type': event_type, 'data': {'object': obj}}

    def test_missing_signature_rejected(self):
        response = self._post(self._event(), signature=False)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'MISSING_SIGNATURE')

    def test_invalid_signature_rejected(self):
        response = self._post(self._event(), signature='t=1,v1=deadbeef')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'INVALID_SIGNATURE')
        self.assertFalse(WebhookEvent.objects.exists())

    def test_payment_succeeded_confirms_booking(self):
        response = self._post(self._event())
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['status'], 'processed')

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'confirmed')
        self.assertEqual(self.booking.payment_status, 'paid')
        entry = FeeLedgerEntry.objects.get(booking=self.booking)
        self.assertEqual(entry.source, 'stripe')
        self.assertEqual(entry.payment_reference, 'pi_test_123')

    def test_duplicate_event_is_noop(self):
        self._post(self._event())
        response = self._post(self._event())
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['data']['duplicate'])
        event = WebhookEvent.objects.get(source='stripe', event_id='evt_1')
        self.assertEqual(event.attempts, 1)

    def test_booking_found_by_metadata(self):
        Booking.objects.filter(pk=self.booking.pk).update(payment_intent_id=None)
        response = self._post(self._event(id='pi_other'))
        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'confirmed')

    def test_payment_failed(self):
        response = self._post(self._event(
            event_type='payment_intent.payment_failed',
            last_payment_error={'message': 'Your card was declined.'},
        ))
        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'pending')
        self.assertEqual(self.booking.payment_status, 'failed')

    def test_unknown_booking_recorded_as_failed(self):
        response = self._post(self._event(id='pi_unknown', metadata={}))
        self.assertEqual(response.status_code, 500)
        event = WebhookEvent.objects.get(event_id='evt_1')
        self.assertEqual(event.status, 'failed')
        self.assertIn('pi_unknown', event.error_message)

    @patch('core.payments.utils.stripe_client.stripe.Refund.create')
    @patch('core.payments.utils.stripe_client.stripe.PaymentIntent.cancel')
    def test_payment_after_cancellation_is_refunded(self, mock_cancel, mock_refund):
        mock_cancel.side_effect = stripe.InvalidRequestError('PaymentIntent has already succeeded', None)
        mock_refund.return_value = {'id': 're_late_1'}
        with self.captureOnCommitCallbacks(execute=True):
            cancel_booking(self.booking, reason='Changed plans', user=self.parent)
        mock_cancel.assert_called_once_with('pi_test_123', cancellation_reason='abandoned')

        response = self._post(self._event())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'processed')
        mock_refund.assert_called_once_with(idempotency_key='refund-pi_test_123', payment_intent='pi_test_123')

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'cancelled')
        self.assertEqual(self.booking.payment_status, 'refunded')
        self.assertFalse(Credit.objects.exists())
        self.assertFalse(FeeLedgerEntry.objects.exists())

        # Stripe redelivery is acknowledged without a second refund
        response = self._post(self._event())
        self.assertTrue(response.json()['data']['duplicate'])
        self.assertEqual(mock_refund.call_count, 1)

    @patch('core.payments.utils.stripe_client.stripe.Refund.create')
    def test_late_payment_refund_failure_is_retried(self, mock_refund):
        mock_refund.side_effect = stripe.APIConnectionError('Network down')
        cancel_booking(self.booking, reason='Changed plans', user=self.parent)

        response = self._post(self._event())
        self.assertEqual(response.status_code, 500)
        event = WebhookEvent.objects.get(event_id='evt_1')
        self.assertEqual(event.status, 'failed')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, 'cancelled')

        mock_refund.side_effect = None
        mock_refund.return_value = {'id': 're_late_2'}
        response = self._post(self._event())
        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, 'refunded')

    def test_late_failure_on_cancelled_booking_ignored(self):
        cancel_booking(self.booking, reason='Changed plans', user=self.parent)
        response = self._post(self._event(event_type='payment_intent.payment_failed'))
        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, 'cancelled')


class ExternalWebhookTest(PaymentsTestMixin, TestCase):

    def _post(self, payload, secret='test_webhook_secret'):
        headers = {'HTTP_X_WEBHOOK_SECRET': secret} if secret else {}
        return self.client.post('/api/v1/webhooks/external/', data=json.dumps(payload),
                                content_type='application/json', **headers)

    def test_requires_secret(self):
        response = self._post({'event': 'payment.completed'}, secret=None)
        self.assertEqual(response.status_code, 401)
        response = self._post({'event': 'payment.completed'}, secret='nope')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['code'], 'UNAUTHORIZED')

    def test_missing_event_rejected(self):
        response = self._post({'data': {}})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'MISSING_PARAMETERS')

    def test_payment_completed_confirms_booking(self):
        response = self._post({
            'id': 'ext-1',
            'event': 'payment.completed',
            'data': {'booking_id': self.booking.id, 'payment_reference': 'BANK-42'},
        })
        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'confirmed')
        self.assertEqual(FeeLedgerEntry.objects.get(booking=self.booking).payment_reference, 'BANK-42')

    def test_booking_cancelled(self):
        response = self._post({'id': 'ext-2', 'event': 'booking.cancelled',
                               'data': {'booking_id': self.booking.id, 'reason': 'Duplicate'}})
        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'cancelled')
        self.assertEqual(self.booking.cancel_reason, 'Duplicate')

    def test_acknowledged_events(self):
        response = self._post({'event': 'user.created', 'data': {'id': 1}})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(WebhookEvent.objects.get(source='external').status, 'processed')


class WebhookRetryTest(PaymentsTestMixin, TestCase):

    def test_admin_retries_failed_event(self):
        admin = make_admin()
        event = WebhookEvent.objects.create(
            source='external', event_id='ext-9', event_type='payment.completed',
            payload={'event': 'payment.completed', 'data': {'booking_id': self.booking.id}},
            status='failed', error_message='boom', attempts=1,
        )
        api = APIClient()
        api.force_authenticate(admin)
        response = api.post(f'/api/v1/webhooks/events/{event.id}/retry/')
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['status'], 'processed')
        self.assertEqual(data['attempts'], 2)

        response = api.post(f'/api/v1/webhooks/events/{event.id}/retry/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'ALREADY_PROCESSED')


class PaymentIntentTest(PaymentsTestMixin, TestCase):

    @patch('core.payments.utils.stripe_client.stripe.PaymentIntent.create')
    def test_creates_intent_in_pence(self, mock_create):
        mock_create.return_value = {'id': 'pi_new', 'client_secret': 'pi_new_secret', 'currency': 'gbp'}
        api = APIClient()
        api.force_authenticate(self.parent)

        response = api.post('/api/v1/payments/intent/', {'booking_id': self.booking.id}, format='json')

        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['client_secret'], 'pi_new_secret')
        self.assertEqual(data['amount'], 2500)
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs['amount'], 2500)
        self.assertEqual(kwargs['metadata']['booking_id'], str(self.booking.id))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_intent_id, 'pi_new')

    def test_other_parent_forbidden(self):
        api = APIClient()
        api.force_authenticate(make_user('parent2'))
        response = api.post('/api/v1/payments/intent/', {'booking_id': self.booking.id}, format='json')
        self.assertEqual(response.status_code, 403)
