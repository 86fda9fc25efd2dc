"""
Tests for notification creation, dispatch and the notifications API
"""
from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from core.common.testing import make_user, make_admin
from core.notification.models import Notification
from core.notification.tasks import dispatch_notification
from core.notification.utils import notify, get_unread_count


class NotifyTest(TestCase):

    def setUp(self):
        self.parent = make_user('parent1')

    @patch('core.notification.tasks.dispatch_notification.delay')
    def test_notify_queues_dispatch_after_commit(self, mock_delay):
        with self.captureOnCommitCallbacks(execute=True):
            notification = notify(self.parent, 'manual', 'Hello', 'Welcome to BookOn')
        mock_delay.assert_called_once_with(notification.id)
        self.assertEqual(notification.channels, ['in_app'])
        self.assertEqual(notification.status, 'unread')

    @patch('core.notification.tasks.dispatch_notification.delay')
    def test_unknown_channels_dropped(self, mock_delay):
        notification = notify(self.parent, 'manual', 'Hello', 'Hi', channels=['pigeon', 'email'])
        self.assertEqual(notification.channels, ['email'])

    def test_dispatch_marks_sent(self):
        notification = Notification.objects.create(
            user=self.parent, notification_type='manual', title='Hi', message='Hi', channels=['in_app', 'email']
        )
        dispatch_notification.apply(args=[notification.id])
        notification.refresh_from_db()
        self.assertEqual(notification.delivery_status, 'sent')
        self.assertIsNotNone(notification.sent_at)

    def test_dispatch_fails_without_contact_details(self):
        notification = Notification.objects.create(
            user=self.parent, notification_type='manual', title='Hi', message='Hi', channels=['sms']
        )
        dispatch_notification.apply(args=[notification.id])
        notification.refresh_from_db()
        self.assertEqual(notification.delivery_status, 'failed')
        self.assertIn('mobile', notification.error_message)

    def test_unread_count_cache_invalidated(self):
        self.assertEqual(get_unread_count(self.parent), 0)
        notify(self.parent, 'manual', 'One', 'One')
        self.assertEqual(get_unread_count(self.parent), 1)


class NotificationAPITest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_admin()
        self.parent = make_user('parent1')
        self.other = make_user('parent2')

    def test_parent_sees_only_own(self):
        notify(self.parent, 'manual', 'Mine', 'Mine')
        notify(self.other, 'manual', 'Theirs', 'Theirs')
        self.client.force_authenticate(self.parent)
        body = self.client.get('/api/v1/notifications/').json()
        self.assertEqual(body['pagination']['total'], 1)
        self.assertEqual(body['data'][0]['title'], 'Mine')

    def test_mark_read_and_read_all(self):
        first = notify(self.parent, 'manual', 'One', 'One')
        notify(self.parent, 'manual', 'Two', 'Two')
        self.client.force_authenticate(self.parent)

        response = self.client.post(f'/api/v1/notifications/{first.id}/mark-read/')
        self.assertEqual(response.json()['data']['status'], 'read')
        self.assertEqual(self.client.get('/api/v1/notifications/unread-count/').json()['data']['unread'], 1)

        response = self.client.post('/api/v1/notifications/read-all/')
        self.assertEqual(response.json()['data']['updated'], 1)
        self.assertEqual(self.client.get('/api/v1/notifications/unread-count/').json()['data']['unread'], 0)

    def test_admin_sends_to_all_parents(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/v1/notifications/', {
            'all_parents': True,
            'title': 'Half term',
            'message': 'Bookings are open',
            'priority': 'high',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['sent'], 2)

    def test_stats(self):
        notify(self.parent, 'tfc_reminder', 'Pay', 'Pay', priority='high')
        notify(self.parent, 'manual', 'Hi', 'Hi')
        self.client.force_authenticate(self.parent)
        data = self.client.get('/api/v1/notifications/stats/').json()['data']
        self.assertEqual(data['total'], 2)
        self.assertEqual(data['by_priority']['high'], 1)
        self.assertEqual(data['by_type']['tfc_reminder'], 1)
