from django.test import TestCase
from rest_framework.test import APIClient

from core.audit.utils import log_event, get_entity_history
from core.common.testing import make_user, make_admin


class AuditLogTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_admin()

    def test_system_events_have_no_actor(self):
        entry = log_event(None, 'tfc_auto_cancelled', 'tfc_booking', 42)
        self.assertIsNone(entry.actor)
        self.assertEqual(entry.entity_id, '42')
        self.assertEqual(list(get_entity_history('tfc_booking', 42)), [entry])

    def test_list_is_admin_only_and_paginated(self):
        log_event(self.admin, 'booking_confirmed', 'booking', 1)
        log_event(self.admin, 'booking_cancelled', 'booking', 2)

        self.client.force_authenticate(make_user('parent1'))
        self.assertEqual(self.client.get('/api/v1/audit-logs/').status_code, 403)

        self.client.force_authenticate(self.admin)
        body = self.client.get('/api/v1/audit-logs/', {'entity_type': 'booking', 'action': 'booking_cancelled'}).json()
        self.assertTrue(body['success'])
        self.assertEqual(body['pagination']['total'], 1)
        self.assertEqual(body['data'][0]['entity_id'], '2')
        self.assertEqual(body['data'][0]['actor_username'], 'admin')

    def test_read_only(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/v1/audit-logs/', {'action': 'x'}, format='json')
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json()['error']['code'], 'METHOD_NOT_ALLOWED')
