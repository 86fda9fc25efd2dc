from django.test import TestCase
from rest_framework.test import APIClient

from core.common.testing import make_user, make_admin
from core.settings.models import PlatformSettings


class PlatformSettingsTest(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_singleton_defaults(self):
        settings = PlatformSettings.get_settings()
        self.assertEqual(PlatformSettings.get_settings().pk, settings.pk)
        self.assertEqual(settings.default_tfc_hold_period_days, 5)
        self.assertEqual(settings.tfc_reminder_hours, 48)
        self.assertEqual(settings.credit_expiry_days, 365)
        self.assertTrue(settings.auto_cancel_expired_tfc)

    def test_any_user_can_read(self):
        self.client.force_authenticate(make_user('parent1'))
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['default_tfc_hold_period_days'], 5)

    def test_only_admin_can_update(self):
        self.client.force_authenticate(make_user('staff1', role='staff'))
        response = self.client.patch('/api/v1/settings/', {'tfc_reminder_hours': 24}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error']['code'], 'PERMISSION_DENIED')

        admin = make_admin()
        self.client.force_authenticate(admin)
        response = self.client.patch('/api/v1/settings/', {'tfc_reminder_hours': 24}, format='json')
        self.assertEqual(response.status_code, 200)
        settings = PlatformSettings.get_settings()
        self.assertEqual(settings.tfc_reminder_hours, 24)
        self.assertEqual(settings.updated_by, admin)

    def test_unauthenticated_gets_error_envelope(self):
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, 401)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertEqual(body['error']['code'], 'NOT_AUTHENTICATED')
