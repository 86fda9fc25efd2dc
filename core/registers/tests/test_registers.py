"""
Tests for registers, attendance and register export
"""
from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from core.booking.utils import create_booking, confirm_paid_booking
from core.common.exceptions import ServiceError
from core.common.testing import make_user, make_admin, make_child, make_venue, make_activity
from core.registers.models import Attendance
from core.registers.utils import create_register, record_attendance, get_register_stats, auto_create_registers


class RegisterTestMixin:

    def setUp(self):
        self.admin = make_admin()
        self.parent = make_user('parent1')
        self.activity = make_activity(make_venue(), price=Decimal('10.00'))
        self.today = date.today()
        self.children = []
        for name in ('Sam', 'Alex', 'Kim'):
            child = make_child(self.parent, first_name=name)
            booking = create_booking(self.parent, child, self.activity, self.today)
            confirm_paid_booking(booking, 'manual')
            self.children.append(child)
        # Pending bookings are not on the register
        create_booking(self.parent, make_child(self.parent, first_name='Lee'), self.activity, self.today)


class RegisterServiceTest(RegisterTestMixin, TestCase):

    def test_register_lists_confirmed_bookings(self):
        register = create_register(self.activity, self.today, created_by=self.admin)
        self.assertEqual(register.attendance.count(), 3)
        self.assertFalse(register.attendance.filter(present=True).exists())

    def test_one_register_per_activity_date(self):
        create_register(self.activity, self.today)
        with self.assertRaises(ServiceError) as ctx:
            create_register(self.activity, self.today)
        self.assertEqual(ctx.exception.code, 'REGISTER_EXISTS')

    def test_attendance_upsert_and_stats(self):
        register = create_register(self.activity, self.today)
        record_attendance(register, [
            {'child': self.children[0].id, 'present': True},
            {'child': self.children[1].id, 'present': True},
        ], recorded_by=self.admin)
        record_attendance(register, [{'child': self.children[1].id, 'present': False}])

        self.assertEqual(Attendance.objects.filter(register=register).count(), 3)
        stats = get_register_stats(register)
        self.assertEqual(stats['total_bookings'], 3)
        self.assertEqual(stats['present'], 1)
        self.assertEqual(stats['absent'], 2)
        self.assertEqual(stats['attendance_rate'], 33.3)
        self.assertIsNotNone(Attendance.objects.get(register=register, child=self.children[0]).check_in_time)

    def test_unbooked_child_rejected(self):
        register = create_register(self.activity, self.today)
        stranger = make_child(make_user('parent2'), first_name='Jo')
        with self.assertRaises(ServiceError) as ctx:
            record_attendance(register, [{'child': stranger.id, 'present': True}])
        self.assertEqual(ctx.exception.code, 'CHILD_NOT_BOOKED')

    def test_empty_register_rate_is_zero(self):
        register = create_register(self.activity, self.today + timedelta(days=1))
        self.assertEqual(get_register_stats(register)['attendance_rate'], 0.0)

    def test_auto_create_skips_dates_without_bookings(self):
        registers = auto_create_registers(self.activity, self.today, self.today + timedelta(days=3))
        self.assertEqual([r.date for r in registers], [self.today])


class RegisterAPITest(RegisterTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_create_attendance_and_export(self):
        response = self.client.post('/api/v1/registers/', {
            'activity': self.activity.id, 'date': self.today.isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, 201)
        register_id = response.json()['data']['id']

        response = self.client.post(f'/api/v1/registers/{register_id}/attendance/', [
            {'child': self.children[0].id, 'present': True},
        ], format='json')
        self.assertEqual(response.status_code, 200)

        stats = self.client.get(f'/api/v1/registers/{register_id}/stats/').json()['data']
        self.assertEqual(stats['present'], 1)

        response = self.client.get(f'/api/v1/registers/{register_id}/export/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(lines[0], 'Child,Booking,Present,Check In,Check Out,Notes')
        self.assertEqual(len(lines), 4)

    def test_duplicate_register_conflict(self):
        create_register(self.activity, self.today)
        response = self.client.post('/api/v1/registers/', {
            'activity': self.activity.id, 'date': self.today.isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error']['code'], 'REGISTER_EXISTS')

    def test_parents_cannot_access_registers(self):
        self.client.force_authenticate(self.parent)
        self.assertEqual(self.client.get('/api/v1/registers/').status_code, 403)
