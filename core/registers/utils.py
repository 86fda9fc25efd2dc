from datetime import timedelta
import logging

from django.db import transaction
from django.utils import timezone

from core.audit.utils import log_event
from core.booking.models import Booking
from core.common.exceptions import ServiceError
from .models import Register, Attendance

logger = logging.getLogger(__name__)


def _confirmed_bookings(activity, day):
    return Booking.objects.filter(activity=activity, booking_date=day, status='confirmed').select_related('child')


def create_register(activity, day, created_by=None, notes=''):
    """
    Create the register for an activity date with one absent row for each
    confirmed booking.
    """
    if not activity.runs_on(day):
        raise ServiceError('Activity does not run on this date', code='INVALID_DATE')

    with transaction.atomic():
        if Register.objects.filter(activity=activity, date=day).exists():
            raise ServiceError('A register already exists for this activity and date',
                               code='REGISTER_EXISTS', status_code=409)
        register = Register.objects.create(
            activity=activity,
            date=day,
            notes=notes,
            created_by=created_by if getattr(created_by, 'is_authenticated', False) else None,
        )
        Attendance.objects.bulk_create([
            Attendance(register=register, booking=booking, child=booking.child)
            for booking in _confirmed_bookings(activity, day)
        ])
        log_event(created_by, 'register_created', 'register', register.id,
                  details={'activity': activity.id, 'date': day.isoformat()})

    logger.info(f"Created register {register.id} for activity {activity.id} on {day}")
    return register


def auto_create_registers(activity, start_date, end_date, created_by=None):
    """Create missing registers for every run date in the range that has confirmed bookings"""
    start_date = max(start_date, activity.start_date)
    end_date = min(end_date, activity.end_date)
    existing = set(
        Register.objects.filter(activity=activity, date__range=(start_date, end_date)).values_list('date', flat=True)
    )

    created = []
    day = start_date
    while day <= end_date:
        if day not in existing and activity.runs_on(day) and _confirmed_bookings(activity, day).exists():
            created.append(create_register(activity, day, created_by=created_by))
        day += timedelta(days=1)
    return created


def record_attendance(register, records, recorded_by=None):
    """
    Upsert attendance rows by child. A child may only be recorded if they
    already have a row or a confirmed booking for the register's date.
    """
    if register.status == 'completed':
        raise ServiceError('Register is completed and can no longer be changed', code='REGISTER_COMPLETED')

    recorded_by = recorded_by if getattr(recorded_by, 'is_authenticated', False) else None
    updated = []
    with transaction.atomic():
        for record in records:
            child_id = record['child']
            row = Attendance.objects.select_for_update().filter(register=register, child_id=child_id).first()
            if row is None:
                booking = _confirmed_bookings(register.activity, register.date).filter(child_id=child_id).first()
                if booking is None:
                    raise ServiceError(f'Child {child_id} has no confirmed booking for this register',
                                       code='CHILD_NOT_BOOKED', details={'child': child_id})
                row = Attendance(register=register, booking=booking, child=booking.child)

            row.present = record.get('present', row.present)
            if 'check_in_time' in record:
                row.check_in_time = record['check_in_time']
            elif row.present and row.check_in_time is None:
                row.check_in_time = timezone.now()
            if 'check_out_time' in record:
                row.check_out_time = record['check_out_time']
            if 'notes' in record:
                row.notes = record['notes']
            row.recorded_by = recorded_by
            row.save()
            updated.append(row)

        log_event(recorded_by, 'attendance_recorded', 'register', register.id,
                  details={'records': len(updated)})

    logger.info(f"Recorded {len(updated)} attendance rows on register {register.id}")
    return updated


def get_register_stats(register):
    total = register.attendance.count()
    present = register.attendance.filter(present=True).count()
    return {
        'register': register.id,
        'total_bookings': total,
        'present': present,
        'absent': total - present,
        'attendance_rate': round(present / total * 100, 1) if total else 0.0,
    }
