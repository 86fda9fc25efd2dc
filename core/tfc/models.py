from decimal import Decimal
import math
import logging

from django.db import models
from django.utils import timezone

from core.common.exceptions import InvalidTransitionError
from core.users.models import User

logger = logging.getLogger(__name__)


class TFCBooking(models.Model):
    """
    Payment record for a booking paid through Tax-Free Childcare.
    The parent pays the venue from their TFC account using the reference;
    an admin reconciles the payment by hand.
    """
    STATUS_CHOICES = [
        ('pending_payment', 'Pending Payment'),
        ('part_paid', 'Part Paid'),
        ('paid', 'Paid'),
        ('cancelled', 'Cancelled'),
    ]

    VALID_TRANSITIONS = {
        'pending_payment': ['part_paid', 'paid', 'cancelled'],
        'part_paid': ['paid'],
        'paid': [],
        'cancelled': [],
    }

    booking = models.OneToOneField('booking.Booking', on_delete=models.PROTECT, related_name='tfc')
    reference = models.CharField(max_length=30, unique=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    amount_received = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending_payment')

    hold_period_days = models.PositiveIntegerField()
    deadline = models.DateTimeField()
    admin_notes = models.TextField(blank=True)

    reminder_sent_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.TextField(blank=True)
    credit = models.ForeignKey(
        'wallet.Credit', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='tfc_conversions'
    )
    processed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='processed_tfc_bookings'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tfc_bookings'
        verbose_name = 'TFC Booking'
        verbose_name_plural = 'TFC Bookings'
        ordering = ['deadline']
        indexes = [
            models.Index(fields=['status', 'deadline']),
        ]

    def __str__(self):
        return f"{self.reference} ({self.status})"

    @property
    def remaining_amount(self):
        remaining = self.amount - self.amount_received
        return remaining if remaining > 0 else Decimal('0.00')

    @property
    def days_remaining(self):
        seconds = (self.deadline - timezone.now()).total_seconds()
        return math.ceil(seconds / 86400)

    @property
    def is_overdue(self):
        return self.status == 'pending_payment' and self.deadline < timezone.now()

    def can_transition_to(self, new_status):
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])

    def transition_to(self, new_status, reason='', user=None):
        if new_status not in dict(self.STATUS_CHOICES):
            raise ValueError(f"Unknown TFC status: {new_status}")
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError('TFC booking', self.status, new_status,
                                         self.VALID_TRANSITIONS.get(self.status, []))

        old_status = self.status
        self.status = new_status
        now = timezone.now()
        if new_status == 'paid':
            self.paid_at = now
        elif new_status == 'cancelled':
            self.cancelled_at = now
            self.cancel_reason = reason or ''
        if getattr(user, 'is_authenticated', False):
            self.processed_by = user
        logger.info(f"TFC booking {self.reference} status {old_status} -> {new_status}")

    def append_note(self, text, user=None):
        stamp = timezone.now().strftime('%Y-%m-%d %H:%M')
        author = f" ({user.username})" if getattr(user, 'is_authenticated', False) else ''
        line = f"[{stamp}]{author} {text}"
        self.admin_notes = f"{self.admin_notes}\n{line}" if self.admin_notes else line
