from django.db import models
from django.utils import timezone
import logging
import random
import string

from core.common.exceptions import InvalidTransitionError
from core.users.models import User, Child

logger = logging.getLogger(__name__)


class Booking(models.Model):
    """
    A child's place on an activity for a given date.
    Bookings are soft-cancelled and never deleted.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('card', 'Card'),
        ('tfc', 'Tax-Free Childcare'),
        ('credit', 'Credit'),
    ]

    VALID_TRANSITIONS = {
        'pending': ['confirmed', 'cancelled'],
        'confirmed': ['cancelled'],
        'cancelled': [],
    }

    booking_number = models.CharField(max_length=20, unique=True)
    parent = models.ForeignKey(User, on_delete=models.PROTECT, related_name='bookings')
    child = models.ForeignKey(Child, on_delete=models.PROTECT, related_name='bookings')
    activity = models.ForeignKey('venues.Activity', on_delete=models.PROTECT, related_name='bookings')
    booking_date = models.DateField()
    amount = models.DecimalField(max_digits=10, decimal_places=2)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='card')

    payment_intent_id = models.CharField(max_length=255, null=True, blank=True, unique=True)
    credits_applied = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    notes = models.TextField(blank=True)

    cancel_reason = models.TextField(blank=True)
    cancelled_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='cancelled_bookings'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'bookings'
        verbose_name = 'Booking'
        verbose_name_plural = 'Bookings'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['parent', 'status']),
            models.Index(fields=['activity', 'booking_date', 'status']),
            models.Index(fields=['payment_method', 'payment_status']),
        ]

    def __str__(self):
        return f"Booking {self.booking_number} - {self.child}"

    def save(self, *args, **kwargs):
        if not self.booking_number:
            self.booking_number = self.generate_booking_number()
        super().save(*args, **kwargs)

    def generate_booking_number(self):
        """Generate unique booking number"""
        while True:
            suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))
            number = f"BK{suffix}"
            if not Booking.objects.filter(booking_number=number).exists():
                return number

    @property
    def venue(self):
        return self.activity.venue

    def can_transition_to(self, new_status):
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])

    def transition_to(self, new_status, reason='', user=None):
        """
        Move the booking to new_status, enforcing VALID_TRANSITIONS.
        Caller is responsible for saving related payment fields.
        """
        if new_status not in dict(self.STATUS_CHOICES):
            raise ValueError(f"Unknown booking status: {new_status}")
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError('booking', self.status, new_status,
                                         self.VALID_TRANSITIONS.get(self.status, []))

        old_status = self.status
        self.status = new_status
        now = timezone.now()
        if new_status == 'confirmed':
            self.confirmed_at = now
        elif new_status == 'cancelled':
            self.cancelled_at = now
            self.cancel_reason = reason or ''
            self.cancelled_by = user if getattr(user, 'is_authenticated', False) else None
        logger.info(f"Booking {self.id} status {old_status} -> {new_status}")

    def append_note(self, text, user=None):
        stamp = timezone.now().strftime('%Y-%m-%d %H:%M')
        author = f" ({user.username})" if getattr(user, 'is_authenticated', False) else ''
        line = f"[{stamp}]{author} {text}"
        self.notes = f"{self.notes}\n{line}" if self.notes else line
