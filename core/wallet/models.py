from django.db import models
from django.utils import timezone
from core.users.models import User


class Credit(models.Model):
    """
    Booking credit held by a parent. Issued from refunds, TFC conversions or
    goodwill and consumed against future bookings.
    """
    SOURCE_CHOICES = [
        ('refund', 'Refund'),
        ('tfc_conversion', 'TFC Conversion'),
        ('manual', 'Manual'),
        ('goodwill', 'Goodwill'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('used', 'Used'),
        ('expired', 'Expired'),
        ('cancelled', 'Cancelled'),
    ]

    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='credits')
    venue = models.ForeignKey('venues.Venue', on_delete=models.SET_NULL, null=True, blank=True, related_name='credits')
    source_booking = models.ForeignKey(
        'booking.Booking', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='issued_credits'
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    used_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    description = models.TextField(blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    issued_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='issued_credits'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'credits'
        verbose_name = 'Credit'
        verbose_name_plural = 'Credits'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['parent', 'status', 'expires_at']),
        ]

    def __str__(self):
        return f"Credit £{self.amount} ({self.source}) - {self.parent.username}"

    @property
    def remaining_amount(self):
        return self.amount - self.used_amount

    @property
    def is_expired(self):
        return self.expires_at is not None and self.expires_at <= timezone.now()


class CreditTransaction(models.Model):
    """
    Credit ledger; balances are the parent's available credit before/after
    """
    TRANSACTION_TYPE_CHOICES = [
        ('ISSUE', 'Issue'),
        ('REDEEM', 'Redeem'),
        ('EXPIRE', 'Expire'),
        ('CANCEL', 'Cancel'),
    ]

    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='credit_transactions')
    credit = models.ForeignKey(Credit, on_delete=models.CASCADE, related_name='transactions')
    booking = models.ForeignKey(
        'booking.Booking', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='credit_transactions'
    )

    transaction_type = models.CharField(max_length=10, choices=TRANSACTION_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    balance_before = models.DecimalField(max_digits=10, decimal_places=2)
    balance_after = models.DecimalField(max_digits=10, decimal_places=2)
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'credit_transactions'
        verbose_name = 'Credit Transaction'
        verbose_name_plural = 'Credit Transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['parent', 'transaction_type', 'created_at']),
        ]

    def __str__(self):
        return f"{self.transaction_type} - £{self.amount} ({self.parent.username})"
