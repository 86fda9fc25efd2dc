from django.db import models


class FeeLedgerEntry(models.Model):
    """
    Fee split recorded when a booking is paid, and reversed when that payment
    is refunded to credit.

    The franchise fee configuration in effect at payment time is copied onto
    the entry, so later config changes never alter historical figures.
    Reversal entries carry negated amounts and reuse the payment entry's
    configuration. All amounts are in minor units (pence).
    """
    SOURCE_CHOICES = [
        ('stripe', 'Stripe'),
        ('tfc', 'Tax-Free Childcare'),
        ('credit', 'Credit'),
        ('manual', 'Manual'),
        ('webhook', 'External Webhook'),
        ('refund', 'Refund'),
    ]
    ENTRY_TYPE_CHOICES = [
        ('payment', 'Payment'),
        ('reversal', 'Reversal'),
    ]

    booking = models.ForeignKey('booking.Booking', on_delete=models.PROTECT, related_name='fee_entries')
    venue = models.ForeignKey('venues.Venue', on_delete=models.PROTECT, related_name='fee_entries')
    business_account = models.ForeignKey('venues.BusinessAccount', on_delete=models.PROTECT, related_name='fee_entries')
    entry_type = models.CharField(max_length=10, choices=ENTRY_TYPE_CHOICES, default='payment')
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    payment_reference = models.CharField(max_length=255, blank=True)

    # Config snapshot
    fee_type = models.CharField(max_length=10)
    fee_value = models.DecimalField(max_digits=10, decimal_places=2)
    vat_mode = models.CharField(max_length=10)
    vat_rate = models.DecimalField(max_digits=5, decimal_places=4)

    # Split
    gross_amount = models.IntegerField()
    franchise_fee = models.IntegerField()
    vat_amount = models.IntegerField()
    net_franchise_fee = models.IntegerField()
    franchise_fee_total = models.IntegerField()
    admin_fee = models.IntegerField()
    net_to_venue = models.IntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'fee_ledger_entries'
        verbose_name = 'Fee Ledger Entry'
        verbose_name_plural = 'Fee Ledger Entries'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'entry_type'], name='unique_fee_entry_per_booking_type'),
        ]
        indexes = [
            models.Index(fields=['venue', 'created_at']),
            models.Index(fields=['business_account', 'created_at']),
        ]

    def __str__(self):
        return f"Ledger {self.booking_id} ({self.entry_type}): gross {self.gross_amount}p, net {self.net_to_venue}p"
