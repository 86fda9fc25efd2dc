from django.db import models
from core.users.models import User


FEE_TYPE_CHOICES = [
    ('percent', 'Percentage'),
    ('fixed', 'Fixed Amount'),
]

VAT_MODE_CHOICES = [
    ('inclusive', 'VAT Inclusive'),
    ('exclusive', 'VAT Exclusive'),
]


class BusinessAccount(models.Model):
    """
    Franchise business that owns one or more venues.
    Holds the franchise fee configuration applied to every paid booking.
    """
    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='business_accounts'
    )
    contact_email = models.EmailField(blank=True)

    franchise_fee_type = models.CharField(max_length=10, choices=FEE_TYPE_CHOICES, default='percent')
    franchise_fee_value = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        help_text="Percentage of gross for 'percent', amount in pounds for 'fixed'"
    )
    vat_mode = models.CharField(max_length=10, choices=VAT_MODE_CHOICES, default='inclusive')
    admin_fee_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        help_text="Flat admin fee in pounds deducted from each paid booking"
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'business_accounts'
        verbose_name = 'Business Account'
        verbose_name_plural = 'Business Accounts'
        ordering = ['name']

    def __str__(self):
        return self.name


class Venue(models.Model):
    """
    A physical venue running activities. May override its business account's
    franchise fee and carries its own Tax-Free Childcare settings.
    """
    business_account = models.ForeignKey(BusinessAccount, on_delete=models.PROTECT, related_name='venues')
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    postcode = models.CharField(max_length=10, blank=True)
    capacity = models.PositiveIntegerField(default=0)
    managers = models.ManyToManyField(User, blank=True, related_name='managed_venues')

    # Franchise fee override
    inherit_franchise_fee = models.BooleanField(default=True)
    franchise_fee_type = models.CharField(max_length=10, choices=FEE_TYPE_CHOICES, null=True, blank=True)
    franchise_fee_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Tax-Free Childcare
    tfc_enabled = models.BooleanField(default=False)
    tfc_hold_period_days = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="Days to hold a TFC booking awaiting payment. Null uses the platform default."
    )
    tfc_instructions = models.TextField(blank=True)
    tfc_payee_name = models.CharField(max_length=200, blank=True)
    tfc_payee_reference = models.CharField(max_length=100, blank=True)
    tfc_sort_code = models.CharField(max_length=8, blank=True)
    tfc_account_number = models.CharField(max_length=8, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'venues'
        verbose_name = 'Venue'
        verbose_name_plural = 'Venues'
        ordering = ['name']
        indexes = [
            models.Index(fields=['business_account', 'is_active']),
        ]

    def __str__(self):
        return self.name


class Activity(models.Model):
    """
    Bookable activity run at a venue
    """
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('cancelled', 'Cancelled'),
        ('completed', 'Completed'),
    ]

    venue = models.ForeignKey(Venue, on_delete=models.PROTECT, related_name='activities')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    activity_type = models.CharField(max_length=50, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    capacity = models.PositiveIntegerField(default=20)
    start_date = models.DateField()
    end_date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    min_age = models.PositiveIntegerField(null=True, blank=True)
    max_age = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'activities'
        verbose_name = 'Activity'
        verbose_name_plural = 'Activities'
        ordering = ['start_date', 'title']
        indexes = [
            models.Index(fields=['venue', 'status']),
            models.Index(fields=['start_date', 'end_date']),
        ]

    def __str__(self):
        return f"{self.title} @ {self.venue.name}"

    def runs_on(self, day):
        return self.start_date <= day <= self.end_date
