from django.db import models
from core.users.models import User


class PlatformSettings(models.Model):
    """
    Singleton model for platform-wide settings.
    Only one instance should exist in the database.
    """
    # Tax-Free Childcare
    default_tfc_hold_period_days = models.PositiveIntegerField(
        default=5,
        help_text="Days a TFC booking is held awaiting payment when the venue sets no hold period (default: 5)"
    )
    tfc_reminder_hours = models.PositiveIntegerField(
        default=48,
        help_text="Send a payment reminder when a TFC deadline is this many hours away (default: 48)"
    )
    auto_cancel_expired_tfc = models.BooleanField(
        default=True,
        help_text="If True, unpaid TFC bookings past their deadline are cancelled by the deadline job"
    )

    # Finance
    vat_rate_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=20,
        help_text="VAT rate applied to franchise fees (default: 20%)"
    )

    # Credits
    credit_expiry_days = models.PositiveIntegerField(
        default=365,
        help_text="Days before an issued credit expires (default: 365)"
    )

    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_settings',
        help_text="User who last updated these settings"
    )

    class Meta:
        db_table = 'platform_settings'
        verbose_name = 'Platform Settings'
        verbose_name_plural = 'Platform Settings'

    def __str__(self):
        return f"Platform Settings (TFC hold: {self.default_tfc_hold_period_days} days, VAT: {self.vat_rate_percentage}%)"

    @classmethod
    def get_settings(cls):
        """
        Get or create the singleton settings instance.
        """
        settings, created = cls.objects.get_or_create(
            pk=1,
            defaults={
                'default_tfc_hold_period_days': 5,
                'tfc_reminder_hours': 48,
                'auto_cancel_expired_tfc': True,
                'vat_rate_percentage': 20,
                'credit_expiry_days': 365,
            }
        )
        return settings

    def save(self, *args, **kwargs):
        """
        Always save with pk=1 to maintain singleton pattern.
        """
        self.pk = 1
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Cannot delete PlatformSettings. It is a singleton.")
