from django.contrib import admin
from .models import PlatformSettings


@admin.register(PlatformSettings)
class PlatformSettingsAdmin(admin.ModelAdmin):
    list_display = ('id', 'default_tfc_hold_period_days', 'vat_rate_percentage', 'credit_expiry_days', 'updated_at', 'updated_by')
    readonly_fields = ('id', 'updated_at', 'updated_by')

    fieldsets = (
        ('Tax-Free Childcare', {
            'fields': ('default_tfc_hold_period_days', 'tfc_reminder_hours', 'auto_cancel_expired_tfc')
        }),
        ('Finance', {
            'fields': ('vat_rate_percentage', 'credit_expiry_days')
        }),
        ('Metadata', {
            'fields': ('id', 'updated_at', 'updated_by'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)
