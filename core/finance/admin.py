from django.contrib import admin
from .models import FeeLedgerEntry


@admin.register(FeeLedgerEntry)
class FeeLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ('booking', 'venue', 'entry_type', 'source', 'gross_amount', 'franchise_fee_total', 'admin_fee', 'net_to_venue', 'created_at')
    list_filter = ('entry_type', 'source', 'vat_mode', 'fee_type')
    search_fields = ('booking__booking_number', 'venue__name', 'payment_reference')
    readonly_fields = [f.name for f in FeeLedgerEntry._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
