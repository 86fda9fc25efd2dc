from django.contrib import admin
from .models import BusinessAccount, Venue, Activity


class VenueInline(admin.TabularInline):
    model = Venue
    extra = 0
    fields = ('name', 'city', 'inherit_franchise_fee', 'tfc_enabled', 'is_active')
    show_change_link = True


@admin.register(BusinessAccount)
class BusinessAccountAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'franchise_fee_type', 'franchise_fee_value', 'vat_mode', 'admin_fee_amount', 'is_active')
    list_filter = ('franchise_fee_type', 'vat_mode', 'is_active')
    search_fields = ('name', 'contact_email', 'owner__username')
    inlines = [VenueInline]


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ('name', 'business_account', 'city', 'inherit_franchise_fee', 'tfc_enabled', 'is_active')
    list_filter = ('tfc_enabled', 'inherit_franchise_fee', 'is_active')
    search_fields = ('name', 'city', 'postcode', 'business_account__name')
    filter_horizontal = ('managers',)

    fieldsets = (
        (None, {'fields': ('business_account', 'name', 'address', 'city', 'postcode', 'capacity', 'managers', 'is_active')}),
        ('Franchise Fee', {'fields': ('inherit_franchise_fee', 'franchise_fee_type', 'franchise_fee_value')}),
        ('Tax-Free Childcare', {
            'fields': ('tfc_enabled', 'tfc_hold_period_days', 'tfc_instructions', 'tfc_payee_name',
                       'tfc_payee_reference', 'tfc_sort_code', 'tfc_account_number')
        }),
    )


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ('title', 'venue', 'price', 'capacity', 'start_date', 'end_date', 'status')
    list_filter = ('status', 'venue')
    search_fields = ('title', 'venue__name')
    date_hierarchy = 'start_date'
