from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('booking_number', 'parent', 'child', 'activity', 'booking_date', 'amount',
                    'status', 'payment_status', 'payment_method', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method', 'booking_date')
    search_fields = ('booking_number', 'parent__username', 'parent__email', 'child__first_name',
                     'child__last_name', 'activity__title')
    readonly_fields = ('booking_number', 'created_at', 'updated_at', 'confirmed_at', 'cancelled_at')

    def has_delete_permission(self, request, obj=None):
        return False
