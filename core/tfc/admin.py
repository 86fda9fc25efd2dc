from django.contrib import admin
from .models import TFCBooking


@admin.register(TFCBooking)
class TFCBookingAdmin(admin.ModelAdmin):
    list_display = ('reference', 'booking', 'amount', 'amount_received', 'status', 'deadline',
                    'reminder_sent_at', 'processed_by')
    list_filter = ('status', 'deadline')
    search_fields = ('reference', 'booking__booking_number', 'booking__parent__email')
    readonly_fields = ('reference', 'created_at', 'updated_at', 'paid_at', 'cancelled_at', 'credit')
