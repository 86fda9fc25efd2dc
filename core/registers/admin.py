from django.contrib import admin
from .models import Register, Attendance


class AttendanceInline(admin.TabularInline):
    model = Attendance
    extra = 0
    fields = ('child', 'booking', 'present', 'check_in_time', 'check_out_time', 'notes')


@admin.register(Register)
class RegisterAdmin(admin.ModelAdmin):
    list_display = ('activity', 'date', 'status', 'created_by', 'created_at')
    list_filter = ('status', 'date')
    search_fields = ('activity__title', 'activity__venue__name')
    inlines = [AttendanceInline]
