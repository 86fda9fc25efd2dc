from django.db import models
from core.users.models import User, Child


class Register(models.Model):
    """
    Attendance register for one activity on one date
    """
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('completed', 'Completed'),
    ]

    activity = models.ForeignKey('venues.Activity', on_delete=models.PROTECT, related_name='registers')
    date = models.DateField()
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='created_registers'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'registers'
        verbose_name = 'Register'
        verbose_name_plural = 'Registers'
        ordering = ['-date']
        constraints = [
            models.UniqueConstraint(fields=['activity', 'date'], name='unique_register_activity_date'),
        ]

    def __str__(self):
        return f"{self.activity.title} - {self.date}"


class Attendance(models.Model):
    register = models.ForeignKey(Register, on_delete=models.CASCADE, related_name='attendance')
    booking = models.ForeignKey('booking.Booking', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='attendance')
    child = models.ForeignKey(Child, on_delete=models.PROTECT, related_name='attendance')
    present = models.BooleanField(default=False)
    check_in_time = models.DateTimeField(null=True, blank=True)
    check_out_time = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    recorded_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='recorded_attendance'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'attendance'
        verbose_name = 'Attendance'
        verbose_name_plural = 'Attendance'
        ordering = ['child__first_name', 'child__last_name']
        constraints = [
            models.UniqueConstraint(fields=['register', 'child'], name='unique_attendance_register_child'),
        ]

    def __str__(self):
        return f"{self.child} - {'present' if self.present else 'absent'}"
