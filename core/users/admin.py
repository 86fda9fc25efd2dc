from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Child


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'full_name', 'email', 'mobile', 'role', 'is_active', 'is_staff', 'date_joined')
    list_filter = ('role', 'is_active', 'is_staff', 'is_superuser')
    search_fields = ('username', 'email', 'mobile', 'first_name', 'last_name')
    ordering = ('-date_joined',)

    fieldsets = (
        (None, {'fields': ('username', 'password')}),
        ('Personal info', {'fields': ('first_name', 'last_name', 'email', 'mobile')}),
        ('Address', {'fields': ('address_line1', 'address_line2', 'city', 'postcode', 'country')}),
        ('Permissions', {'fields': ('role', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'role', 'password1', 'password2'),
        }),
    )

    @admin.display(description='Full name')
    def full_name(self, obj):
        return obj.get_full_name()


@admin.register(Child)
class ChildAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'parent', 'date_of_birth', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('first_name', 'last_name', 'parent__username', 'parent__email')
    raw_id_fields = ('parent',)
