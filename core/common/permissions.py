from rest_framework.permissions import BasePermission, SAFE_METHODS


def is_admin_or_staff(user):
    return bool(
        user and user.is_authenticated
        and (user.is_superuser or user.role in ['admin', 'staff'])
    )


def is_admin(user):
    return bool(
        user and user.is_authenticated
        and (user.is_superuser or user.role == 'admin')
    )


class IsAdminOrStaff(BasePermission):
    message = 'Permission denied. Only admin or staff can perform this action.'

    def has_permission(self, request, view):
        return is_admin_or_staff(request.user)


class IsAdminOrReadOnly(BasePermission):
    """Any authenticated user may read; only admin/staff may write."""
    message = 'Permission denied. Only admin or staff can modify this resource.'

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_admin_or_staff(request.user)
