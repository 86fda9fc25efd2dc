"""
URL configuration for bookon project.
"""
from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenBlacklistView,
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/v1/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('api/v1/auth/logout/', TokenBlacklistView.as_view(), name='token-blacklist'),
    path('api/v1/users/', include('core.users.urls')),
    path('api/v1/settings/', include('core.settings.urls')),
    path('api/v1/', include('core.venues.urls')),
    path('api/v1/', include('core.booking.urls')),
    path('api/v1/tfc/', include('core.tfc.urls')),
    path('api/v1/finance/', include('core.finance.urls')),
    path('api/v1/wallet/', include('core.wallet.urls')),
    path('api/v1/', include('core.payments.urls')),
    path('api/v1/notifications/', include('core.notification.urls')),
    path('api/v1/registers/', include('core.registers.urls')),
    path('api/v1/audit-logs/', include('core.audit.urls')),
]
