from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import TFCBookingViewSet

router = DefaultRouter()
router.register(r'bookings', TFCBookingViewSet, basename='tfc-booking')

urlpatterns = [
    path('', include(router.urls)),
]
