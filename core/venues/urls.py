from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BusinessAccountViewSet, VenueViewSet, ActivityViewSet

router = DefaultRouter()
router.register(r'business-accounts', BusinessAccountViewSet, basename='business-account')
router.register(r'venues', VenueViewSet, basename='venue')
router.register(r'activities', ActivityViewSet, basename='activity')

urlpatterns = [
    path('', include(router.urls)),
]
