from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import UserViewSet, ChildViewSet

router = DefaultRouter()
# Register more specific routes first
router.register(r'children', ChildViewSet, basename='child')
router.register(r'', UserViewSet, basename='user')

urlpatterns = [
    path('', include(router.urls)),
]
