from django.urls import path
from .views import settings_endpoint

urlpatterns = [
    path('', settings_endpoint, name='settings'),
]
