from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'webhooks/events', views.WebhookEventViewSet, basename='webhook-event')

urlpatterns = [
    path('payments/intent/', views.create_payment_intent, name='payment-intent'),
    path('webhooks/stripe/', views.stripe_webhook, name='stripe-webhook'),
    path('webhooks/external/', views.external_webhook, name='external-webhook'),
    path('', include(router.urls)),
]
