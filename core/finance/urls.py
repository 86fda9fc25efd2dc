from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import fee_preview, FeeLedgerViewSet

router = DefaultRouter()
router.register(r'ledger', FeeLedgerViewSet, basename='fee-ledger')

urlpatterns = [
    path('fee-preview/', fee_preview, name='fee-preview'),
    path('summary/', FeeLedgerViewSet.as_view({'get': 'summary'}), name='fee-summary'),
    path('', include(router.urls)),
]
