from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from django.db.models import Q
import logging

from core.audit.utils import log_event
from core.common.permissions import IsAdminOrReadOnly, is_admin_or_staff
from .models import BusinessAccount, Venue, Activity
from .serializers import (
    BusinessAccountSerializer,
    VenueSerializer,
    TFCConfigSerializer,
    ActivitySerializer,
)
from .utils import get_tfc_config

logger = logging.getLogger(__name__)


class BusinessAccountViewSet(viewsets.ModelViewSet):
    """
    Franchise business accounts and their fee configuration
    """
    queryset = BusinessAccount.objects.select_related('owner').all()
    serializer_class = BusinessAccountSerializer
    permission_classes = [IsAdminOrReadOnly]

    def perform_update(self, serializer):
        account = serializer.save()
        log_event(
            self.request.user, 'franchise_fee_updated', 'business_account', account.id,
            details={
                'franchise_fee_type': account.franchise_fee_type,
                'franchise_fee_value': str(account.franchise_fee_value),
                'vat_mode': account.vat_mode,
                'admin_fee_amount': str(account.admin_fee_amount),
            },
            request=self.request,
        )


class VenueViewSet(viewsets.ModelViewSet):
    """
    Venues; TFC configuration is managed through the tfc-config action
    """
    serializer_class = VenueSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        queryset = Venue.objects.select_related('business_account')

        business_account = self.request.query_params.get('business_account')
        if business_account:
            queryset = queryset.filter(business_account_id=business_account)

        tfc_enabled = self.request.query_params.get('tfc_enabled')
        if tfc_enabled is not None:
            queryset = queryset.filter(tfc_enabled=tfc_enabled.lower() in ['1', 'true', 'yes'])

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(city__icontains=search) | Q(postcode__icontains=search)
            )
        return queryset

    @action(detail=True, methods=['get', 'put', 'patch'], url_path='tfc-config')
    def tfc_config(self, request, pk=None):
        """Get or update a venue's Tax-Free Childcare configuration"""
        venue = self.get_object()

        if request.method == 'GET':
            return Response(get_tfc_config(venue))

        serializer = TFCConfigSerializer(venue, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"TFC config for venue {venue.id} updated by {request.user.username}")
        log_event(
            request.user, 'tfc_config_updated', 'venue', venue.id,
            details={k: str(v) for k, v in serializer.validated_data.items()
                     if k not in ('tfc_sort_code', 'tfc_account_number')},
            request=request,
        )
        return Response(get_tfc_config(venue))


class ActivityViewSet(viewsets.ModelViewSet):
    """
    Activities; parents see active ones, admin/staff see all
    """
    serializer_class = ActivitySerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        queryset = Activity.objects.select_related('venue')
        if not is_admin_or_staff(self.request.user):
            queryset = queryset.filter(status='active')

        params = self.request.query_params
        if params.get('venue'):
            queryset = queryset.filter(venue_id=params['venue'])
        if params.get('status') and is_admin_or_staff(self.request.user):
            queryset = queryset.filter(status=params['status'].strip())
        if params.get('date'):
            queryset = queryset.filter(start_date__lte=params['date'], end_date__gte=params['date'])
        if params.get('search'):
            queryset = queryset.filter(
                Q(title__icontains=params['search']) | Q(venue__name__icontains=params['search'])
            )
        return queryset
