import csv
import logging

from django.db.models import Sum, Count
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.response import Response

from core.common.exceptions import NotFoundError, ServiceError
from core.common.permissions import IsAdminOrStaff
from core.venues.models import Venue
from .models import FeeLedgerEntry
from .serializers import FeePreviewSerializer, FeeLedgerEntrySerializer
from .utils import calculate_fee_split, calculate_venue_fee_split, get_vat_rate

logger = logging.getLogger(__name__)

TOTAL_FIELDS = (
    'gross_amount', 'franchise_fee', 'vat_amount', 'net_franchise_fee',
    'franchise_fee_total', 'admin_fee', 'net_to_venue',
)


@api_view(['POST'])
@permission_classes([IsAdminOrStaff])
def fee_preview(request):
    """
    Preview the fee split for a gross amount.

    POST /api/v1/finance/fee-preview/
    """
    serializer = FeePreviewSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if data.get('venue') is not None:
        try:
            venue = Venue.objects.select_related('business_account').get(pk=data['venue'])
        except Venue.DoesNotExist:
            raise NotFoundError(f"Venue {data['venue']} not found")
        split, config = calculate_venue_fee_split(venue, data['gross_amount'])
        config = {k: str(v) for k, v in config.items()}
    else:
        vat_rate = get_vat_rate()
        try:
            split = calculate_fee_split(
                data['gross_amount'],
                data['franchise_fee_type'],
                data['franchise_fee_value'],
                vat_mode=data['vat_mode'],
                admin_fee=data['admin_fee_amount'],
                vat_rate=vat_rate,
            )
        except ValueError as e:
            raise ServiceError(str(e), code='INVALID_FEE_CONFIG')
        config = {
            'fee_type': data['franchise_fee_type'],
            'fee_value': str(data['franchise_fee_value']),
            'vat_mode': data['vat_mode'],
            'admin_fee': str(data['admin_fee_amount']),
            'vat_rate': str(vat_rate),
        }

    return Response({'split': split, 'config': config})


class FeeLedgerViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Fee ledger with totals and CSV export (Admin/Staff only)
    """
    serializer_class = FeeLedgerEntrySerializer
    permission_classes = [IsAdminOrStaff]

    def get_queryset(self):
        queryset = FeeLedgerEntry.objects.select_related('venue', 'booking', 'business_account')
        params = self.request.query_params
        if params.get('venue'):
            queryset = queryset.filter(venue_id=params['venue'])
        if params.get('business_account'):
            queryset = queryset.filter(business_account_id=params['business_account'])
        if params.get('entry_type'):
            queryset = queryset.filter(entry_type=params['entry_type'])
        if params.get('source'):
            queryset = queryset.filter(source=params['source'])
        if params.get('date_from'):
            queryset = queryset.filter(created_at__date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(created_at__date__lte=params['date_to'])
        return queryset

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Totals overall and per venue (pence)"""
        queryset = self.get_queryset()
        totals = queryset.aggregate(count=Count('id'), **{f: Sum(f) for f in TOTAL_FIELDS})
        totals = {k: v or 0 for k, v in totals.items()}

        by_venue = (
            queryset.values('venue_id', 'venue__name')
            .annotate(count=Count('id'), **{f: Sum(f) for f in TOTAL_FIELDS})
            .order_by('venue__name')
        )
        return Response({
            'totals': totals,
            'by_venue': [
                {
                    'venue': row['venue_id'],
                    'venue_name': row['venue__name'],
                    'count': row['count'],
                    **{f: row[f] or 0 for f in TOTAL_FIELDS},
                }
                for row in by_venue
            ],
        })

    @action(detail=False, methods=['get'])
    def export(self, request):
        """Stream the filtered ledger as CSV"""
        queryset = self.get_queryset()
        filename = f"fee-ledger-{timezone.now():%Y%m%d-%H%M%S}.csv"
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow([
            'Date', 'Booking', 'Venue', 'Entry Type', 'Source', 'Fee Type', 'Fee Value', 'VAT Mode',
            'Gross', 'Franchise Fee', 'VAT', 'Franchise Fee Total', 'Admin Fee', 'Net To Venue',
        ])
        for entry in queryset.iterator():
            writer.writerow([
                entry.created_at.date().isoformat(),
                entry.booking.booking_number,
                entry.venue.name,
                entry.entry_type,
                entry.source,
                entry.fee_type,
                entry.fee_value,
                entry.vat_mode,
                entry.gross_amount,
                entry.franchise_fee,
                entry.vat_amount,
                entry.franchise_fee_total,
                entry.admin_fee,
                entry.net_to_venue,
            ])
        logger.info(f"Fee ledger exported by {request.user.username}")
        return response
