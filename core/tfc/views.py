from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
import logging

from core.audit.utils import log_event
from core.common.permissions import IsAdminOrStaff, is_admin_or_staff
from .models import TFCBooking
from .serializers import (
    TFCBookingSerializer,
    MarkPaidSerializer,
    PartPaidSerializer,
    TFCCancelSerializer,
    ConvertToCreditSerializer,
    BulkTFCSerializer,
)
from .utils import (
    get_tfc_instructions,
    mark_paid,
    mark_part_paid,
    cancel_tfc_booking,
    convert_to_credit,
    bulk_mark_paid,
    bulk_cancel,
    get_pending_queue,
    get_pending_stats,
    get_tfc_analytics,
    run_deadline_job,
)

logger = logging.getLogger(__name__)


class TFCBookingViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Tax-Free Childcare payments. Parents can view their own and fetch payment
    instructions; reconciliation actions are Admin/Staff only.
    """
    serializer_class = TFCBookingSerializer
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action in ('list', 'retrieve', 'instructions'):
            return [IsAuthenticated()]
        return [IsAdminOrStaff()]

    def get_queryset(self):
        queryset = TFCBooking.objects.select_related(
            'booking__activity__venue', 'booking__parent', 'booking__child'
        )
        user = self.request.user
        if not is_admin_or_staff(user):
            queryset = queryset.filter(booking__parent=user)

        params = self.request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'].strip())
        if params.get('venue'):
            queryset = queryset.filter(booking__activity__venue_id=params['venue'])
        if params.get('reference'):
            queryset = queryset.filter(reference__icontains=params['reference'].strip())
        return queryset

    @action(detail=False, methods=['get'])
    def pending(self, request):
        """Outstanding TFC payments ordered by deadline, with queue stats"""
        queryset = get_pending_queue(venue_id=request.query_params.get('venue'))
        stats = get_pending_stats(queryset)
        return Response({
            'bookings': TFCBookingSerializer(queryset, many=True).data,
            'stats': stats,
        })

    @action(detail=False, methods=['get'])
    def analytics(self, request):
        params = request.query_params
        return Response(get_tfc_analytics(
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
            venue_id=params.get('venue'),
        ))

    @action(detail=False, methods=['post'], url_path='bulk-mark-paid')
    def bulk_mark_paid(self, request):
        serializer = BulkTFCSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(bulk_mark_paid(serializer.validated_data['booking_ids'], user=request.user))

    @action(detail=False, methods=['post'], url_path='bulk-cancel')
    def bulk_cancel(self, request):
        serializer = BulkTFCSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return Response(bulk_cancel(data['booking_ids'], reason=data['reason'], user=request.user))

    @action(detail=False, methods=['post'], url_path='run-deadline-job')
    def run_deadline_job(self, request):
        """Run the reminder and auto-cancel job now"""
        result = run_deadline_job()
        log_event(request.user, 'tfc_deadline_job_run', 'tfc_booking', '-', details=result, request=request)
        return Response(result)

    @action(detail=True, methods=['post'], url_path='mark-paid')
    def mark_paid(self, request, pk=None):
        serializer = MarkPaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tfc = mark_paid(self.get_object(), user=request.user, notes=serializer.validated_data['notes'])
        return Response(TFCBookingSerializer(tfc).data)

    @action(detail=True, methods=['post'], url_path='part-paid')
    def part_paid(self, request, pk=None):
        serializer = PartPaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        tfc = mark_part_paid(self.get_object(), data['amount_received'], user=request.user, notes=data['notes'])
        return Response(TFCBookingSerializer(tfc).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = TFCCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tfc = cancel_tfc_booking(self.get_object(), reason=serializer.validated_data['reason'], user=request.user)
        return Response(TFCBookingSerializer(tfc).data)

    @action(detail=True, methods=['post'], url_path='convert-to-credit')
    def convert_to_credit(self, request, pk=None):
        serializer = ConvertToCreditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tfc = convert_to_credit(self.get_object(), reason=serializer.validated_data['reason'], user=request.user)
        return Response(TFCBookingSerializer(tfc).data)

    @action(detail=True, methods=['get'])
    def instructions(self, request, pk=None):
        return Response(get_tfc_instructions(self.get_object()))
