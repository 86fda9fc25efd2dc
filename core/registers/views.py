import csv
import logging

from django.http import HttpResponse
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.common.exceptions import NotFoundError
from core.common.permissions import IsAdminOrStaff
from core.venues.models import Activity
from .models import Register
from .serializers import (
    RegisterSerializer,
    AttendanceSerializer,
    AttendanceRecordSerializer,
    AutoCreateSerializer,
)
from .utils import create_register, auto_create_registers, record_attendance, get_register_stats

logger = logging.getLogger(__name__)


class RegisterViewSet(viewsets.ModelViewSet):
    """
    Attendance registers (Admin/Staff only)
    """
    serializer_class = RegisterSerializer
    permission_classes = [IsAdminOrStaff]

    def get_queryset(self):
        queryset = Register.objects.select_related('activity__venue').prefetch_related('attendance__child')
        params = self.request.query_params
        if params.get('activity'):
            queryset = queryset.filter(activity_id=params['activity'])
        if params.get('venue'):
            queryset = queryset.filter(activity__venue_id=params['venue'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'].strip())
        if params.get('date_from'):
            queryset = queryset.filter(date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(date__lte=params['date_to'])
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        register = create_register(data['activity'], data['date'], created_by=request.user,
                                   notes=data.get('notes', ''))
        return Response(RegisterSerializer(register).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='auto-create')
    def auto_create(self, request):
        serializer = AutoCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            activity = Activity.objects.get(pk=data['activity'])
        except Activity.DoesNotExist:
            raise NotFoundError(f"Activity {data['activity']} not found")
        registers = auto_create_registers(activity, data['start_date'], data['end_date'], created_by=request.user)
        return Response(RegisterSerializer(registers, many=True).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post', 'put'])
    def attendance(self, request, pk=None):
        """Upsert attendance rows: [{child, present, check_in_time?, check_out_time?, notes?}]"""
        register = self.get_object()
        records = request.data.get('records', request.data) if isinstance(request.data, dict) else request.data
        serializer = AttendanceRecordSerializer(data=records, many=True)
        serializer.is_valid(raise_exception=True)
        rows = record_attendance(register, serializer.validated_data, recorded_by=request.user)
        return Response(AttendanceSerializer(rows, many=True).data)

    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        return Response(get_register_stats(self.get_object()))

    @action(detail=True, methods=['get'])
    def export(self, request, pk=None):
        """Register as CSV"""
        register = self.get_object()
        filename = f"register-{register.activity_id}-{register.date.isoformat()}.csv"
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow(['Child', 'Booking', 'Present', 'Check In', 'Check Out', 'Notes'])
        for row in register.attendance.select_related('child', 'booking'):
            writer.writerow([
                row.child.get_full_name(),
                row.booking.booking_number if row.booking else '',
                'Yes' if row.present else 'No',
                row.check_in_time.isoformat() if row.check_in_time else '',
                row.check_out_time.isoformat() if row.check_out_time else '',
                row.notes,
            ])
        logger.info(f"Register {register.id} exported by {request.user.username}")
        return response
