from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from django.db.models import Q
from decimal import Decimal
import logging

from core.common.bulk import run_bulk
from core.common.exceptions import ServiceError
from core.common.permissions import IsAdminOrStaff, is_admin_or_staff
from .models import Booking
from .serializers import (
    BookingSerializer,
    CreateBookingSerializer,
    CancelBookingSerializer,
    BulkCancelSerializer,
)
from .utils import create_booking, confirm_paid_booking, cancel_booking, get_booking, calculate_refund

logger = logging.getLogger(__name__)


class BookingViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     viewsets.GenericViewSet):
    """
    Bookings. Parents see and create their own; admin/staff see all.
    Bookings are never deleted, only cancelled.
    """
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = Booking.objects.select_related(
            'parent', 'child', 'activity__venue', 'tfc'
        )
        if is_admin_or_staff(user):
            pass
        elif user.role == 'venue_manager':
            queryset = queryset.filter(activity__venue__managers=user)
        else:
            queryset = queryset.filter(parent=user)

        params = self.request.query_params
        for param, lookup in (
            ('status', 'status'),
            ('payment_status', 'payment_status'),
            ('payment_method', 'payment_method'),
            ('venue', 'activity__venue_id'),
            ('activity', 'activity_id'),
            ('child', 'child_id'),
            ('parent', 'parent_id'),
        ):
            value = params.get(param)
            if value:
                queryset = queryset.filter(**{lookup: value.strip()})

        if params.get('date_from'):
            queryset = queryset.filter(booking_date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(booking_date__lte=params['date_to'])

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(booking_number__icontains=search) |
                Q(child__first_name__icontains=search) |
                Q(child__last_name__icontains=search) |
                Q(parent__email__icontains=search) |
                Q(activity__title__icontains=search)
            )
        return queryset.distinct()

    def create(self, request, *args, **kwargs):
        serializer = CreateBookingSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = create_booking(
            request.user,
            data['child'],
            data['activity'],
            data['booking_date'],
            payment_method=data['payment_method'],
            created_by=request.user,
            request=request,
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[IsAdminOrStaff])
    def confirm(self, request, pk=None):
        """Manually confirm a booking as paid (Admin/Staff only)"""
        booking = confirm_paid_booking(
            self.get_object(), 'manual',
            reference=request.data.get('reference', ''),
            user=request.user,
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel a booking. Parents may cancel their own bookings and paid ones
        are refunded as credit under the refund policy; admin/staff may cancel
        any booking and choose whether to refund.
        """
        booking = self.get_object()
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if is_admin_or_staff(request.user):
            refund_to_credit = data['refund_to_credit']
            provider_cancellation = data['provider_cancellation']
        else:
            if booking.parent_id != request.user.id:
                raise PermissionDenied('You can only cancel your own bookings.')
            refund_to_credit = True
            provider_cancellation = False

        booking = cancel_booking(
            booking,
            reason=data['reason'],
            user=request.user,
            refund_to_credit=refund_to_credit,
            provider_cancellation=provider_cancellation,
            request=request,
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['get'], url_path='cancellation-preview')
    def cancellation_preview(self, request, pk=None):
        """What cancelling now would refund, without cancelling"""
        booking = self.get_object()
        if booking.status == 'cancelled':
            raise ServiceError('Booking is already cancelled', code='INVALID_STATUS_TRANSITION')

        provider_cancellation = is_admin_or_staff(request.user) and \
            request.query_params.get('provider_cancellation', 'true').lower() in ['1', 'true', 'yes']
        refund = calculate_refund(booking, provider_cancellation=provider_cancellation)
        return Response({
            key: str(value) if isinstance(value, Decimal) else value
            for key, value in refund.items()
        })

    @action(detail=False, methods=['post'], url_path='bulk-cancel', permission_classes=[IsAdminOrStaff])
    def bulk_cancel(self, request):
        """Cancel many bookings, reporting the outcome for each id"""
        serializer = BulkCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = run_bulk(
            data['booking_ids'],
            lambda booking_id: cancel_booking(
                get_booking(booking_id),
                reason=data['reason'],
                user=request.user,
                refund_to_credit=data['refund_to_credit'],
                request=request,
            ),
            label='booking cancel',
        )
        return Response(result)
