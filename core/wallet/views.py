from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from django.contrib.auth import get_user_model
import logging

from core.audit.utils import log_event
from core.common.exceptions import NotFoundError
from core.common.permissions import is_admin_or_staff
from core.venues.models import Venue
from .models import Credit, CreditTransaction
from .serializers import CreditSerializer, IssueCreditSerializer, CreditTransactionSerializer
from .utils import (
    issue_credit,
    cancel_credit,
    get_available_balance,
    get_expiring_credits,
    get_credit_stats,
)

logger = logging.getLogger(__name__)

User = get_user_model()


class CreditViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    viewsets.GenericViewSet):
    """
    Parent credits. Parents see their own; admin/staff see all and can issue.
    """
    serializer_class = CreditSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = Credit.objects.select_related('parent', 'venue')
        if is_admin_or_staff(user):
            if self.request.query_params.get('parent'):
                queryset = queryset.filter(parent=self._target_parent(self.request))
        else:
            queryset = queryset.filter(parent=user)

        status_param = self.request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status=status_param.strip())
        source = self.request.query_params.get('source')
        if source:
            queryset = queryset.filter(source=source.strip())
        return queryset

    def _target_parent(self, request):
        parent_id = request.query_params.get('parent')
        if parent_id and is_admin_or_staff(request.user):
            try:
                return User.objects.get(pk=parent_id)
            except (User.DoesNotExist, ValueError):
                raise NotFoundError(f"Parent {parent_id} not found")
        return request.user

    def create(self, request, *args, **kwargs):
        """Issue a credit (Admin/Staff only)"""
        if not is_admin_or_staff(request.user):
            raise PermissionDenied('Only admin or staff can issue credits.')

        serializer = IssueCreditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        venue = Venue.objects.filter(pk=data['venue']).first() if data.get('venue') else None
        credit = issue_credit(
            data['parent'],
            data['amount'],
            data['source'],
            description=data.get('description', ''),
            venue=venue,
            issued_by=request.user,
            expires_in_days=data.get('expires_in_days'),
        )
        log_event(request.user, 'credit_issued', 'credit', credit.id,
                  details={'amount': str(credit.amount), 'parent': credit.parent_id, 'source': credit.source},
                  request=request)
        return Response(CreditSerializer(credit).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel the unused part of a credit (Admin/Staff only)"""
        if not is_admin_or_staff(request.user):
            raise PermissionDenied('Only admin or staff can cancel credits.')
        credit = cancel_credit(self.get_object(), cancelled_by=request.user,
                               reason=request.data.get('reason', ''))
        log_event(request.user, 'credit_cancelled', 'credit', credit.id,
                  details={'reason': request.data.get('reason', '')}, request=request)
        return Response(CreditSerializer(credit).data)

    @action(detail=False, methods=['get'])
    def balance(self, request):
        parent = self._target_parent(request)
        return Response({
            'parent': parent.id,
            'available_balance': get_available_balance(parent),
            'active_credits': Credit.objects.filter(parent=parent, status='active').count(),
        })

    @action(detail=False, methods=['get'])
    def expiring(self, request):
        try:
            days = int(request.query_params.get('days', 30))
        except ValueError:
            days = 30
        credits = get_expiring_credits(request.user, days=days)
        return Response(CreditSerializer(credits, many=True).data)

    @action(detail=False, methods=['get'])
    def history(self, request):
        queryset = CreditTransaction.objects.filter(parent=request.user)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(CreditTransactionSerializer(page, many=True).data)
        return Response(CreditTransactionSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        if not is_admin_or_staff(request.user):
            raise PermissionDenied('Only admin or staff can view credit statistics.')
        return Response(get_credit_stats(self.get_queryset()))
