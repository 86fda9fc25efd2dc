from rest_framework import viewsets
from core.common.permissions import IsAdminOrStaff
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only audit trail (Admin/Staff only)
    """
    serializer_class = AuditLogSerializer
    permission_classes = [IsAdminOrStaff]

    def get_queryset(self):
        queryset = AuditLog.objects.select_related('actor')
        params = self.request.query_params
        if params.get('entity_type'):
            queryset = queryset.filter(entity_type=params['entity_type'])
        if params.get('entity_id'):
            queryset = queryset.filter(entity_id=params['entity_id'])
        if params.get('action'):
            queryset = queryset.filter(action=params['action'])
        if params.get('actor'):
            queryset = queryset.filter(actor_id=params['actor'])
        if params.get('date_from'):
            queryset = queryset.filter(created_at__date__gte=params['date_from'])
        if params.get('date_to'):
            queryset = queryset.filter(created_at__date__lte=params['date_to'])
        return queryset
