from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from django.db.models import Count
from django.utils import timezone
import logging

from core.common.permissions import is_admin_or_staff
from core.users.models import User
from core.venues.models import Venue
from .models import Notification
from .serializers import NotificationSerializer, SendNotificationSerializer
from .utils import notify, get_unread_count, invalidate_unread_count

logger = logging.getLogger(__name__)


class NotificationViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.DestroyModelMixin,
                          viewsets.GenericViewSet):
    """
    Notification inbox. Users see their own notifications; admin/staff can
    pass scope=all to see every notification.
    """
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        params = self.request.query_params
        queryset = Notification.objects.select_related('user')

        if is_admin_or_staff(user) and params.get('scope') == 'all':
            if params.get('user'):
                queryset = queryset.filter(user_id=params['user'])
            if params.get('venue'):
                queryset = queryset.filter(venue_id=params['venue'])
        else:
            queryset = queryset.filter(user=user)

        if params.get('type'):
            queryset = queryset.filter(notification_type=params['type'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('priority'):
            queryset = queryset.filter(priority=params['priority'])
        if params.get('delivery_status'):
            queryset = queryset.filter(delivery_status=params['delivery_status'])
        if params.get('channel'):
            queryset = queryset.filter(channels__icontains=f'"{params["channel"]}"')
        return queryset

    def create(self, request, *args, **kwargs):
        """Manual send (Admin/Staff only)"""
        if not is_admin_or_staff(request.user):
            raise PermissionDenied('Only admin or staff can send notifications.')

        serializer = SendNotificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        venue = None
        if data.get('venue'):
            venue = Venue.objects.filter(pk=data['venue']).first()

        if data.get('all_parents'):
            recipients = User.objects.filter(role='parent', is_active=True)
        else:
            recipients = [data['user']]

        created = []
        for recipient in recipients:
            notification = notify(
                recipient,
                data['notification_type'],
                data['title'],
                data['message'],
                priority=data['priority'],
                channels=data['channels'],
                venue=venue,
                data={'sent_by': request.user.id},
            )
            if notification:
                created.append(notification.id)

        logger.info(f"{request.user.username} sent '{data['title']}' to {len(created)} recipient(s)")
        return Response(
            {'sent': len(created), 'notification_ids': created},
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, *args, **kwargs):
        notification = self.get_object()
        user_id = notification.user_id
        notification.delete()
        invalidate_unread_count(user_id)
        return Response({'message': 'Notification deleted'})

    @action(detail=True, methods=['post'], url_path='mark-read')
    def mark_read(self, request, pk=None):
        notification = self.get_object()
        if notification.status != 'read':
            notification.mark_as_read()
            invalidate_unread_count(notification.user_id)
        return Response(NotificationSerializer(notification).data)

    @action(detail=True, methods=['post'], url_path='mark-unread')
    def mark_unread(self, request, pk=None):
        notification = self.get_object()
        if notification.status != 'unread':
            notification.mark_as_unread()
            invalidate_unread_count(notification.user_id)
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        updated = Notification.objects.filter(user=request.user, status='unread').update(
            status='read', read_at=timezone.now(), updated_at=timezone.now()
        )
        invalidate_unread_count(request.user.id)
        return Response({'updated': updated})

    @action(detail=False, methods=['get'])
    def stats(self, request):
        queryset = self.get_queryset()
        return Response({
            'total': queryset.count(),
            'unread': queryset.filter(status='unread').count(),
            'by_type': {
                row['notification_type']: row['count']
                for row in queryset.values('notification_type').annotate(count=Count('id')).order_by()
            },
            'by_priority': {
                row['priority']: row['count']
                for row in queryset.values('priority').annotate(count=Count('id')).order_by()
            },
            'by_delivery_status': {
                row['delivery_status']: row['count']
                for row in queryset.values('delivery_status').annotate(count=Count('id')).order_by()
            },
        })

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        return Response({'unread': get_unread_count(request.user)})
