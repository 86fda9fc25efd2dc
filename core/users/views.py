from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
import logging

from core.common.permissions import is_admin_or_staff
from .models import User, Child
from .serializers import UserSerializer, UserRegistrationSerializer, ChildSerializer

logger = logging.getLogger(__name__)


class UserViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  viewsets.GenericViewSet):
    """
    Read access to users; admin/staff see everyone, others only themselves
    """
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = User.objects.all().order_by('-date_joined')
        if not is_admin_or_staff(user):
            return queryset.filter(id=user.id)

        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role.strip())
        return queryset

    @action(detail=False, methods=['post'], permission_classes=[AllowAny])
    def register(self, request):
        """Self-service parent signup"""
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Registered parent account {user.username} (id={user.id})")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get', 'patch'], url_path='me')
    def me(self, request):
        """Get or update the current user's profile"""
        if request.method == 'PATCH':
            serializer = UserSerializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            return Response(serializer.data)
        return Response(UserSerializer(request.user).data)


class ChildViewSet(viewsets.ModelViewSet):
    """
    Children belong to a parent; admin/staff can see all of them
    """
    serializer_class = ChildSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = Child.objects.select_related('parent')
        if is_admin_or_staff(user):
            parent_id = self.request.query_params.get('parent')
            if parent_id:
                queryset = queryset.filter(parent_id=parent_id)
            return queryset
        return queryset.filter(parent=user)

    def perform_create(self, serializer):
        serializer.save(parent=self.request.user)

    def perform_destroy(self, instance):
        # Children with booking history are deactivated rather than removed
        if instance.bookings.exists():
            instance.is_active = False
            instance.save(update_fields=['is_active', 'updated_at'])
            return
        instance.delete()
