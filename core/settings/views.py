from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
import logging

from core.common.permissions import is_admin
from .models import PlatformSettings
from .serializers import PlatformSettingsSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'PATCH', 'PUT'])
@permission_classes([IsAuthenticated])
def settings_endpoint(request):
    """
    GET: Retrieve settings (all authenticated users)
    PATCH/PUT: Update settings (admin only)
    """
    settings = PlatformSettings.get_settings()

    if request.method == 'GET':
        return Response(PlatformSettingsSerializer(settings).data)

    if not is_admin(request.user):
        raise PermissionDenied('Only admin or superuser can update platform settings.')

    serializer = PlatformSettingsSerializer(settings, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save(updated_by=request.user)
    logger.info(f"Platform settings updated by {request.user.username}: {sorted(request.data.keys())}")
    return Response(serializer.data)
