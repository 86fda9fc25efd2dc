import logging
from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    if request is None:
        return None
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR') or None


def log_event(actor, action, entity_type, entity_id, details=None, request=None):
    """
    Record an audit entry. actor may be None for system and webhook actions.
    """
    if actor is not None and not getattr(actor, 'is_authenticated', False):
        actor = None
    entry = AuditLog.objects.create(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        details=details or {},
        ip_address=get_client_ip(request),
    )
    logger.debug(f"Audit: {action} {entity_type}:{entity_id} by {actor.username if actor else 'system'}")
    return entry


def get_entity_history(entity_type, entity_id):
    return AuditLog.objects.filter(entity_type=entity_type, entity_id=str(entity_id)).select_related('actor')
