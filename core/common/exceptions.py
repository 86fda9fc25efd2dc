"""
Error types raised by service functions and the DRF exception handler that
renders every failure as {success: false, error: {message, code, details}}.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Business-rule failure with an HTTP status and a stable error code."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'BAD_REQUEST'

    def __init__(self, message, code=None, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details

    def as_dict(self):
        return {'code': self.code, 'message': self.message}


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'NOT_FOUND'


class InvalidTransitionError(ServiceError):
    code = 'INVALID_STATUS_TRANSITION'

    def __init__(self, entity, current, target, allowed=None):
        allowed = list(allowed or [])
        super().__init__(
            f'Cannot change {entity} status from {current} to {target}',
            details={'current': current, 'target': target, 'allowed': allowed},
        )


class InsufficientCreditsError(ServiceError):
    code = 'INSUFFICIENT_CREDITS'


# DRF default codes mapped onto the envelope's upper-case codes
_DRF_CODES = {
    'invalid': 'VALIDATION_ERROR',
    'parse_error': 'PARSE_ERROR',
    'not_found': 'NOT_FOUND',
    'permission_denied': 'PERMISSION_DENIED',
    'not_authenticated': 'NOT_AUTHENTICATED',
    'authentication_failed': 'AUTHENTICATION_FAILED',
    'method_not_allowed': 'METHOD_NOT_ALLOWED',
    'throttled': 'THROTTLED',
}


def error_payload(message, code, details=None):
    return {
        'success': False,
        'error': {'message': message, 'code': code, 'details': details},
    }


def envelope_exception_handler(exc, context):
    if isinstance(exc, ServiceError):
        view = context.get('view')
        logger.info(
            f"{exc.code} in {view.__class__.__name__ if view else 'view'}: {exc.message}"
        )
        return Response(
            error_payload(exc.message, exc.code, exc.details),
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = error_payload('Validation failed', 'VALIDATION_ERROR', response.data)
        return response

    default_code = getattr(exc, 'default_code', 'error')
    code = _DRF_CODES.get(default_code, str(default_code).upper())
    data = response.data if isinstance(response.data, dict) else {'detail': response.data}
    message = str(data.get('detail', 'Request failed'))
    details = {k: v for k, v in data.items() if k != 'detail'} or None
    response.data = error_payload(message, code, details)
    return response
