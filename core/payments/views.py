from rest_framework import viewsets, status
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.exceptions import PermissionDenied
from django.db import transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
import json
import logging
import uuid

import stripe

from core.booking.models import Booking
from core.booking.utils import get_booking
from core.common.exceptions import ServiceError, error_payload
from core.common.permissions import IsAdminOrStaff
from core.finance.utils import to_minor_units
from .models import WebhookEvent
from .serializers import CreatePaymentIntentSerializer, WebhookEventSerializer
from .utils.signature import verify_webhook_secret
from .utils.stripe_client import create_payment_intent as create_stripe_intent, construct_event
from .webhooks import receive_event, retry_event

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_payment_intent(request):
    """
    Create a Stripe PaymentIntent for a pending card booking.

    POST /api/v1/payments/intent/
    """
    serializer = CreatePaymentIntentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    booking = get_booking(serializer.validated_data['booking_id'])

    if booking.parent_id != request.user.id:
        raise PermissionDenied('You can only pay for your own bookings.')
    if booking.payment_method != 'card':
        raise ServiceError('Booking is not a card booking', code='INVALID_PAYMENT_METHOD')
    if booking.status != 'pending' or booking.payment_status == 'paid':
        raise ServiceError('Booking is not awaiting payment', code='BOOKING_NOT_PAYABLE',
                           details={'status': booking.status, 'payment_status': booking.payment_status})

    intent = create_stripe_intent(booking)
    with transaction.atomic():
        Booking.objects.filter(pk=booking.pk).update(payment_intent_id=intent['id'], payment_status='pending')

    return Response({
        'booking_id': booking.id,
        'payment_intent_id': intent['id'],
        'client_secret': intent['client_secret'],
        'amount': to_minor_units(booking.amount),
        'currency': intent['currency'],
    }, status=status.HTTP_201_CREATED)


def _webhook_response(event, duplicate):
    body = {
        'success': True,
        'data': {
            'received': True,
            'event_id': event.event_id,
            'event_type': event.event_type,
            'status': event.status,
            'duplicate': duplicate,
        },
    }
    # 500 lets the sender redeliver; the failure is already recorded
    if event.status == 'failed':
        body = error_payload(event.error_message or 'Webhook processing failed', 'WEBHOOK_PROCESSING_FAILED',
                             {'event_id': event.event_id, 'event_type': event.event_type})
        return JsonResponse(body, status=500)
    return JsonResponse(body, status=200)


@csrf_exempt
@require_POST
def stripe_webhook(request):
    """
    Handle Stripe webhook events.

    POST /api/v1/webhooks/stripe/
    Verified with the stripe-signature header.
    """
    body = request.body
    header_signature = request.META.get('HTTP_STRIPE_SIGNATURE', '')
    if not header_signature:
        logger.warning("Stripe webhook request missing stripe-signature header")
        return JsonResponse(error_payload('Missing signature', 'MISSING_SIGNATURE'), status=400)

    try:
        stripe_event = construct_event(body, header_signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"Invalid Stripe webhook: {e}")
        return JsonResponse(error_payload('Invalid signature', 'INVALID_SIGNATURE'), status=400)

    payload = json.loads(body.decode('utf-8'))
    logger.info(f"Stripe webhook received: {stripe_event['type']} ({stripe_event['id']})")
    event, duplicate = receive_event('stripe', stripe_event['id'], stripe_event['type'], payload)
    return _webhook_response(event, duplicate)


@csrf_exempt
@require_POST
def external_webhook(request):
    """
    Handle webhooks from external systems.

    POST /api/v1/webhooks/external/
    Authenticated with the x-webhook-secret header. Body: {id?, event, data, source?}
    """
    if not verify_webhook_secret(request.META.get('HTTP_X_WEBHOOK_SECRET', '')):
        return JsonResponse(error_payload('Unauthorized webhook request', 'UNAUTHORIZED'), status=401)

    try:
        payload = json.loads(request.body.decode('utf-8'))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Invalid JSON in external webhook body: {e}")
        return JsonResponse(error_payload('Invalid JSON', 'PARSE_ERROR'), status=400)

    if not isinstance(payload, dict) or not payload.get('event'):
        return JsonResponse(error_payload('Missing required webhook parameters', 'MISSING_PARAMETERS'), status=400)

    event_id = str(payload.get('id') or uuid.uuid4())
    logger.info(f"External webhook received: {payload['event']} ({event_id})")
    event, duplicate = receive_event('external', event_id, payload['event'], payload)
    return _webhook_response(event, duplicate)


class WebhookEventViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Stored webhook events (Admin/Staff only)
    """
    serializer_class = WebhookEventSerializer
    permission_classes = [IsAdminOrStaff]

    def get_queryset(self):
        queryset = WebhookEvent.objects.all()
        params = self.request.query_params
        for param in ('source', 'status', 'event_type'):
            if params.get(param):
                queryset = queryset.filter(**{param: params[param].strip()})
        return queryset

    @action(detail=True, methods=['post'])
    def retry(self, request, pk=None):
        """Re-run a received or failed event"""
        event = retry_event(self.get_object())
        logger.info(f"Webhook event {event.id} retried by {request.user.username}: {event.status}")
        return Response(WebhookEventSerializer(event).data)
