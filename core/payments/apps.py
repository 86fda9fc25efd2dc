from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class PaymentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core.payments'
    label = 'payments'

    def ready(self):
        """
        Configure the Stripe API key at startup. The app still starts without
        it so development environments can run without card payments.
        """
        import stripe
        from django.conf import settings

        if settings.STRIPE_SECRET_KEY:
            stripe.api_key = settings.STRIPE_SECRET_KEY
            stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
            logger.info("Stripe client configured at startup")
        else:
            logger.warning("STRIPE_SECRET_KEY not configured; card payments are disabled")
