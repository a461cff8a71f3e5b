"""Stripe PSP Adapter Implementation."""
import stripe
from decimal import Decimal
from typing import Optional

from paygate.errors import GatewayRequestFailed
from paygate.logging_config import get_logger
from paygate.schemas import StripeIntent
from .adapter import GatewayAdapter, GatewayTag, to_minor_units

logger = get_logger(__name__)

SUCCEEDED = "succeeded"


class StripeAdapter(GatewayAdapter):
    """
    Stripe payment gateway adapter.

    Each call goes through its own ``StripeClient`` built from the settings
    row, so the secret key is never set on the ``stripe`` module and the
    network timeout matches GATEWAY_TIMEOUT_SECONDS.
    """

    tag = GatewayTag.STRIPE

    def stripe_client(self) -> stripe.StripeClient:
        return stripe.StripeClient(
            self.settings.api_secret,
            http_client=stripe.RequestsClient(timeout=self.timeout),
        )

    def create_intent(self, amount: Decimal, currency: str, order_id: str) -> StripeIntent:
        """Create Stripe payment intent."""
        try:
            intent = self.stripe_client().payment_intents.create(params={
                "amount": to_minor_units(amount),
                "currency": currency.lower(),
                "metadata": {"orderId": order_id},
            })
        except stripe.StripeError as e:
            raise self._wrap("Failed to create Stripe payment intent", e) from e

        if not intent.id or not intent.client_secret:
            raise GatewayRequestFailed(
                "Failed to create Stripe payment intent: invalid response",
                gateway=self.tag.value,
            )
        logger.info(
            "stripe_payment_intent_created",
            order_id=order_id,
            payment_intent_id=intent.id,
            amount=intent.amount,
            currency=intent.currency,
        )
        return StripeIntent(
            clientSecret=intent.client_secret,
            paymentIntentId=intent.id,
            amount=intent.amount,
            currency=intent.currency,
        )

    def _check_payment(
        self,
        payment_id: str,
        signature: Optional[str],
        gateway_order_id: Optional[str],
    ) -> bool:
        try:
            intent = self.stripe_client().payment_intents.retrieve(payment_id)
        except stripe.StripeError as e:
            raise self._wrap("Failed to retrieve Stripe payment intent", e) from e
        logger.info("stripe_payment_intent_status", payment_intent_id=payment_id, status=intent.status)
        return intent.status == SUCCEEDED

    def _wrap(self, failure: str, e: "stripe.StripeError") -> GatewayRequestFailed:
        return GatewayRequestFailed(
            f"{failure}: {e.user_message or str(e)}",
            gateway=self.tag.value,
            provider_status=e.http_status,
        )
