"""Razorpay PSP Adapter Implementation."""
import hashlib
import hmac
from decimal import Decimal
from typing import Optional

from paygate.config import settings as app_settings
from paygate.logging_config import get_logger
from paygate.schemas import RazorpayIntent
from .adapter import GatewayAdapter, GatewayTag, require, to_minor_units

logger = get_logger(__name__)


def razorpay_signature(gateway_order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``"<order_id>|<payment_id>"`` keyed by the API secret."""
    message = f"{gateway_order_id}|{payment_id}"
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class RazorpayAdapter(GatewayAdapter):
    """
    Razorpay payment gateway adapter.

    Orders are created over the REST API with Basic auth; verification is a
    local signature check and never touches the network.
    """

    tag = GatewayTag.RAZORPAY

    @property
    def base_url(self) -> str:
        return app_settings.RAZORPAY_API_BASE.rstrip("/")

    def create_intent(self, amount: Decimal, currency: str, order_id: str) -> RazorpayIntent:
        """Create Razorpay order."""
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": order_id,
        }
        failure = "Failed to create Razorpay order"
        data = self._request(
            "POST",
            f"{self.base_url}/v1/orders",
            failure,
            json=payload,
            auth=(self.settings.api_key, self.settings.api_secret),
        )
        intent = RazorpayIntent(
            orderId=require(data, "id", failure, self.tag),
            amount=int(data.get("amount", payload["amount"])),
            currency=data.get("currency") or currency,
            key=self.settings.api_key,
        )
        logger.info(
            "razorpay_order_created",
            order_id=order_id,
            gateway_order_id=intent.orderId,
            amount=intent.amount,
            currency=intent.currency,
        )
        return intent

    def _check_payment(
        self,
        payment_id: str,
        signature: Optional[str],
        gateway_order_id: Optional[str],
    ) -> bool:
        if not signature or not gateway_order_id:
            return False
        expected = razorpay_signature(gateway_order_id, payment_id, self.settings.api_secret)
        return hmac.compare_digest(expected.encode(), signature.encode())
