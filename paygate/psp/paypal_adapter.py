"""PayPal PSP Adapter Implementation (Orders v2 API)."""
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from paygate.config import settings as app_settings
from paygate.errors import GatewayError, GatewayRequestFailed
from paygate.logging_config import get_logger
from paygate.schemas import PayPalIntent
from .adapter import GatewayAdapter, GatewayTag, require

logger = get_logger(__name__)

CAPTURED_STATUSES = frozenset({"COMPLETED"})
READ_ACCEPTED_STATUSES = frozenset({"COMPLETED", "APPROVED"})

# PayPal order ids are short alphanumeric tokens
ORDER_ID_PATTERN = re.compile(r"[A-Za-z0-9-]{1,64}")


@dataclass(frozen=True)
class StepResult:
    """Order status reported by one verification step, or why the step failed."""
    status: Optional[str] = None
    order_id: Optional[str] = None
    error: Optional[GatewayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PayPalAdapter(GatewayAdapter):
    """
    PayPal payment gateway adapter.

    Every operation starts with a client-credentials token. Verification
    captures the order and, if the capture is rejected, falls back to reading
    the order: a second capture of an already captured order errors on
    PayPal's side.
    """

    tag = GatewayTag.PAYPAL

    @property
    def base_url(self) -> str:
        if self.settings.is_test_mode:
            return app_settings.PAYPAL_SANDBOX_API_BASE.rstrip("/")
        return app_settings.PAYPAL_LIVE_API_BASE.rstrip("/")

    def order_url(self, paypal_order_id: str) -> str:
        return f"{self.base_url}/v2/checkout/orders/{quote(paypal_order_id, safe='')}"

    def access_token(self) -> str:
        """Fetch a short-lived bearer token."""
        failure = "Failed to authenticate with PayPal"
        data = self._request(
            "POST",
            f"{self.base_url}/v1/oauth2/token",
            failure,
            data={"grant_type": "client_credentials"},
            auth=(self.settings.api_key, self.settings.api_secret),
        )
        return require(data, "access_token", failure, self.tag)

    def create_intent(self, amount: Decimal, currency: str, order_id: str) -> PayPalIntent:
        """Create PayPal order with intent=CAPTURE."""
        token = self.access_token()
        failure = "Failed to create PayPal order"
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": order_id,
                "amount": {
                    "currency_code": currency,
                    "value": f"{Decimal(amount):.2f}",
                },
            }],
        }
        data = self._request(
            "POST",
            f"{self.base_url}/v2/checkout/orders",
            failure,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
        )
        intent = PayPalIntent(
            orderId=require(data, "id", failure, self.tag),
            amount=float(amount),
            currency=currency,
        )
        logger.info(
            "paypal_order_created",
            order_id=order_id,
            gateway_order_id=intent.orderId,
            test_mode=self.settings.is_test_mode,
        )
        return intent

    def try_capture(self, token: str, paypal_order_id: str) -> StepResult:
        """Step 1: capture the approved order."""
        return self._step(
            "POST",
            f"{self.order_url(paypal_order_id)}/capture",
            "PayPal capture failed",
            token,
        )

    def try_read(self, token: str, paypal_order_id: str) -> StepResult:
        """Step 2: read-only status check, used when capture is rejected."""
        return self._step(
            "GET",
            self.order_url(paypal_order_id),
            "PayPal order lookup failed",
            token,
        )

    def _step(self, method: str, url: str, failure: str, token: str) -> StepResult:
        try:
            data = self._request(
                method,
                url,
                failure,
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
            )
        except GatewayRequestFailed as e:
            return StepResult(error=e)
        return StepResult(status=data.get("status"), order_id=data.get("id"))

    def _check_payment(
        self,
        payment_id: str,
        signature: Optional[str],
        gateway_order_id: Optional[str],
    ) -> bool:
        # payment_id is the PayPal order id approved by the buyer
        if not ORDER_ID_PATTERN.fullmatch(payment_id):
            logger.warning("paypal_order_id_rejected", paypal_order_id=payment_id)
            return False

        token = self.access_token()

        capture = self.try_capture(token, payment_id)
        if capture.ok:
            logger.info("paypal_capture_result", paypal_order_id=payment_id, status=capture.status)
            return self._matches(payment_id, capture) and capture.status in CAPTURED_STATUSES

        logger.info(
            "paypal_capture_rejected_reading_order",
            paypal_order_id=payment_id,
            error=capture.error.message,
            provider_status=capture.error.provider_status,
        )
        read = self.try_read(token, payment_id)
        if not read.ok:
            raise read.error
        logger.info("paypal_order_status", paypal_order_id=payment_id, status=read.status)
        return self._matches(payment_id, read) and read.status in READ_ACCEPTED_STATUSES

    def _matches(self, payment_id: str, step: StepResult) -> bool:
        """The order PayPal answered for must be the one that will be recorded."""
        if step.order_id == payment_id:
            return True
        logger.warning("paypal_order_id_mismatch", paypal_order_id=payment_id, returned_order_id=step.order_id)
        return False
