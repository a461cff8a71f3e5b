"""
Payment intent creation for checkout.

Validates the request, short-circuits pay-on-delivery orders, otherwise loads
the enabled gateway and asks its adapter for a payment handle. Nothing is
written locally; the only side effect is the provider-side pending order.
"""
import re
from decimal import Decimal
from typing import Iterable

from paygate.errors import BadRequest, GatewayRequestFailed
from paygate.logging_config import get_logger
from paygate.psp.dispatcher import PSPDispatcher
from paygate.schemas import CashOnDeliveryIntent, IntentResult, PaymentRequest
from .settings_provider import GatewaySettingsProvider

logger = get_logger(__name__)

CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")


class PaymentIntentService:

    def __init__(
        self,
        settings_provider: GatewaySettingsProvider,
        dispatcher: PSPDispatcher,
        cod_methods: Iterable[str],
    ):
        self.settings_provider = settings_provider
        self.dispatcher = dispatcher
        self.cod_methods = frozenset(cod_methods)

    def create_payment_intent(self, req: PaymentRequest) -> IntentResult:
        order_id, amount, currency = self._validate(req)
        logger.info(
            "payment_intent_requested",
            order_id=order_id,
            payment_method=req.paymentMethod,
            amount=str(amount),
            currency=currency,
        )

        if req.paymentMethod in self.cod_methods:
            logger.info("payment_intent_cod", order_id=order_id)
            return CashOnDeliveryIntent()

        gateway_settings = self.settings_provider.get_enabled()
        adapter = self.dispatcher.get_adapter(gateway_settings)

        try:
            intent = adapter.create_intent(amount, currency, order_id)
        except GatewayRequestFailed as e:
            logger.error(
                "payment_intent_failed",
                order_id=order_id,
                gateway=adapter.tag.value,
                error=e.message,
                provider_status=e.provider_status,
            )
            raise

        logger.info("payment_intent_created", order_id=order_id, gateway=adapter.tag.value)
        return intent

    @staticmethod
    def _validate(req: PaymentRequest):
        if not req.orderId or req.amount is None or not req.paymentMethod:
            raise BadRequest("Missing required fields")
        if not req.amount.is_finite() or req.amount <= 0:
            raise BadRequest("Invalid amount")

        currency = req.currency or "USD"
        if not CURRENCY_RE.match(currency):
            raise BadRequest("Invalid currency")
        return req.orderId, Decimal(req.amount), currency.upper()
