"""
Payment verification after the buyer completes the gateway flow.

The adapter answers "did this payment complete"; only then is the order
store asked to mark the order paid. Verification outcome and order update
outcome are reported separately.
"""
from paygate.errors import BadRequest, OrderUpdateFailed, UnsupportedGateway, VerificationFailed
from paygate.logging_config import get_logger
from paygate.psp.adapter import GatewayTag
from paygate.psp.dispatcher import PSPDispatcher
from paygate.schemas import VerificationRequest, VerificationResponse
from .order_store import OrderStateStore
from .settings_provider import GatewaySettingsProvider

logger = get_logger(__name__)


class VerificationService:

    def __init__(
        self,
        settings_provider: GatewaySettingsProvider,
        dispatcher: PSPDispatcher,
        order_store: OrderStateStore,
    ):
        self.settings_provider = settings_provider
        self.dispatcher = dispatcher
        self.order_store = order_store

    def verify_payment(self, req: VerificationRequest) -> VerificationResponse:
        tag = self._validate(req)
        logger.info(
            "payment_verification_requested",
            order_id=req.orderId,
            payment_id=req.paymentId,
            gateway=tag.value,
        )

        gateway_settings = self.settings_provider.get_enabled_for(tag.gateway_name)
        adapter = self.dispatcher.get_adapter(gateway_settings)

        # Razorpay signs the gateway order id; fall back to the local id
        result = adapter.verify(
            req.paymentId,
            signature=req.signature,
            gateway_order_id=req.gatewayOrderId or req.orderId,
        )
        if result.error is not None:
            logger.warning(
                "payment_verification_gateway_error",
                order_id=req.orderId,
                payment_id=req.paymentId,
                gateway=tag.value,
                error=result.error.message,
            )
        if not result.verified:
            logger.info(
                "payment_verification_failed",
                order_id=req.orderId,
                payment_id=req.paymentId,
                gateway=tag.value,
                provider_unreachable=result.error is not None,
            )
            raise VerificationFailed("Payment verification failed")

        update = self.order_store.mark_paid(req.orderId, req.paymentId, tag.value)
        if not update.success:
            logger.error(
                "order_update_failed",
                order_id=req.orderId,
                payment_id=req.paymentId,
                gateway=tag.value,
                error=update.error,
            )
            raise OrderUpdateFailed(update.error or "Failed to update order")

        logger.info(
            "payment_verified",
            order_id=req.orderId,
            payment_id=req.paymentId,
            gateway=tag.value,
            already_paid=update.already_paid,
        )
        return VerificationResponse(
            success=True,
            verified=True,
            message="Payment verified successfully",
        )

    @staticmethod
    def _validate(req: VerificationRequest) -> GatewayTag:
        if not req.orderId or not req.paymentId or not req.gateway:
            raise BadRequest("Missing required fields")
        try:
            tag = GatewayTag(req.gateway)
        except ValueError:
            raise UnsupportedGateway()
        if tag is GatewayTag.RAZORPAY and not req.signature:
            raise BadRequest("Missing payment signature")
        return tag
