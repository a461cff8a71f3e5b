"""
Payment endpoints used by the storefront checkout:
intent creation, verification, and the public gateway config.
"""
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from ..deps import get_payment_intent_service, get_settings_provider, get_verification_service
from ..errors import GatewayNotConfigured
from ..logging_config import get_logger
from ..middleware import bind_payment_context
from ..psp.adapter import tag_for
from ..psp.dispatcher import parse_gateway_name
from ..schemas import GatewayPublicConfig, PaymentRequest, VerificationRequest, VerificationResponse
from ..services.payment_intent_service import PaymentIntentService
from ..services.settings_provider import GatewaySettingsProvider
from ..services.verification_service import VerificationService

logger = get_logger(__name__)

router = APIRouter(tags=["Payments"])


# Bare preflights (no Origin header) never reach CORSMiddleware's handler
@router.options("/process-payment", include_in_schema=False)
@router.options("/verify-payment", include_in_schema=False)
def preflight():
    return Response(status_code=status.HTTP_200_OK)


@router.post("/process-payment", response_model=None)
def process_payment(
    body: PaymentRequest,
    service: PaymentIntentService = Depends(get_payment_intent_service),
):
    """
    Create a payment intent with the enabled gateway.

    Returns `{success: true, paymentMethod: "cod"}` for pay-on-delivery,
    otherwise the gateway-specific handle the client needs to pay.
    """
    bind_payment_context(order_id=body.orderId)
    intent = service.create_payment_intent(body)
    return intent.model_dump(mode="json")


@router.post("/verify-payment", response_model=VerificationResponse)
def verify_payment(
    body: VerificationRequest,
    service: VerificationService = Depends(get_verification_service),
):
    """
    Confirm a completed payment and mark the order paid.
    """
    bind_payment_context(order_id=body.orderId, gateway=body.gateway)
    try:
        return service.verify_payment(body)
    except GatewayNotConfigured as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "verified": False, "message": e.message},
        )


@router.get("/payment-gateway", response_model=GatewayPublicConfig)
def payment_gateway(settings_provider: GatewaySettingsProvider = Depends(get_settings_provider)):
    """Public configuration of the enabled gateway. Never includes the secret."""
    gateway_settings = settings_provider.get_enabled()
    name = parse_gateway_name(gateway_settings.gateway_name)
    return GatewayPublicConfig(
        gateway=tag_for(name).value,
        key=gateway_settings.api_key,
        isTestMode=gateway_settings.is_test_mode,
    )
