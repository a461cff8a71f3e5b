"""
Error taxonomy for intent creation and payment verification.

Every error knows its HTTP status and how to render itself, so routers only
need a single exception handler.
"""
from typing import Any, Dict, Optional


class PaymentError(Exception):
    """Base class for all classified payment failures."""

    status_code: int = 500
    default_message: str = "Payment processing failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class BadRequest(PaymentError):
    """Missing or malformed request fields."""

    status_code = 400
    default_message = "Missing required fields"


class UnsupportedGateway(BadRequest):
    """Gateway name or tag outside the supported set."""

    default_message = "Unsupported payment gateway"


class GatewayNotConfigured(PaymentError):
    """No enabled settings row for the requested gateway."""

    status_code = 400
    default_message = "No payment gateway configured"


class GatewayRequestFailed(PaymentError):
    """
    The third-party provider returned an error or could not be reached.

    Also used as the error value of a failed ``VerifyResult``.
    """

    status_code = 500
    default_message = "Payment gateway request failed"

    def __init__(self, message: Optional[str] = None, gateway: Optional[str] = None,
                 provider_status: Optional[int] = None):
        super().__init__(message)
        self.gateway = gateway
        self.provider_status = provider_status


# Alias used where the error is carried as a value rather than raised
GatewayError = GatewayRequestFailed


class VerificationFailed(PaymentError):
    status_code = 400
    default_message = "Payment verification failed"

    def to_response(self) -> Dict[str, Any]:
        return {"success": False, "verified": False, "message": self.message}


class OrderUpdateFailed(PaymentError):
    """Payment verified, but the order store rejected the paid transition."""

    status_code = 409
    default_message = "Failed to update order"

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": False,
            "verified": True,
            "orderUpdated": False,
            "error": self.message,
        }
