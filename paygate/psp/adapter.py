"""
PSP Adapter Base Class and Interface.
Provides a uniform create/verify interface over Razorpay, Stripe and PayPal.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from paygate.config import settings as app_settings
from paygate.errors import GatewayError, GatewayRequestFailed
from paygate.logging_config import get_logger
from paygate.schemas import IntentResult

logger = get_logger(__name__)


class GatewayName(str, Enum):
    """Gateway names as stored in the payment_settings table."""
    RAZORPAY = "Razorpay"
    STRIPE = "Stripe"
    PAYPAL = "PayPal"


class GatewayTag(str, Enum):
    """Short gateway tags used by the storefront client."""
    RAZORPAY = "razorpay"
    STRIPE = "stripe"
    PAYPAL = "paypal"

    @property
    def gateway_name(self) -> GatewayName:
        return GatewayName[self.name]


def tag_for(name: GatewayName) -> GatewayTag:
    return GatewayTag[name.name]


@dataclass(frozen=True)
class GatewaySettings:
    """One row of payment_settings. Read-only here."""
    gateway_name: str
    api_key: str
    api_secret: str = field(repr=False)
    is_test_mode: bool = False
    is_enabled: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "GatewaySettings":
        return cls(
            gateway_name=row.get("gateway_name") or "",
            api_key=row.get("api_key") or "",
            api_secret=row.get("api_secret") or "",
            is_test_mode=bool(row.get("is_test_mode")),
            is_enabled=bool(row.get("is_enabled")),
        )


@dataclass(frozen=True)
class VerifyResult:
    """
    Outcome of a verification attempt.

    ``error`` is set only when the provider could not give an answer, so a
    legitimately unpaid order (verified=False, error=None) stays
    distinguishable from an unreachable provider.
    """
    verified: bool
    error: Optional[GatewayError] = None

    @classmethod
    def ok(cls, verified: bool) -> "VerifyResult":
        return cls(verified=verified)

    @classmethod
    def failure(cls, error: GatewayError) -> "VerifyResult":
        return cls(verified=False, error=error)


def to_minor_units(amount: Decimal) -> int:
    """49.99 -> 4999, rounding half-up at the cent."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class GatewayAdapter(ABC):
    """
    Base adapter for payment gateways.
    All gateway implementations must inherit from this class.
    """

    tag: GatewayTag

    def __init__(
        self,
        settings: GatewaySettings,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize adapter with credentials.

        Args:
            settings: Freshly loaded gateway settings row
            transport: Optional httpx transport (tests inject a MockTransport)
            timeout: Per-call timeout in seconds, defaults to GATEWAY_TIMEOUT_SECONDS
        """
        self.settings = settings
        self._transport = transport
        self.timeout = timeout if timeout is not None else app_settings.GATEWAY_TIMEOUT_SECONDS

    @abstractmethod
    def create_intent(self, amount: Decimal, currency: str, order_id: str) -> IntentResult:
        """
        Create a pending intent/order on the provider side.

        Args:
            amount: Amount in major currency units (two decimals)
            currency: ISO 4217 code
            order_id: Local order id, sent as the provider-side reference

        Returns:
            The gateway's IntentResult variant

        Raises:
            GatewayRequestFailed: network error, timeout, non-2xx or malformed response
        """
        pass

    @abstractmethod
    def _check_payment(
        self,
        payment_id: str,
        signature: Optional[str],
        gateway_order_id: Optional[str],
    ) -> bool:
        """Provider-specific verification. May raise GatewayRequestFailed."""
        pass

    def verify(
        self,
        payment_id: str,
        signature: Optional[str] = None,
        gateway_order_id: Optional[str] = None,
    ) -> VerifyResult:
        """
        Confirm the payment completed.

        Gateway errors, and anything else the provider call raises, are
        returned inside the result instead of raised.
        """
        try:
            return VerifyResult.ok(self._check_payment(payment_id, signature, gateway_order_id))
        except GatewayRequestFailed as e:
            logger.warning(
                "gateway_verify_error",
                gateway=self.tag.value,
                payment_id=payment_id,
                error=e.message,
                provider_status=e.provider_status,
            )
            return VerifyResult.failure(e)
        except Exception as e:
            logger.error(
                "gateway_verify_unexpected_error",
                gateway=self.tag.value,
                payment_id=payment_id,
                exc_info=e,
            )
            return VerifyResult.failure(
                GatewayRequestFailed(f"{self.tag.value} verification error: {e}", gateway=self.tag.value)
            )

    # -----------------------------------------
    # HTTP plumbing shared by httpx-based adapters
    # -----------------------------------------

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def _request(
        self,
        method: str,
        url: str,
        failure: str,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Send one request and return the decoded JSON body.

        Any transport error, timeout, non-2xx status or non-JSON body is
        raised as GatewayRequestFailed with ``failure`` as the message prefix.
        """
        try:
            with self._client() as client:
                r = client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise GatewayRequestFailed(f"{failure}: request timed out", gateway=self.tag.value) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise GatewayRequestFailed(f"{failure}: {e}", gateway=self.tag.value) from e

        if r.status_code >= 400:
            raise GatewayRequestFailed(
                f"{failure}: {_provider_message(r)}",
                gateway=self.tag.value,
                provider_status=r.status_code,
            )
        try:
            data = r.json()
        except ValueError as e:
            raise GatewayRequestFailed(f"{failure}: invalid response body", gateway=self.tag.value) from e
        if not isinstance(data, dict):
            raise GatewayRequestFailed(f"{failure}: invalid response body", gateway=self.tag.value)
        return data

    def __repr__(self):
        return f"<{self.__class__.__name__}(gateway={self.tag.value}, test_mode={self.settings.is_test_mode})>"


def _provider_message(r: httpx.Response) -> str:
    """Best-effort error description from a provider error response."""
    try:
        body = r.json()
    except ValueError:
        return r.text or f"HTTP {r.status_code}"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            return err.get("description") or err.get("message") or f"HTTP {r.status_code}"
        if isinstance(err, str):
            return body.get("error_description") or err
        return body.get("message") or f"HTTP {r.status_code}"
    return f"HTTP {r.status_code}"


def require(data: Dict[str, Any], key: str, failure: str, gateway: GatewayTag) -> Any:
    """Fetch a mandatory field from a provider response."""
    value = data.get(key)
    if value is None or value == "":
        raise GatewayRequestFailed(f"{failure}: missing '{key}' in response", gateway=gateway.value)
    return value
