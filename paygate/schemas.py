"""
Wire schemas for the payment endpoints.

Field names are camelCase on the wire because the storefront client sends and
reads them that way. Request fields are optional at the parsing layer; the
services decide what is required and classify the failure.
"""
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PaymentRequest(BaseModel):
    orderId: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = "USD"
    paymentMethod: Optional[str] = None


class VerificationRequest(BaseModel):
    orderId: Optional[str] = None
    paymentId: Optional[str] = None
    signature: Optional[str] = None
    gateway: Optional[str] = None
    gatewayOrderId: Optional[str] = None


# ---------------------------------------------
# Intent results (one variant per gateway)
# ---------------------------------------------

class _IntentBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True


class CashOnDeliveryIntent(_IntentBase):
    paymentMethod: Literal["cod"] = "cod"
    message: str = "Cash on Delivery order created successfully"


class RazorpayIntent(_IntentBase):
    gateway: Literal["razorpay"] = "razorpay"
    orderId: str
    amount: int = Field(..., description="Amount in minor units, as echoed by Razorpay")
    currency: str
    key: str = Field(..., description="Public key id used to open the checkout sheet")


class StripeIntent(_IntentBase):
    gateway: Literal["stripe"] = "stripe"
    clientSecret: str
    paymentIntentId: str
    amount: int
    currency: str


class PayPalIntent(_IntentBase):
    gateway: Literal["paypal"] = "paypal"
    orderId: str
    amount: float
    currency: str


IntentResult = Union[CashOnDeliveryIntent, RazorpayIntent, StripeIntent, PayPalIntent]


class VerificationResponse(BaseModel):
    success: bool
    verified: bool
    message: str


class GatewayPublicConfig(BaseModel):
    gateway: str
    key: str
    isTestMode: bool
