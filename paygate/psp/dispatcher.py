"""PSP Adapter Dispatcher - Routes to the correct adapter for a settings row."""
from typing import Dict, Optional, Type

import httpx

from paygate.errors import UnsupportedGateway
from .adapter import GatewayAdapter, GatewayName, GatewaySettings
from .paypal_adapter import PayPalAdapter
from .razorpay_adapter import RazorpayAdapter
from .stripe_adapter import StripeAdapter


ADAPTERS: Dict[GatewayName, Type[GatewayAdapter]] = {
    GatewayName.RAZORPAY: RazorpayAdapter,
    GatewayName.STRIPE: StripeAdapter,
    GatewayName.PAYPAL: PayPalAdapter,
}


def parse_gateway_name(value: str) -> GatewayName:
    """
    Map a stored gateway_name to the closed enum.

    Raises:
        UnsupportedGateway: for any name outside Razorpay/Stripe/PayPal
    """
    try:
        return GatewayName(value)
    except ValueError:
        raise UnsupportedGateway()


class PSPDispatcher:
    """
    Builds a fresh adapter for every call from the settings row it is given.
    Adapters are never cached: credentials can change between calls.
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None):
        self.transport = transport

    def get_adapter(self, gateway_settings: GatewaySettings) -> GatewayAdapter:
        """
        Get adapter for the given settings row.

        Raises:
            UnsupportedGateway: if the row names an unknown gateway
        """
        name = parse_gateway_name(gateway_settings.gateway_name)
        return ADAPTERS[name](gateway_settings, transport=self.transport)
