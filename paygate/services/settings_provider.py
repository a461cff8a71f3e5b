"""
Gateway settings lookup against the payment_settings table.

Rows are owned by the admin settings screen; this service only reads them,
fresh on every call.
"""
from typing import Any, Callable, Dict, Optional, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from paygate.errors import GatewayNotConfigured
from paygate.logging_config import get_logger
from paygate.psp.adapter import GatewayName, GatewaySettings

logger = get_logger(__name__)

SETTINGS_TABLE = "payment_settings"


class GatewaySettingsProvider(Protocol):
    def get_enabled(self) -> GatewaySettings:
        """The single enabled row, whatever gateway it names."""
        ...

    def get_enabled_for(self, name: GatewayName) -> GatewaySettings:
        """The enabled row for one specific gateway."""
        ...


class SupabaseSettingsProvider:
    """Reads payment_settings through the service-role Supabase client."""

    def __init__(self, client_factory: Callable[[], Client]):
        self._client_factory = client_factory

    def get_enabled(self) -> GatewaySettings:
        row = self._fetch_one(None)
        if row is None:
            raise GatewayNotConfigured("No payment gateway configured")
        return GatewaySettings.from_row(row)

    def get_enabled_for(self, name: GatewayName) -> GatewaySettings:
        row = self._fetch_one(name)
        if row is None:
            raise GatewayNotConfigured("Payment gateway not configured")
        return GatewaySettings.from_row(row)

    def _fetch_one(self, name: Optional[GatewayName]) -> Optional[Dict[str, Any]]:
        """Return the matching enabled row, or None when absent or unreadable."""
        try:
            query = self._client_factory().table(SETTINGS_TABLE).select("*").eq("is_enabled", True)
            if name is not None:
                query = query.eq("gateway_name", name.value)
            response = query.maybe_single().execute()
        except (APIError, httpx.HTTPError, ValueError) as e:
            # maybe_single() also errors when more than one row is enabled
            logger.error(
                "gateway_settings_fetch_failed",
                gateway=name.value if name else None,
                error=str(e),
            )
            return None

        if response is None or not response.data:
            logger.warning("gateway_settings_missing", gateway=name.value if name else None)
            return None
        return response.data
