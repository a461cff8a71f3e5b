from fastapi import Depends

from .config import settings
from .db import SessionLocal
from .psp.dispatcher import PSPDispatcher
from .services.order_store import DatabaseOrderStore, OrderStateStore, SupabaseOrderStore
from .services.payment_intent_service import PaymentIntentService
from .services.settings_provider import GatewaySettingsProvider, SupabaseSettingsProvider
from .services.verification_service import VerificationService
from .supabase import get_supabase_admin_client


def get_settings_provider() -> GatewaySettingsProvider:
    return SupabaseSettingsProvider(get_supabase_admin_client)


def get_order_store() -> OrderStateStore:
    if settings.ORDER_STORE_BACKEND == "database":
        return DatabaseOrderStore(SessionLocal)
    return SupabaseOrderStore(get_supabase_admin_client)


def get_dispatcher() -> PSPDispatcher:
    return PSPDispatcher()


def get_payment_intent_service(
    settings_provider: GatewaySettingsProvider = Depends(get_settings_provider),
    dispatcher: PSPDispatcher = Depends(get_dispatcher),
) -> PaymentIntentService:
    return PaymentIntentService(settings_provider, dispatcher, settings.CASH_ON_DELIVERY_METHODS)


def get_verification_service(
    settings_provider: GatewaySettingsProvider = Depends(get_settings_provider),
    dispatcher: PSPDispatcher = Depends(get_dispatcher),
    order_store: OrderStateStore = Depends(get_order_store),
) -> VerificationService:
    return VerificationService(settings_provider, dispatcher, order_store)
