"""
Supabase client configuration for the payment gateway service.
Provides centralized Supabase client management
"""

from supabase import create_client, Client
from paygate.config import settings
from paygate.logging_config import get_logger

logger = get_logger(__name__)


def get_supabase_admin_client() -> Client:
    """Get Supabase client with service role key for settings and order operations"""
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("Supabase URL and SERVICE_ROLE_KEY must be configured")

    try:
        client = create_client(
            supabase_url=settings.SUPABASE_URL,
            supabase_key=settings.SUPABASE_SERVICE_ROLE_KEY
        )
        logger.debug("supabase_admin_client_initialized")
        return client
    except Exception as e:
        logger.error("supabase_admin_client_failed", error=str(e))
        raise
