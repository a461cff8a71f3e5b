"""
Configuration settings for the storefront payment gateway service.
Handles environment variables and application settings.

Gateway credentials are not settings: they live in the
``payment_settings`` table and are read per call.
"""
from typing import Annotated, List, Optional
from pydantic_settings import BaseSettings, NoDecode
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "storefront-paygate"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Supabase (settings table + order remote procedure)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # Order state store: "supabase" or "database"
    ORDER_STORE_BACKEND: str = "supabase"
    DATABASE_URL: str = "sqlite:///./paygate.db"

    # Outbound gateway calls
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    RAZORPAY_API_BASE: str = "https://api.razorpay.com"
    PAYPAL_LIVE_API_BASE: str = "https://api-m.paypal.com"
    PAYPAL_SANDBOX_API_BASE: str = "https://api-m.sandbox.paypal.com"

    # Checkout
    CASH_ON_DELIVERY_METHODS: Annotated[List[str], NoDecode] = ["Cash on Delivery"]

    # CORS
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    @field_validator("ALLOWED_ORIGINS", "CASH_ON_DELIVERY_METHODS", mode="before")
    @classmethod
    def split_comma_list(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("ORDER_STORE_BACKEND")
    @classmethod
    def check_order_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("supabase", "database"):
            raise ValueError("ORDER_STORE_BACKEND must be 'supabase' or 'database'")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env file


# Create settings instance
settings = Settings()


# Environment-specific overrides
if settings.ENVIRONMENT == "development":
    settings.DEBUG = True

