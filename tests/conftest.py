import json

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from paygate.db import Base
from paygate.errors import GatewayNotConfigured
from paygate.models import Order  # noqa: F401  registers the orders table
from paygate.psp.adapter import GatewayName, GatewaySettings
from paygate.services.order_store import MarkPaidResult


class FakeSettingsProvider:
    """In-memory stand-in for the payment_settings table."""

    def __init__(self, *rows: GatewaySettings):
        self.rows = list(rows)
        self.calls = []

    def get_enabled(self) -> GatewaySettings:
        self.calls.append(None)
        for row in self.rows:
            if row.is_enabled:
                return row
        raise GatewayNotConfigured("No payment gateway configured")

    def get_enabled_for(self, name: GatewayName) -> GatewaySettings:
        self.calls.append(name)
        for row in self.rows:
            if row.is_enabled and row.gateway_name == name.value:
                return row
        raise GatewayNotConfigured("Payment gateway not configured")


class FakeOrderStore:
    def __init__(self, result: MarkPaidResult = MarkPaidResult(success=True)):
        self.result = result
        self.calls = []

    def mark_paid(self, order_id, payment_id, gateway):
        self.calls.append((order_id, payment_id, gateway))
        return self.result


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request; with no handler any request is an error."""

    def __init__(self, handler=None):
        self.requests = []

        def _handle(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if handler is None:
                raise AssertionError(f"unexpected request {request.method} {request.url}")
            return handler(request)

        super().__init__(_handle)


def json_body(request: httpx.Request):
    return json.loads(request.content)


def razorpay_row(**overrides) -> GatewaySettings:
    values = dict(gateway_name="Razorpay", api_key="rzp_test_key", api_secret="shhh", is_enabled=True)
    values.update(overrides)
    return GatewaySettings(**values)


def stripe_row(**overrides) -> GatewaySettings:
    values = dict(gateway_name="Stripe", api_key="pk_test_123", api_secret="sk_test_456", is_enabled=True)
    values.update(overrides)
    return GatewaySettings(**values)


def paypal_row(**overrides) -> GatewaySettings:
    values = dict(
        gateway_name="PayPal",
        api_key="paypal-client-id",
        api_secret="paypal-client-secret",
        is_test_mode=True,
        is_enabled=True,
    )
    values.update(overrides)
    return GatewaySettings(**values)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
