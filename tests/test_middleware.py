import pytest
from structlog.contextvars import clear_contextvars, get_contextvars

from paygate.middleware import bind_payment_context


@pytest.fixture(autouse=True)
def clean_context():
    clear_contextvars()
    yield
    clear_contextvars()


def test_bind_payment_context_adds_order_and_gateway():
    bind_payment_context(order_id="o1", gateway="paypal")

    assert get_contextvars() == {"order_id": "o1", "gateway": "paypal"}


def test_bind_payment_context_skips_missing_values():
    bind_payment_context(order_id=None, gateway="stripe")

    assert get_contextvars() == {"gateway": "stripe"}
