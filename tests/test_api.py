import hashlib
import hmac

import httpx
import pytest
from fastapi.testclient import TestClient

from paygate.config import settings
from paygate.deps import get_dispatcher, get_order_store, get_settings_provider
from paygate.main import app as fastapi_app, run
from paygate.psp.dispatcher import PSPDispatcher
from paygate.services.order_store import MarkPaidResult
from conftest import FakeOrderStore, FakeSettingsProvider, RecordingTransport, paypal_row, razorpay_row

SIGNATURE = hmac.new(b"shhh", b"order_abc|pay_123", hashlib.sha256).hexdigest()


@pytest.fixture
def provider():
    return FakeSettingsProvider(razorpay_row())


@pytest.fixture
def store():
    return FakeOrderStore()


@pytest.fixture
def transport():
    return RecordingTransport(
        lambda request: httpx.Response(200, json={"id": "order_abc", "amount": 4999, "currency": "USD"}),
    )


@pytest.fixture
def client(provider, store, transport):
    fastapi_app.dependency_overrides[get_settings_provider] = lambda: provider
    fastapi_app.dependency_overrides[get_order_store] = lambda: store
    fastapi_app.dependency_overrides[get_dispatcher] = lambda: PSPDispatcher(transport=transport)
    with TestClient(fastapi_app, raise_server_exceptions=False) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


def test_cash_on_delivery(client, provider):
    response = client.post("/functions/v1/process-payment", json={
        "orderId": "o1", "amount": 49.99, "currency": "USD", "paymentMethod": "Cash on Delivery",
    })

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["paymentMethod"] == "cod"
    assert provider.calls == []


@pytest.mark.parametrize("provider", [FakeSettingsProvider()])
def test_no_gateway_configured(client, provider):
    response = client.post("/functions/v1/process-payment", json={
        "orderId": "o2", "amount": 10, "paymentMethod": "Card",
    })

    assert response.status_code == 400
    assert response.json() == {"error": "No payment gateway configured"}


def test_missing_fields(client, transport):
    response = client.post("/functions/v1/process-payment", json={"orderId": "o3", "paymentMethod": "Card"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}
    assert transport.requests == []


def test_malformed_body_is_bad_request(client):
    response = client.post(
        "/functions/v1/process-payment",
        content="not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_razorpay_intent_exposes_public_key_only(client):
    response = client.post("/functions/v1/process-payment", json={
        "orderId": "o4", "amount": 49.99, "paymentMethod": "Card",
    })

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "gateway": "razorpay",
        "orderId": "order_abc",
        "amount": 4999,
        "currency": "USD",
        "key": "rzp_test_key",
    }
    assert "shhh" not in response.text


@pytest.mark.parametrize("transport", [RecordingTransport(lambda request: httpx.Response(502, text="Bad Gateway"))])
def test_gateway_failure_is_server_error(client, transport):
    response = client.post("/functions/v1/process-payment", json={
        "orderId": "o5", "amount": 10, "paymentMethod": "Card",
    })

    assert response.status_code == 500
    assert response.json()["error"].startswith("Failed to create Razorpay order")


def test_verify_payment_success(client, store):
    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "pay_123", "signature": SIGNATURE,
        "gateway": "razorpay", "gatewayOrderId": "order_abc",
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "verified": True, "message": "Payment verified successfully"}
    assert store.calls == [("o1", "pay_123", "razorpay")]


def test_verify_payment_tampered_signature(client, store):
    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "pay_123", "signature": "0" * 64,
        "gateway": "razorpay", "gatewayOrderId": "order_abc",
    })

    assert response.status_code == 400
    assert response.json() == {"success": False, "verified": False, "message": "Payment verification failed"}
    assert store.calls == []


def test_verify_unknown_gateway(client):
    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "pay_123", "gateway": "bitcoin",
    })

    assert response.status_code == 400
    assert response.json() == {"error": "Unsupported payment gateway"}


def test_verify_unconfigured_gateway(client):
    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "PP-1", "gateway": "paypal",
    })

    assert response.status_code == 400
    assert response.json() == {"success": False, "verified": False, "message": "Payment gateway not configured"}


@pytest.mark.parametrize("store", [FakeOrderStore(MarkPaidResult.rejected("Order not found"))])
def test_verify_order_update_rejected(client, store):
    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "pay_123", "signature": SIGNATURE,
        "gateway": "razorpay", "gatewayOrderId": "order_abc",
    })

    assert response.status_code == 409
    assert response.json()["verified"] is True
    assert response.json()["orderUpdated"] is False


def test_verify_order_store_crash_is_server_error(client, store, mocker):
    mocker.patch.object(store, "mark_paid", side_effect=RuntimeError("rpc unavailable"))

    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "pay_123", "signature": SIGNATURE,
        "gateway": "razorpay", "gatewayOrderId": "order_abc",
    })

    assert response.status_code == 500
    assert response.json() == {"error": "rpc unavailable"}


@pytest.mark.parametrize("provider", [FakeSettingsProvider(paypal_row())])
def test_public_gateway_config_hides_secret(client, provider):
    response = client.get("/functions/v1/payment-gateway")

    assert response.status_code == 200
    assert response.json() == {"gateway": "paypal", "key": "paypal-client-id", "isTestMode": True}
    assert "paypal-client-secret" not in response.text


@pytest.mark.parametrize("path", ["/functions/v1/process-payment", "/functions/v1/verify-payment"])
def test_cors_preflight(client, path):
    response = client.options(path, headers={
        "Origin": "https://shop.example.com",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Content-Type, Authorization",
    })

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]


def test_bare_options_request(client):
    assert client.options("/functions/v1/process-payment").status_code == 200


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.parametrize("provider", [FakeSettingsProvider(paypal_row())])
def test_verify_control_character_payment_id_is_not_a_server_error(client, provider, transport):
    response = client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "PP\n1", "gateway": "paypal",
    })

    assert response.status_code == 400
    assert response.json() == {"success": False, "verified": False, "message": "Payment verification failed"}
    assert transport.requests == []


def test_verify_binds_order_to_log_context(client, mocker):
    bind = mocker.patch("paygate.routers.payments.bind_payment_context")

    client.post("/functions/v1/verify-payment", json={
        "orderId": "o1", "paymentId": "pay_123", "signature": SIGNATURE,
        "gateway": "razorpay", "gatewayOrderId": "order_abc",
    })

    bind.assert_called_once_with(order_id="o1", gateway="razorpay")


def test_run_serves_app_with_configured_host_and_port(mocker):
    serve = mocker.patch("paygate.main.uvicorn.run")

    run()

    serve.assert_called_once_with(
        fastapi_app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
