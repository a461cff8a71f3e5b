import base64
import hashlib
import hmac
from decimal import Decimal

import httpx
import pytest

from paygate.errors import GatewayRequestFailed
from paygate.psp.razorpay_adapter import RazorpayAdapter, razorpay_signature
from conftest import RecordingTransport, json_body, razorpay_row


def sign(text: str, secret: str) -> str:
    return hmac.new(secret.encode(), text.encode(), hashlib.sha256).hexdigest()


def flip_last(signature: str) -> str:
    return signature[:-1] + ("1" if signature[-1] == "0" else "0")


def test_signature_matches_hmac_sha256_of_order_and_payment():
    assert razorpay_signature("order_abc", "pay_123", "shhh") == sign("order_abc|pay_123", "shhh")


def test_verify_accepts_correct_signature_without_network():
    transport = RecordingTransport()
    adapter = RazorpayAdapter(razorpay_row(), transport=transport)

    result = adapter.verify("pay_123", signature=sign("order_abc|pay_123", "shhh"), gateway_order_id="order_abc")

    assert result.verified is True
    assert result.error is None
    assert transport.requests == []


def test_verify_is_deterministic():
    adapter = RazorpayAdapter(razorpay_row(), transport=RecordingTransport())
    signature = sign("order_abc|pay_123", "shhh")

    outcomes = {adapter.verify("pay_123", signature, "order_abc").verified for _ in range(5)}

    assert outcomes == {True}


@pytest.mark.parametrize("signature", [
    sign("order_abc|pay_123", "other-secret"),
    sign("order_abc|pay_999", "shhh"),
    flip_last(sign("order_abc|pay_123", "shhh")),
    "not-a-signature",
])
def test_verify_rejects_tampered_signature(signature):
    adapter = RazorpayAdapter(razorpay_row(), transport=RecordingTransport())

    result = adapter.verify("pay_123", signature=signature, gateway_order_id="order_abc")

    assert result.verified is False
    assert result.error is None


def test_verify_without_signature_is_not_verified():
    adapter = RazorpayAdapter(razorpay_row(), transport=RecordingTransport())

    assert adapter.verify("pay_123", signature=None, gateway_order_id="order_abc").verified is False


def test_create_intent_posts_minor_units_with_basic_auth():
    def handler(request):
        return httpx.Response(200, json={"id": "order_abc", "amount": 4999, "currency": "USD", "status": "created"})

    transport = RecordingTransport(handler)
    adapter = RazorpayAdapter(razorpay_row(), transport=transport)

    intent = adapter.create_intent(Decimal("49.99"), "USD", "o1")

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/orders"
    expected = base64.b64encode(b"rzp_test_key:shhh").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert json_body(request) == {"amount": 4999, "currency": "USD", "receipt": "o1"}

    assert intent.orderId == "order_abc"
    assert intent.amount == 4999
    assert intent.key == "rzp_test_key"
    assert "shhh" not in intent.model_dump_json()


def test_create_intent_wraps_provider_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}})

    adapter = RazorpayAdapter(razorpay_row(), transport=RecordingTransport(handler))

    with pytest.raises(GatewayRequestFailed) as exc:
        adapter.create_intent(Decimal("10"), "USD", "o2")

    assert "Authentication failed" in exc.value.message
    assert exc.value.provider_status == 400
    assert exc.value.status_code == 500


def test_create_intent_treats_timeout_as_request_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    adapter = RazorpayAdapter(razorpay_row(), transport=RecordingTransport(handler))

    with pytest.raises(GatewayRequestFailed, match="timed out"):
        adapter.create_intent(Decimal("10"), "USD", "o3")


def test_create_intent_rejects_response_without_order_id():
    adapter = RazorpayAdapter(
        razorpay_row(),
        transport=RecordingTransport(lambda request: httpx.Response(200, json={"amount": 1000})),
    )

    with pytest.raises(GatewayRequestFailed, match="missing 'id'"):
        adapter.create_intent(Decimal("10"), "USD", "o4")
