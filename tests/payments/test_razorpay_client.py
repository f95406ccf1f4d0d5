import base64
import json

import httpx
import pytest

from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from infrastructure.external.payments.razorpay_client import RazorpayClient
from shared.codes.payment_codes import PaymentCode


@pytest.mark.asyncio
async def test_create_order_sends_basic_auth_and_smallest_unit_amount(razorpay_api, razorpay_client):
    order = await razorpay_client.create_order(amount=100000, currency="inr", receipt="sess_1")

    request = razorpay_api.requests[-1]
    assert request.method == "POST"
    assert request.url.path == "/v1/orders"
    expected = base64.b64encode(b"rzp_test_key:rzp_test_secret").decode()
    assert request.headers["authorization"] == f"Basic {expected}"
    assert json.loads(request.content) == {"amount": 100000, "currency": "INR", "receipt": "sess_1"}

    assert order.id.startswith("order_")
    assert order.status == "created"
    # Razorpay sends empty notes as []
    assert order.notes == {}


@pytest.mark.asyncio
async def test_fetch_order_payments_returns_items(razorpay_api, razorpay_client):
    order = await razorpay_client.create_order(amount=5000, currency="INR")
    payment = razorpay_api.add_payment(order.id, status="captured")

    payments = await razorpay_client.fetch_order_payments(order.id)

    assert [p.id for p in payments] == [payment["id"]]
    assert payments[0].captured is True


@pytest.mark.asyncio
async def test_capture_and_refund(razorpay_api, razorpay_client):
    order = await razorpay_client.create_order(amount=5000, currency="INR")
    payment = razorpay_api.add_payment(order.id)

    captured = await razorpay_client.capture_payment(payment["id"], amount=5000, currency="INR")
    assert captured.status == "captured"

    refund = await razorpay_client.refund_payment(payment["id"], amount=2000, notes={"session_id": "s"})
    assert refund.amount == 2000
    assert refund.payment_id == payment["id"]
    assert (await razorpay_client.fetch_refund(refund.id)).status == "processed"


@pytest.mark.asyncio
async def test_error_body_is_translated(razorpay_client):
    with pytest.raises(PaymentProviderError) as ei:
        await razorpay_client.fetch_order("order_missing")

    err = ei.value
    assert not isinstance(err, PaymentRecoverableError)
    assert err.code == PaymentCode.PROVIDER_ERROR
    assert err.message == "The id provided does not exist"
    assert err.provider_code == "BAD_REQUEST_ERROR"
    assert err.status_code == 400


@pytest.mark.asyncio
async def test_server_errors_are_recoverable(razorpay_api, razorpay_client):
    razorpay_api.fail_with = (503, {"error": {"code": "SERVER_ERROR", "description": "Service unavailable"}})

    with pytest.raises(PaymentRecoverableError) as ei:
        await razorpay_client.create_order(amount=100, currency="INR")

    assert ei.value.code == PaymentCode.PROVIDER_RECOVERABLE
    # Writes are not replayed
    assert len(razorpay_api.requests) == 1


@pytest.mark.asyncio
async def test_reads_are_retried_on_retryable_status(razorpay_api):
    calls = {"n": 0}
    order = {"id": "order_1", "amount": 100, "currency": "INR", "status": "created", "notes": []}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] < 3:
            return httpx.Response(502, json={"error": {"code": "SERVER_ERROR", "description": "bad gateway"}})
        return httpx.Response(200, json=order)

    client = RazorpayClient(
        key_id="k",
        key_secret="s",
        transport=httpx.MockTransport(handler),
        retry={"max": 2, "base": 0},
    )

    fetched = await client.fetch_order("order_1")

    assert fetched.id == "order_1"
    assert calls["n"] == 3
    await client.aclose()


@pytest.mark.asyncio
async def test_transport_errors_become_recoverable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = RazorpayClient(
        key_id="k",
        key_secret="s",
        transport=httpx.MockTransport(handler),
        retry={"max": 1, "base": 0},
    )

    with pytest.raises(PaymentRecoverableError):
        await client.fetch_payment("pay_1")


def _timing_out_once(razorpay_api, path_suffix: str, error: type[httpx.TransportError]):
    """Forward to the fake gateway, failing the first matching call with `error`.

    ReadTimeout is raised after the gateway processed the request, ConnectError before.
    """
    state = {"failed": False}

    def handler(request: httpx.Request) -> httpx.Response:
        matches = request.url.path.endswith(path_suffix) and not state["failed"]
        if matches and error is httpx.ConnectError:
            state["failed"] = True
            raise error("connection refused", request=request)
        response = razorpay_api.handler(request)
        if matches:
            state["failed"] = True
            raise error("read timed out", request=request)
        return response

    return RazorpayClient(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        transport=httpx.MockTransport(handler),
        retry={"max": 2, "base": 0},
    )


@pytest.mark.asyncio
async def test_refund_is_not_replayed_after_read_timeout(razorpay_api, razorpay_client):
    order = await razorpay_client.create_order(amount=5000, currency="INR")
    payment = razorpay_api.add_payment(order.id, status="captured")
    client = _timing_out_once(razorpay_api, "/refund", httpx.ReadTimeout)

    with pytest.raises(PaymentRecoverableError) as ei:
        await client.refund_payment(payment["id"], amount=500)

    assert ei.value.code == PaymentCode.TIMEOUT
    assert len(razorpay_api.refunds) == 1


@pytest.mark.asyncio
async def test_capture_is_not_replayed_after_read_timeout(razorpay_api, razorpay_client):
    order = await razorpay_client.create_order(amount=5000, currency="INR")
    payment = razorpay_api.add_payment(order.id, status="authorized")
    client = _timing_out_once(razorpay_api, "/capture", httpx.ReadTimeout)

    with pytest.raises(PaymentRecoverableError):
        await client.capture_payment(payment["id"], amount=5000, currency="INR")

    captures = [r for r in razorpay_api.requests if r.url.path.endswith("/capture")]
    assert len(captures) == 1


@pytest.mark.asyncio
async def test_writes_are_retried_when_connection_failed(razorpay_api, razorpay_client):
    order = await razorpay_client.create_order(amount=5000, currency="INR")
    payment = razorpay_api.add_payment(order.id, status="captured")
    client = _timing_out_once(razorpay_api, "/refund", httpx.ConnectError)

    refund = await client.refund_payment(payment["id"], amount=500)

    assert refund.amount == 500
    assert len(razorpay_api.refunds) == 1


@pytest.mark.asyncio
async def test_rate_limited_response_carries_rate_limit_code(razorpay_api, razorpay_client):
    razorpay_api.fail_with = (429, {"error": {"code": "BAD_REQUEST_ERROR", "description": "Too many requests"}})

    with pytest.raises(PaymentRecoverableError) as ei:
        await razorpay_client.create_order(amount=100, currency="INR")

    assert ei.value.code == PaymentCode.RATE_LIMITED
    assert ei.value.status_code == 429
