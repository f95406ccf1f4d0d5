import json
import os
from decimal import Decimal

import pytest

from application.dtos.payments import ProviderWebhookPayload
from domain.payment.entity import PaymentActions
from infrastructure.external.payments.signatures import compute_signature


WEBHOOK_SECRET = os.environ["RAZORPAY_WEBHOOK_SECRET"]


def _event(name: str, *, receipt=None, order_id="order_9", amount=50000) -> dict:
    payload = {
        "payment": {
            "entity": {"id": "pay_9", "order_id": order_id, "amount": amount, "currency": "INR"}
        }
    }
    if receipt is not None:
        payload["order"] = {"entity": {"id": order_id, "receipt": receipt}}
    return {"entity": "event", "event": name, "payload": payload}


def _signed(event: dict, *, secret: str = WEBHOOK_SECRET, header: str = "x-razorpay-signature"):
    raw = json.dumps(event).encode()
    return ProviderWebhookPayload(
        data=event,
        raw_data=raw,
        headers={header: compute_signature(raw, secret)},
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,action",
    [
        ("payment.authorized", PaymentActions.AUTHORIZED),
        ("payment.captured", PaymentActions.CAPTURED),
        ("payment.failed", PaymentActions.FAILED),
    ],
)
async def test_supported_events_map_to_actions(razorpay_provider, name, action):
    result = await razorpay_provider.get_webhook_action_and_data(_signed(_event(name, receipt="sess_1")))

    assert result.action is action
    assert result.data.session_id == "sess_1"
    assert result.data.amount == Decimal(50000)


@pytest.mark.asyncio
async def test_session_id_falls_back_to_payment_order_id(razorpay_provider):
    result = await razorpay_provider.get_webhook_action_and_data(_signed(_event("payment.captured")))

    assert result.action is PaymentActions.CAPTURED
    assert result.data.session_id == "order_9"


@pytest.mark.asyncio
async def test_unknown_event_is_not_supported(razorpay_provider):
    result = await razorpay_provider.get_webhook_action_and_data(_signed(_event("refund.processed")))

    assert result.action is PaymentActions.NOT_SUPPORTED
    assert result.data.session_id == ""
    assert result.data.amount == 0


@pytest.mark.asyncio
async def test_bad_signature_fails(razorpay_provider):
    payload = _signed(_event("payment.captured", receipt="sess_1"), secret="wrong")

    result = await razorpay_provider.get_webhook_action_and_data(payload)

    assert result.action is PaymentActions.FAILED
    assert result.data.session_id == ""
    assert result.data.amount == 0


@pytest.mark.asyncio
async def test_missing_signature_header_fails(razorpay_provider):
    event = _event("payment.captured", receipt="sess_1")
    payload = ProviderWebhookPayload(data=event, raw_data=json.dumps(event).encode(), headers={})

    result = await razorpay_provider.get_webhook_action_and_data(payload)

    assert result.action is PaymentActions.FAILED


@pytest.mark.asyncio
async def test_signature_header_lookup_is_case_insensitive(razorpay_provider):
    payload = _signed(_event("payment.authorized", receipt="sess_2"), header="X-Razorpay-Signature")

    result = await razorpay_provider.get_webhook_action_and_data(payload)

    assert result.action is PaymentActions.AUTHORIZED


@pytest.mark.asyncio
async def test_event_parsed_from_raw_body_when_data_missing(razorpay_provider):
    event = _event("payment.captured", receipt="sess_3", amount=1234)
    raw = json.dumps(event)
    payload = ProviderWebhookPayload(
        raw_data=raw,
        headers={"x-razorpay-signature": compute_signature(raw, WEBHOOK_SECRET)},
    )

    result = await razorpay_provider.get_webhook_action_and_data(payload)

    assert result.action is PaymentActions.CAPTURED
    assert result.data.session_id == "sess_3"
    assert result.data.amount == Decimal(1234)


@pytest.mark.asyncio
async def test_malformed_body_fails(razorpay_provider):
    raw = b"not-json"
    payload = ProviderWebhookPayload(
        raw_data=raw,
        headers={"x-razorpay-signature": compute_signature(raw, WEBHOOK_SECRET)},
    )

    result = await razorpay_provider.get_webhook_action_and_data(payload)

    assert result.action is PaymentActions.FAILED


@pytest.mark.asyncio
async def test_signature_not_checked_without_webhook_secret(razorpay_client):
    from infrastructure.external.payments.razorpay_provider import RazorpayPaymentProvider

    provider = RazorpayPaymentProvider(
        {}, {"key_id": "rzp_test_key", "key_secret": "s"}, client=razorpay_client
    )
    event = _event("payment.authorized", receipt="sess_4")
    payload = ProviderWebhookPayload(data=event, raw_data=json.dumps(event).encode(), headers={})

    result = await provider.get_webhook_action_and_data(payload)

    assert result.action is PaymentActions.AUTHORIZED
    assert result.data.session_id == "sess_4"
