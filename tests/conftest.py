"""Pytest bootstrap configuration.

Ensure Razorpay credentials are set before test collection and module
imports that depend on application settings.
"""
import os

os.environ.setdefault("RAZORPAY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "whsec_test")

import json
import time
from typing import Any, Optional

import httpx
import pytest


KEY_ID = os.environ["RAZORPAY_ID"]
KEY_SECRET = os.environ["RAZORPAY_SECRET"]
WEBHOOK_SECRET = os.environ["RAZORPAY_WEBHOOK_SECRET"]


def _error(status: int, description: str, code: str = "BAD_REQUEST_ERROR") -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": code, "description": description}})


class FakeRazorpay:
    """In-memory stand-in for the Razorpay REST API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.orders: dict[str, dict[str, Any]] = {}
        self.payments: dict[str, dict[str, Any]] = {}
        self.refunds: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        # (status, json body) returned for every request when set
        self.fail_with: Optional[tuple[int, dict]] = None
        self._seq = 0

    def _next(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}_{self._seq}"

    def add_payment(self, order_id: str, status: str = "authorized", amount: Optional[int] = None) -> dict:
        order = self.orders[order_id]
        payment = {
            "id": self._next("pay"),
            "entity": "payment",
            "amount": amount if amount is not None else order["amount"],
            "currency": order["currency"],
            "status": status,
            "order_id": order_id,
            "captured": status == "captured",
            "notes": [],
            "created_at": int(time.time()),
        }
        self.payments[payment["id"]] = payment
        if status in ("authorized", "captured"):
            order["status"] = "paid"
            order["amount_paid"] = payment["amount"]
        return payment

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            status, payload = self.fail_with
            return httpx.Response(status, json=payload)

        parts = request.url.path.strip("/").split("/")[1:]  # drop "v1"
        body = json.loads(request.content) if request.content else {}

        if parts == ["orders"] and request.method == "POST":
            order = {
                "id": self._next("order"),
                "entity": "order",
                "amount": body["amount"],
                "amount_paid": 0,
                "amount_due": body["amount"],
                "currency": body["currency"],
                "receipt": body.get("receipt"),
                "status": "created",
                "attempts": 0,
                "notes": body.get("notes") or [],
                "created_at": int(time.time()),
            }
            self.orders[order["id"]] = order
            return httpx.Response(200, json=order)

        if parts[:1] == ["orders"] and len(parts) >= 2:
            order = self.orders.get(parts[1])
            if order is None:
                return _error(400, "The id provided does not exist")
            if len(parts) == 2:
                return httpx.Response(200, json=order)
            items = [p for p in self.payments.values() if p["order_id"] == order["id"]]
            return httpx.Response(200, json={"entity": "collection", "count": len(items), "items": items})

        if parts[:1] == ["payments"] and len(parts) >= 2:
            payment = self.payments.get(parts[1])
            if payment is None:
                return _error(400, "The id provided does not exist")
            if len(parts) == 2:
                return httpx.Response(200, json=payment)
            if parts[2] == "capture":
                if payment["status"] != "authorized":
                    return _error(400, "This payment has already been captured")
                payment.update(status="captured", captured=True)
                return httpx.Response(200, json=payment)
            if parts[2] == "refund":
                refund = {
                    "id": self._next("rfnd"),
                    "entity": "refund",
                    "amount": body.get("amount", payment["amount"]),
                    "currency": payment["currency"],
                    "payment_id": payment["id"],
                    "status": "processed",
                    "notes": body.get("notes") or [],
                    "receipt": body.get("receipt"),
                    "created_at": int(time.time()),
                }
                self.refunds[refund["id"]] = refund
                payment["amount_refunded"] = payment.get("amount_refunded", 0) + refund["amount"]
                return httpx.Response(200, json=refund)

        if parts[:1] == ["refunds"] and len(parts) == 2:
            refund = self.refunds.get(parts[1])
            if refund is None:
                return _error(400, "The id provided does not exist")
            return httpx.Response(200, json=refund)

        return _error(404, "The requested URL was not found on the server.")


@pytest.fixture()
def razorpay_api() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture()
def razorpay_client(razorpay_api):
    from infrastructure.external.payments.razorpay_client import RazorpayClient

    return RazorpayClient(
        key_id=KEY_ID,
        key_secret=KEY_SECRET,
        transport=razorpay_api.transport,
        retry={"max": 0, "base": 0},
    )


@pytest.fixture()
def razorpay_provider(razorpay_client):
    from infrastructure.external.payments.razorpay_provider import RazorpayPaymentProvider

    return RazorpayPaymentProvider(
        {},
        {"key_id": KEY_ID, "key_secret": KEY_SECRET, "webhook_secret": WEBHOOK_SECRET},
        client=razorpay_client,
    )
