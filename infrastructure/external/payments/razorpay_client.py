"""
Razorpay REST adapter (orders, payments, refunds) over httpx.

Authentication is HTTP Basic with `key_id:key_secret`. Amounts are always in
the smallest currency unit. Razorpay has no endpoint to cancel or delete an
order; unpaid orders simply expire on the gateway.
"""
from __future__ import annotations

from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, field_validator

from infrastructure.external.payments.base import BasePaymentClient


DEFAULT_API_BASE = "https://api.razorpay.com/v1"


def _notes_as_dict(v: Any) -> dict:
    # Razorpay serialises empty notes as []
    if not v:
        return {}
    return v if isinstance(v, dict) else {}


class RazorpayEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    @field_validator("notes", mode="before", check_fields=False)
    @classmethod
    def _normalize_notes(cls, v: Any) -> dict:
        return _notes_as_dict(v)


class RazorpayOrder(RazorpayEntity):
    id: str
    entity: str = "order"
    amount: int
    amount_paid: int = 0
    amount_due: int = 0
    currency: str
    receipt: Optional[str] = None
    status: str
    attempts: int = 0
    notes: dict[str, Any] = {}
    created_at: Optional[int] = None


class RazorpayPayment(RazorpayEntity):
    id: str
    entity: str = "payment"
    amount: int
    currency: str
    status: str  # created, authorized, captured, refunded, failed
    order_id: Optional[str] = None
    method: Optional[str] = None
    captured: bool = False
    amount_refunded: int = 0
    refund_status: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[Union[str, int]] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None
    notes: dict[str, Any] = {}
    created_at: Optional[int] = None


class RazorpayRefund(RazorpayEntity):
    id: str
    entity: str = "refund"
    amount: int
    currency: str
    payment_id: str
    status: str  # pending, processed, failed
    speed_processed: Optional[str] = None
    receipt: Optional[str] = None
    notes: dict[str, Any] = {}
    created_at: Optional[int] = None


class RazorpayClient(BasePaymentClient):
    provider = "razorpay"

    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        api_base: str = DEFAULT_API_BASE,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url=api_base or DEFAULT_API_BASE,
            auth=(key_id, key_secret),
            timeouts=timeouts,
            retry=retry,
            transport=transport,
        )
        self.key_id = key_id

    def _error_details(self, resp: httpx.Response) -> tuple[Optional[str], str]:
        try:
            body = resp.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            code = error.get("code")
            description = error.get("description") or f"Razorpay request failed with status {resp.status_code}"
            return (str(code) if code else None), str(description)
        return None, f"Razorpay request failed with status {resp.status_code}"

    # Orders
    async def create_order(
        self,
        *,
        amount: int,
        currency: str,
        receipt: Optional[str] = None,
        notes: Optional[dict[str, Any]] = None,
    ) -> RazorpayOrder:
        payload: dict[str, Any] = {"amount": int(amount), "currency": currency.upper()}
        if receipt:
            payload["receipt"] = receipt
        if notes:
            payload["notes"] = notes
        data = await self._request("POST", "/orders", json=payload)
        order = RazorpayOrder.model_validate(data)
        self._log("razorpay_order_created", order_id=order.id, amount=order.amount, currency=order.currency)
        return order

    async def fetch_order(self, order_id: str) -> RazorpayOrder:
        data = await self._request("GET", f"/orders/{order_id}")
        return RazorpayOrder.model_validate(data)

    async def fetch_order_payments(self, order_id: str) -> list[RazorpayPayment]:
        data = await self._request("GET", f"/orders/{order_id}/payments")
        items = data.get("items", []) if isinstance(data, dict) else []
        return [RazorpayPayment.model_validate(item) for item in items]

    # Payments
    async def fetch_payment(self, payment_id: str) -> RazorpayPayment:
        data = await self._request("GET", f"/payments/{payment_id}")
        return RazorpayPayment.model_validate(data)

    async def capture_payment(self, payment_id: str, *, amount: int, currency: str) -> RazorpayPayment:
        data = await self._request(
            "POST",
            f"/payments/{payment_id}/capture",
            json={"amount": int(amount), "currency": currency.upper()},
        )
        payment = RazorpayPayment.model_validate(data)
        self._log("razorpay_payment_captured", payment_id=payment.id, amount=payment.amount)
        return payment

    async def refund_payment(
        self,
        payment_id: str,
        *,
        amount: Optional[int] = None,
        notes: Optional[dict[str, Any]] = None,
        receipt: Optional[str] = None,
    ) -> RazorpayRefund:
        payload: dict[str, Any] = {}
        if amount is not None:
            payload["amount"] = int(amount)
        if notes:
            payload["notes"] = notes
        if receipt:
            payload["receipt"] = receipt
        data = await self._request("POST", f"/payments/{payment_id}/refund", json=payload)
        refund = RazorpayRefund.model_validate(data)
        self._log("razorpay_refund_created", payment_id=payment_id, refund_id=refund.id, amount=refund.amount)
        return refund

    # Refunds
    async def fetch_refund(self, refund_id: str) -> RazorpayRefund:
        data = await self._request("GET", f"/refunds/{refund_id}")
        return RazorpayRefund.model_validate(data)
