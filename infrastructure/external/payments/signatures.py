"""
HMAC-SHA256 signature helpers for Razorpay.

Webhooks are signed over the raw request body with the webhook secret; the
checkout callback signs "<order_id>|<payment_id>" with the API key secret.
Both are lowercase hex digests.
"""
from __future__ import annotations

import hashlib
import hmac
from typing import Optional, Union

from infrastructure.external.payments.exceptions import PaymentSignatureError


def _as_bytes(body: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    return str(body).encode("utf-8")


def compute_signature(body: Union[bytes, str], secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), _as_bytes(body), hashlib.sha256).hexdigest()


def verify_signature(body: Union[bytes, str], secret: str, received: Optional[str]) -> bool:
    if not received:
        return False
    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), str(received).encode("utf-8"))


def verify_webhook_signature(body: Union[bytes, str], secret: str, received: Optional[str]) -> None:
    """Raise PaymentSignatureError unless `received` signs `body` under `secret`."""
    if not verify_signature(body, secret, received):
        raise PaymentSignatureError("Invalid webhook signature", provider="razorpay")


def verify_payment_signature(order_id: str, payment_id: str, key_secret: str, received: Optional[str]) -> bool:
    return verify_signature(f"{order_id}|{payment_id}", key_secret, received)
