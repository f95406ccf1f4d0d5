"""
Payment session vocabulary shared with the host commerce framework.

Keep this layer free of infrastructure dependencies.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Union

from domain.common.exceptions import DomainValidationException


class PaymentSessionStatus(str, Enum):
    """Status of a payment session as understood by the host."""
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    PENDING = "pending"
    REQUIRES_MORE = "requires_more"
    ERROR = "error"
    CANCELED = "canceled"


class PaymentActions(str, Enum):
    """Action the host should take after a provider webhook."""
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    FAILED = "failed"
    PENDING = "pending"
    REQUIRES_MORE = "requires_more"
    NOT_SUPPORTED = "not_supported"
    CANCELED = "canceled"


# Currencies whose smallest unit differs from 1/100 of the major unit
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP", "PYG", "ISK", "UGX", "XOF", "XAF"}
THREE_DECIMAL_CURRENCIES = {"BHD", "KWD", "OMR", "JOD", "TND"}


def currency_exponent(currency: str) -> int:
    code = (currency or "").upper()
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def to_minor_units(amount: Union[Decimal, int, float, str], currency: str) -> int:
    """Convert a major-unit amount into the smallest currency unit (paise for INR).

    Rounds half-up, so 10.005 INR becomes 1001 paise.
    """
    try:
        value = Decimal(str(amount))
    except Exception as exc:
        raise DomainValidationException(f"Invalid amount: {amount!r}", field="amount") from exc
    if not value.is_finite():
        raise DomainValidationException(f"Invalid amount: {amount!r}", field="amount")
    scaled = value * (Decimal(10) ** currency_exponent(currency))
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601, used for lifecycle timestamps in session data."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
