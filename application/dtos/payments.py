"""
Payment provider DTOs (Pydantic v2) exchanged between the host framework and providers.

Session `data` is an opaque dict owned by the host: providers receive it on every
call and return the (possibly enriched) dict for the host to persist.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.payment.entity import PaymentActions, PaymentSessionStatus


class PaymentCustomer(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class PaymentProviderContext(BaseModel):
    customer: Optional[PaymentCustomer] = None

    model_config = ConfigDict(extra="allow")


def _upper_currency(v: str) -> str:
    u = (v or "").strip().upper()
    if len(u) != 3 or not u.isalpha():
        raise ValueError("currency must be ISO-4217 alpha-3")
    return u


class InitiatePaymentInput(BaseModel):
    amount: Decimal = Field(ge=0)
    currency_code: str
    context: PaymentProviderContext = Field(default_factory=PaymentProviderContext)
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("currency_code")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        return _upper_currency(v)


class InitiatePaymentOutput(BaseModel):
    id: str
    data: dict[str, Any]


class AuthorizePaymentInput(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)
    context: PaymentProviderContext = Field(default_factory=PaymentProviderContext)


class AuthorizePaymentOutput(BaseModel):
    status: PaymentSessionStatus
    data: dict[str, Any]


class CapturePaymentInput(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class CapturePaymentOutput(BaseModel):
    data: dict[str, Any]


class GetPaymentStatusInput(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class GetPaymentStatusOutput(BaseModel):
    status: PaymentSessionStatus
    data: Optional[dict[str, Any]] = None


class UpdatePaymentInput(BaseModel):
    amount: Decimal = Field(ge=0)
    currency_code: str
    data: dict[str, Any] = Field(default_factory=dict)
    context: PaymentProviderContext = Field(default_factory=PaymentProviderContext)

    @field_validator("currency_code")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        return _upper_currency(v)


class UpdatePaymentOutput(BaseModel):
    data: dict[str, Any]


class RetrievePaymentInput(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


# Retrieve returns the provider's own view of the payment as a plain dict
RetrievePaymentOutput = dict[str, Any]


class DeletePaymentInput(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class DeletePaymentOutput(BaseModel):
    data: dict[str, Any]


class CancelPaymentInput(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class CancelPaymentOutput(BaseModel):
    data: dict[str, Any]


class RefundPaymentInput(BaseModel):
    amount: Decimal = Field(gt=0)
    data: dict[str, Any] = Field(default_factory=dict)


class RefundPaymentOutput(BaseModel):
    data: dict[str, Any]


class ProviderWebhookPayload(BaseModel):
    """Webhook request as forwarded by the host: parsed body, raw body and headers."""
    data: Optional[dict[str, Any]] = None
    raw_data: Union[bytes, str] = b""
    headers: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)


class WebhookActionData(BaseModel):
    session_id: str = ""
    # Smallest currency unit, as sent by the gateway
    amount: Decimal = Decimal(0)


class WebhookActionResult(BaseModel):
    action: PaymentActions
    data: WebhookActionData = Field(default_factory=WebhookActionData)
