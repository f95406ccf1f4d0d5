"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Provider registration mirrors the host's payment module config: each entry
names the provider class to resolve, the id it is registered under and the
options handed to its constructor.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, BaseModel, Field, model_validator


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 3.0
    write: float = 3.0
    total: float = 5.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class WebhookSettings(BaseModel):
    signature_header: str = "x-razorpay-signature"


class RazorpaySettings(BaseModel):
    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    webhook_secret: Optional[str] = None
    api_base: str = "https://api.razorpay.com/v1"


class PaymentProviderConfig(BaseModel):
    resolve: str
    id: str
    options: dict[str, Any] = Field(default_factory=dict)


RAZORPAY_PROVIDER_PATH = "infrastructure.external.payments.razorpay_provider:RazorpayPaymentProvider"

# RazorpaySettings attribute -> flat field read from env or .env
_RAZORPAY_FLAT_FIELDS = {
    "key_id": "razorpay_id",
    "key_secret": "razorpay_secret",
    "webhook_secret": "razorpay_webhook_secret",
}


class PaymentSettings(BaseSettings):
    default_provider: str = Field(default="razorpay", validation_alias="PAYMENT__DEFAULT_PROVIDER")
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)

    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)
    providers: list[PaymentProviderConfig] = Field(default_factory=list)

    # Flat names (RAZORPAY_ID, ...); nested RAZORPAY__KEY_ID etc. take precedence
    razorpay_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("RAZORPAY_ID"))
    razorpay_secret: Optional[str] = Field(default=None, validation_alias=AliasChoices("RAZORPAY_SECRET"))
    razorpay_webhook_secret: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("RAZORPAY_WEBHOOK_SECRET")
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _apply_flat_razorpay_fields(self):
        for attr, flat in _RAZORPAY_FLAT_FIELDS.items():
            value = getattr(self, flat)
            if getattr(self.razorpay, attr) is None and value:
                setattr(self.razorpay, attr, value)
        return self

    def provider_configs(self) -> list[PaymentProviderConfig]:
        """Configured providers, or the Razorpay provider built from its settings."""
        if self.providers:
            return list(self.providers)
        return [
            PaymentProviderConfig(
                resolve=RAZORPAY_PROVIDER_PATH,
                id="razorpay",
                options=self.razorpay.model_dump(),
            )
        ]


payment_settings = PaymentSettings()
