"""
Payment provider port (application/ports): the contract the host framework calls.

Application code depends on this ABC; infrastructure implements concrete
providers and registers them by `identifier`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, TypeVar

from application.dtos.payments import (
    AuthorizePaymentInput,
    AuthorizePaymentOutput,
    CancelPaymentInput,
    CancelPaymentOutput,
    CapturePaymentInput,
    CapturePaymentOutput,
    DeletePaymentInput,
    DeletePaymentOutput,
    GetPaymentStatusInput,
    GetPaymentStatusOutput,
    InitiatePaymentInput,
    InitiatePaymentOutput,
    ProviderWebhookPayload,
    RefundPaymentInput,
    RefundPaymentOutput,
    RetrievePaymentInput,
    RetrievePaymentOutput,
    UpdatePaymentInput,
    UpdatePaymentOutput,
    WebhookActionResult,
)


TOptions = TypeVar("TOptions")


class AbstractPaymentProvider(ABC, Generic[TOptions]):
    """Base class for payment providers plugged into the host's payment module.

    `container` carries host-injected dependencies (at least a `logger`);
    `options` is the provider's own configuration block.
    """

    identifier: str = ""

    def __init__(self, container: Mapping[str, Any], options: TOptions) -> None:
        self.container = container
        self.options = options

    @classmethod
    def validate_options(cls, options: Mapping[str, Any]) -> None:
        """Raise if `options` cannot configure this provider. No-op by default."""
        return None

    @abstractmethod
    async def initiate_payment(self, req: InitiatePaymentInput) -> InitiatePaymentOutput: ...

    @abstractmethod
    async def authorize_payment(self, req: AuthorizePaymentInput) -> AuthorizePaymentOutput: ...

    @abstractmethod
    async def capture_payment(self, req: CapturePaymentInput) -> CapturePaymentOutput: ...

    @abstractmethod
    async def get_payment_status(self, req: GetPaymentStatusInput) -> GetPaymentStatusOutput: ...

    @abstractmethod
    async def get_webhook_action_and_data(self, payload: ProviderWebhookPayload) -> WebhookActionResult: ...

    @abstractmethod
    async def update_payment(self, req: UpdatePaymentInput) -> UpdatePaymentOutput: ...

    @abstractmethod
    async def retrieve_payment(self, req: RetrievePaymentInput) -> RetrievePaymentOutput: ...

    @abstractmethod
    async def delete_payment(self, req: DeletePaymentInput) -> DeletePaymentOutput: ...

    @abstractmethod
    async def cancel_payment(self, req: CancelPaymentInput) -> CancelPaymentOutput: ...

    @abstractmethod
    async def refund_payment(self, req: RefundPaymentInput) -> RefundPaymentOutput: ...

    async def aclose(self) -> None:
        """Release provider resources (HTTP clients). Optional."""
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(identifier={self.identifier or 'unknown'})>"

