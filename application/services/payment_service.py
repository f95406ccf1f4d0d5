"""
Application service orchestrating payment-session use-cases.

This class depends only on the AbstractPaymentProvider port and DTOs.
Providers are resolved by infrastructure and injected from the composition
root (API), keeping dependencies one-way.
"""
from __future__ import annotations

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
from application.ports.payment_provider import AbstractPaymentProvider
from core.logging_config import get_logger


logger = get_logger(__name__)


class PaymentService:
    def __init__(self, provider: AbstractPaymentProvider) -> None:
        self.provider = provider

    @property
    def provider_id(self) -> str:
        return self.provider.identifier

    async def initiate_payment(self, req: InitiatePaymentInput) -> InitiatePaymentOutput:
        logger.info(
            "payment_initiate_request",
            provider=self.provider_id,
            amount=str(req.amount),
            currency=req.currency_code,
            session_id=req.data.get("session_id"),
        )
        result = await self.provider.initiate_payment(req)
        logger.info("payment_initiate_response", provider=self.provider_id, payment_id=result.id)
        return result

    async def authorize_payment(self, req: AuthorizePaymentInput) -> AuthorizePaymentOutput:
        logger.info("payment_authorize_request", provider=self.provider_id, payment_id=req.data.get("id"))
        result = await self.provider.authorize_payment(req)
        logger.info("payment_authorize_response", provider=self.provider_id, status=result.status.value)
        return result

    async def capture_payment(self, req: CapturePaymentInput) -> CapturePaymentOutput:
        logger.info("payment_capture_request", provider=self.provider_id, payment_id=req.data.get("id"))
        return await self.provider.capture_payment(req)

    async def get_payment_status(self, req: GetPaymentStatusInput) -> GetPaymentStatusOutput:
        result = await self.provider.get_payment_status(req)
        logger.info(
            "payment_status_resolved",
            provider=self.provider_id,
            payment_id=req.data.get("id"),
            status=result.status.value,
        )
        return result

    async def update_payment(self, req: UpdatePaymentInput) -> UpdatePaymentOutput:
        logger.info("payment_update_request", provider=self.provider_id, payment_id=req.data.get("id"))
        return await self.provider.update_payment(req)

    async def retrieve_payment(self, req: RetrievePaymentInput) -> RetrievePaymentOutput:
        return await self.provider.retrieve_payment(req)

    async def delete_payment(self, req: DeletePaymentInput) -> DeletePaymentOutput:
        logger.info("payment_delete_request", provider=self.provider_id, payment_id=req.data.get("id"))
        return await self.provider.delete_payment(req)

    async def cancel_payment(self, req: CancelPaymentInput) -> CancelPaymentOutput:
        logger.info("payment_cancel_request", provider=self.provider_id, payment_id=req.data.get("id"))
        return await self.provider.cancel_payment(req)

    async def refund_payment(self, req: RefundPaymentInput) -> RefundPaymentOutput:
        logger.info(
            "payment_refund_request",
            provider=self.provider_id,
            payment_id=req.data.get("id"),
            amount=str(req.amount),
        )
        return await self.provider.refund_payment(req)

    async def handle_webhook(self, payload: ProviderWebhookPayload) -> WebhookActionResult:
        result = await self.provider.get_webhook_action_and_data(payload)
        logger.info(
            "payment_webhook_processed",
            provider=self.provider_id,
            action=result.action.value,
            session_id=result.data.session_id,
        )
        return result
