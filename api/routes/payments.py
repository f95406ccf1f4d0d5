"""
Payments API routes.

Exposes the payment-session lifecycle of a registered provider and its
webhook endpoint. Keep this thin: no gateway details here. Session `data`
is owned by the caller and echoed back enriched.
"""
from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_payment_service
from application.services.payment_service import PaymentService
from application.dtos.payments import (
    AuthorizePaymentInput,
    CancelPaymentInput,
    CapturePaymentInput,
    DeletePaymentInput,
    GetPaymentStatusInput,
    InitiatePaymentInput,
    ProviderWebhookPayload,
    RefundPaymentInput,
    RetrievePaymentInput,
    UpdatePaymentInput,
)
from core.response import success_response
from core.logging_config import get_logger


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


@router.post("/webhooks/{provider}")
async def payments_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    raw_body = await request.body()
    headers = {k.lower(): v for k, v in request.headers.items()}

    data = None
    if "application/json" in headers.get("content-type", "").lower():
        try:
            parsed = json.loads(raw_body or b"null")
            data = parsed if isinstance(parsed, dict) else None
        except ValueError:
            logger.warning("webhook_body_not_json", provider=service.provider_id)

    result = await service.handle_webhook(
        ProviderWebhookPayload(data=data, raw_data=raw_body, headers=headers)
    )
    # Always 200 so the gateway does not redeliver; the action tells the host what happened
    return success_response(data=result.model_dump(mode="json"), message="Webhook received")


@router.post("/{provider}/sessions", summary="Initiate payment")
async def initiate_payment(payload: InitiatePaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.initiate_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment initiated")


@router.post("/{provider}/sessions/authorize", summary="Authorize payment")
async def authorize_payment(payload: AuthorizePaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.authorize_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment authorized")


@router.post("/{provider}/sessions/capture", summary="Capture payment")
async def capture_payment(payload: CapturePaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.capture_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment captured")


@router.post("/{provider}/sessions/status", summary="Get payment status")
async def get_payment_status(payload: GetPaymentStatusInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.get_payment_status(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment status")


@router.post("/{provider}/sessions/update", summary="Update payment")
async def update_payment(payload: UpdatePaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.update_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment updated")


@router.post("/{provider}/sessions/retrieve", summary="Retrieve payment")
async def retrieve_payment(payload: RetrievePaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.retrieve_payment(payload)
    return success_response(data=result, message="Payment retrieved")


@router.post("/{provider}/sessions/delete", summary="Delete payment")
async def delete_payment(payload: DeletePaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.delete_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment deleted")


@router.post("/{provider}/sessions/cancel", summary="Cancel payment")
async def cancel_payment(payload: CancelPaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.cancel_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment cancelled")


@router.post("/{provider}/sessions/refund", summary="Refund payment")
async def refund_payment(payload: RefundPaymentInput, service: PaymentService = Depends(get_payment_service)):
    result = await service.refund_payment(payload)
    return success_response(data=result.model_dump(mode="json"), message="Payment refunded")
