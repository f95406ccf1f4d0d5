"""
Razorpay payment provider for the host's payment module.

Lifecycle mapping:
- initiate  -> create a Razorpay order (amount in the smallest currency unit)
- authorize -> fetch the order (and verify the checkout signature when present)
- capture   -> capture an authorized payment when one is known
- status    -> order status mapped through PROVIDER_STATUS_TO_INTERNAL
- refund    -> refund the order's captured payment when one is known
- cancel / delete -> local only; Razorpay orders cannot be cancelled and expire

Webhooks are authenticated with HMAC-SHA256 when a webhook secret is configured
and translated through WEBHOOK_EVENT_TO_ACTION.
"""
from __future__ import annotations

import json
import time
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict

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
    PaymentProviderContext,
    ProviderWebhookPayload,
    RefundPaymentInput,
    RefundPaymentOutput,
    RetrievePaymentInput,
    RetrievePaymentOutput,
    UpdatePaymentInput,
    UpdatePaymentOutput,
    WebhookActionData,
    WebhookActionResult,
)
from application.ports.payment_provider import AbstractPaymentProvider
from core.logging_config import get_logger
from core.settings import payment_settings
from domain.payment.entity import (
    PaymentActions,
    PaymentSessionStatus,
    to_minor_units,
    utc_now_iso,
)
from domain.payment.exceptions import PaymentError, PaymentErrorType
from infrastructure.external.payments.razorpay_client import (
    DEFAULT_API_BASE,
    RazorpayClient,
    RazorpayOrder,
)
from infrastructure.external.payments.signatures import (
    verify_payment_signature,
    verify_webhook_signature,
)
from shared.codes.payment_codes import (
    DEFAULT_SESSION_STATUS,
    PROVIDER_STATUS_TO_INTERNAL,
    UNSUPPORTED_WEBHOOK_ACTION,
    WEBHOOK_EVENT_TO_ACTION,
)


logger = get_logger(__name__)


class RazorpayOptions(BaseModel):
    key_id: str
    key_secret: str
    webhook_secret: Optional[str] = None
    api_base: str = DEFAULT_API_BASE

    model_config = ConfigDict(extra="ignore")


def map_order_status(order_status: Optional[str]) -> PaymentSessionStatus:
    mapping = PROVIDER_STATUS_TO_INTERNAL["razorpay"]
    return PaymentSessionStatus(mapping.get(order_status or "", DEFAULT_SESSION_STATUS))


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in (headers or {}).items():
        if str(key).lower() == wanted:
            if isinstance(value, (list, tuple)):
                return str(value[0]) if value else None
            return None if value is None else str(value)
    return None


def _failed_webhook() -> WebhookActionResult:
    return WebhookActionResult(
        action=PaymentActions.FAILED,
        data=WebhookActionData(session_id="", amount=Decimal(0)),
    )


class RazorpayPaymentProvider(AbstractPaymentProvider[RazorpayOptions]):
    identifier = "razorpay"

    def __init__(
        self,
        container: Mapping[str, Any],
        options: Mapping[str, Any] | RazorpayOptions,
        *,
        client: Optional[RazorpayClient] = None,
    ) -> None:
        opts = options if isinstance(options, RazorpayOptions) else RazorpayOptions.model_validate(dict(options))
        super().__init__(container, opts)
        self.logger = (container or {}).get("logger") or logger
        self.client = client or RazorpayClient(
            key_id=opts.key_id,
            key_secret=opts.key_secret,
            api_base=opts.api_base,
            timeouts=payment_settings.timeouts.model_dump(),
            retry={"max": payment_settings.retry.max, "base": payment_settings.retry.base_backoff},
        )

    @classmethod
    def validate_options(cls, options: Mapping[str, Any]) -> None:
        if not options.get("key_id"):
            raise PaymentError(
                PaymentErrorType.INVALID_DATA,
                "Razorpay key_id is required in the provider's options.",
            )
        if not options.get("key_secret"):
            raise PaymentError(
                PaymentErrorType.INVALID_DATA,
                "Razorpay key_secret is required in the provider's options.",
            )

    async def aclose(self) -> None:
        await self.client.aclose()

    # Helpers
    @staticmethod
    def _notes(context: PaymentProviderContext, session_id: Optional[str]) -> dict[str, Any]:
        customer = context.customer
        notes: dict[str, Any] = {
            "payment_session": "true",
            "customer_email": (customer.email if customer else None) or "",
            "customer_id": (customer.id if customer else None) or "",
        }
        if session_id:
            notes["session_id"] = session_id
        return notes

    @staticmethod
    def _receipt(session_id: Optional[str]) -> str:
        if session_id:
            return str(session_id)
        return f"order_{int(time.time() * 1000)}"

    def _order_data(self, order: RazorpayOrder) -> dict[str, Any]:
        return {
            "id": order.id,
            "amount": order.amount,
            "currency": order.currency,
            "receipt": order.receipt,
            "status": order.status,
            "created_at": order.created_at,
            # Exposed so the storefront can open Razorpay checkout
            "key_id": self.options.key_id,
        }

    async def _captured_payment_id(self, data: Mapping[str, Any]) -> Optional[str]:
        payment_id = data.get("razorpay_payment_id")
        if payment_id:
            return str(payment_id)
        order_id = data.get("id")
        if not order_id:
            return None
        for payment in await self.client.fetch_order_payments(str(order_id)):
            if payment.status == "captured":
                return payment.id
        return None

    # Lifecycle
    async def initiate_payment(self, req: InitiatePaymentInput) -> InitiatePaymentOutput:
        session_id = req.data.get("session_id")
        try:
            order = await self.client.create_order(
                amount=to_minor_units(req.amount, req.currency_code),
                currency=req.currency_code.upper(),
                receipt=self._receipt(session_id),
                notes=self._notes(req.context, session_id),
            )
        except Exception as exc:
            self.logger.error("razorpay_initiate_failed", error=_error_message(exc))
            raise PaymentError(
                PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR,
                f"Failed to initiate payment with Razorpay: {_error_message(exc)}",
            ) from exc

        self.logger.info("razorpay_order_initiated", order_id=order.id, receipt=order.receipt)
        data = self._order_data(order)
        if session_id:
            data["session_id"] = session_id
        return InitiatePaymentOutput(id=order.id, data=data)

    async def authorize_payment(self, req: AuthorizePaymentInput) -> AuthorizePaymentOutput:
        data = dict(req.data)
        try:
            order_id = data.get("id")
            if not order_id:
                raise ValueError("Razorpay order id missing from session data")
            order = await self.client.fetch_order(str(order_id))

            payment_id = data.get("razorpay_payment_id")
            signature = data.get("razorpay_signature")
            if payment_id and signature:
                if not verify_payment_signature(order.id, str(payment_id), self.options.key_secret, str(signature)):
                    raise ValueError("invalid payment signature")
        except Exception as exc:
            self.logger.error("razorpay_authorize_failed", order_id=data.get("id"), error=_error_message(exc))
            raise PaymentError(
                PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR,
                f"Failed to authorize payment: {_error_message(exc)}",
            ) from exc

        self.logger.info("razorpay_payment_authorized", order_id=order.id, order_status=order.status)
        return AuthorizePaymentOutput(
            status=PaymentSessionStatus.AUTHORIZED,
            data={
                **data,
                "order_status": order.status,
                "authorized_at": utc_now_iso(),
            },
        )

    async def capture_payment(self, req: CapturePaymentInput) -> CapturePaymentOutput:
        data = dict(req.data)
        try:
            payment_id = data.get("razorpay_payment_id")
            if payment_id:
                payment = await self.client.fetch_payment(str(payment_id))
                if payment.status == "authorized":
                    payment = await self.client.capture_payment(
                        payment.id, amount=payment.amount, currency=payment.currency
                    )
                elif payment.status != "captured":
                    raise ValueError(f"payment {payment.id} is {payment.status}")
                data["razorpay_payment_status"] = payment.status
        except Exception as exc:
            self.logger.error("razorpay_capture_failed", order_id=data.get("id"), error=_error_message(exc))
            raise PaymentError(
                PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR,
                f"Failed to capture payment: {_error_message(exc)}",
            ) from exc

        self.logger.info("razorpay_payment_capture_recorded", order_id=data.get("id"))
        return CapturePaymentOutput(
            data={
                **data,
                "captured_at": utc_now_iso(),
                "status": "captured",
            }
        )

    async def get_payment_status(self, req: GetPaymentStatusInput) -> GetPaymentStatusOutput:
        try:
            order = await self.client.fetch_order(str(req.data["id"]))
        except Exception as exc:
            self.logger.error("razorpay_status_failed", order_id=req.data.get("id"), error=_error_message(exc))
            return GetPaymentStatusOutput(status=PaymentSessionStatus.PENDING)

        return GetPaymentStatusOutput(
            status=map_order_status(order.status),
            data={**req.data, "order_status": order.status},
        )

    async def get_webhook_action_and_data(self, payload: ProviderWebhookPayload) -> WebhookActionResult:
        try:
            secret = self.options.webhook_secret
            if secret:
                received = _header(payload.headers, payment_settings.webhook.signature_header)
                verify_webhook_signature(payload.raw_data, secret, received)

            event = payload.data
            if event is None:
                raw = payload.raw_data
                event = json.loads(raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw)

            name = event.get("event")
            entities = event.get("payload") or {}
            payment_entity = (entities.get("payment") or {}).get("entity") or {}
            order_entity = (entities.get("order") or {}).get("entity") or {}

            action = WEBHOOK_EVENT_TO_ACTION["razorpay"].get(name, UNSUPPORTED_WEBHOOK_ACTION)
            if action == UNSUPPORTED_WEBHOOK_ACTION:
                self.logger.info("razorpay_webhook_not_supported", webhook_event=name)
                return WebhookActionResult(
                    action=PaymentActions.NOT_SUPPORTED,
                    data=WebhookActionData(session_id="", amount=Decimal(0)),
                )

            session_id = order_entity.get("receipt") or payment_entity.get("order_id") or ""
            amount = Decimal(str(payment_entity.get("amount") or 0))
            self.logger.info(
                "razorpay_webhook_mapped",
                webhook_event=name,
                action=action,
                session_id=session_id,
                payment_id=payment_entity.get("id"),
            )
            return WebhookActionResult(
                action=PaymentActions(action),
                data=WebhookActionData(session_id=str(session_id), amount=amount),
            )
        except Exception as exc:
            self.logger.error("razorpay_webhook_failed", error=_error_message(exc))
            return _failed_webhook()

    async def update_payment(self, req: UpdatePaymentInput) -> UpdatePaymentOutput:
        data = dict(req.data)
        try:
            order_id = data.get("id")
            stored_amount = data.get("amount")
            if order_id and stored_amount is not None:
                amount_minor = to_minor_units(req.amount, req.currency_code)
                stored_currency = str(data.get("currency") or req.currency_code).upper()
                if int(stored_amount) != amount_minor or stored_currency != req.currency_code:
                    # Orders are immutable on Razorpay; replace it
                    session_id = data.get("session_id")
                    order = await self.client.create_order(
                        amount=amount_minor,
                        currency=req.currency_code,
                        receipt=data.get("receipt") or self._receipt(session_id),
                        notes=self._notes(req.context, session_id),
                    )
                    data.update(self._order_data(order))
                    data["previous_order_id"] = order_id
                    self.logger.info("razorpay_order_replaced", order_id=order.id, previous_order_id=order_id)
        except Exception as exc:
            self.logger.error("razorpay_update_failed", order_id=data.get("id"), error=_error_message(exc))
            raise PaymentError(
                PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR,
                f"Failed to update payment: {_error_message(exc)}",
            ) from exc

        data["updated_at"] = utc_now_iso()
        return UpdatePaymentOutput(data=data)

    async def retrieve_payment(self, req: RetrievePaymentInput) -> RetrievePaymentOutput:
        try:
            order = await self.client.fetch_order(str(req.data["id"]))
        except Exception as exc:
            self.logger.error("razorpay_retrieve_failed", order_id=req.data.get("id"), error=_error_message(exc))
            raise PaymentError(
                PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR,
                f"Failed to retrieve payment: {_error_message(exc)}",
            ) from exc
        return {
            "id": order.id,
            "amount": order.amount,
            "currency": order.currency,
            "status": order.status,
            "created_at": order.created_at,
        }

    async def delete_payment(self, req: DeletePaymentInput) -> DeletePaymentOutput:
        # No delete endpoint for orders
        return DeletePaymentOutput(data=req.data)

    async def cancel_payment(self, req: CancelPaymentInput) -> CancelPaymentOutput:
        # Orders cannot be cancelled; they expire on the gateway
        return CancelPaymentOutput(data={**req.data, "cancelled_at": utc_now_iso()})

    async def refund_payment(self, req: RefundPaymentInput) -> RefundPaymentOutput:
        data = dict(req.data)
        try:
            currency = str(data.get("currency") or "INR")
            payment_id = await self._captured_payment_id(data)
            if payment_id:
                notes = {"session_id": data["session_id"]} if data.get("session_id") else None
                refund = await self.client.refund_payment(
                    payment_id,
                    amount=to_minor_units(req.amount, currency),
                    notes=notes,
                )
                data["razorpay_payment_id"] = payment_id
                data["refund_id"] = refund.id
                data["refund_status"] = refund.status
            else:
                self.logger.warning("razorpay_refund_without_payment", order_id=data.get("id"))
        except Exception as exc:
            self.logger.error("razorpay_refund_failed", order_id=data.get("id"), error=_error_message(exc))
            raise PaymentError(
                PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR,
                f"Failed to refund payment: {_error_message(exc)}",
            ) from exc

        data["refunded_amount"] = req.amount
        data["refunded_at"] = utc_now_iso()
        return RefundPaymentOutput(data=data)
