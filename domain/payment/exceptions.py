"""
Errors a payment provider raises towards the host framework.

`PaymentError.type` follows the host's error vocabulary so the host can decide
how to surface the failure; `code` keeps it inside the unified business codes.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentErrorType(str, Enum):
    INVALID_DATA = "invalid_data"
    PAYMENT_AUTHORIZATION_ERROR = "payment_authorization_error"
    NOT_FOUND = "not_found"
    UNEXPECTED_STATE = "unexpected_state"


_TYPE_TO_CODE = {
    PaymentErrorType.INVALID_DATA: PaymentCode.INVALID_DATA,
    PaymentErrorType.PAYMENT_AUTHORIZATION_ERROR: PaymentCode.PAYMENT_AUTHORIZATION_ERROR,
    PaymentErrorType.NOT_FOUND: PaymentCode.NOT_FOUND,
    PaymentErrorType.UNEXPECTED_STATE: PaymentCode.UNEXPECTED_STATE,
}


class PaymentError(BusinessException):
    def __init__(self, type: PaymentErrorType, message: str, *, details: Optional[dict] = None):
        self.type = PaymentErrorType(type)
        super().__init__(
            code=_TYPE_TO_CODE[self.type],
            message=message,
            error_type=self.type.value,
            details=details,
        )


class PaymentProviderNotRegisteredError(BusinessException):
    def __init__(self, identifier: str, available: list[str]):
        super().__init__(
            code=PaymentCode.PROVIDER_NOT_REGISTERED,
            message=f"Payment provider '{identifier}' is not registered",
            error_type="PaymentProviderNotRegistered",
            details={"provider": identifier, "available": available},
        )
