"""
Payment specific codes, provider status mapping and webhook event mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    TIMEOUT = 60003
    RATE_LIMITED = 60004

    # Provider contract errors raised towards the host (61xxx)
    INVALID_DATA = 61000
    PAYMENT_AUTHORIZATION_ERROR = 61001
    NOT_FOUND = 61002
    UNEXPECTED_STATE = 61003
    PROVIDER_NOT_REGISTERED = 61004


# Gateway order status -> payment session status.
# Unknown statuses fall back to DEFAULT_SESSION_STATUS.
PROVIDER_STATUS_TO_INTERNAL = {
    "razorpay": {
        "created": "pending",
        "attempted": "pending",
        "paid": "authorized",
    },
}

DEFAULT_SESSION_STATUS = "pending"


# Gateway webhook event -> host webhook action.
# Anything not listed is "not_supported".
WEBHOOK_EVENT_TO_ACTION = {
    "razorpay": {
        "payment.authorized": "authorized",
        "payment.captured": "captured",
        "payment.failed": "failed",
    },
}

UNSUPPORTED_WEBHOOK_ACTION = "not_supported"
