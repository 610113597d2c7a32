"""
Request-scoped payment state

The gate and the steps around it share data through ``request.state``,
which Starlette backs with the ASGI ``scope["state"]`` dict, so every
Request object built for the same request sees the same values.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from fastapi import Request
from pydantic import BaseModel

from signpay.config import PAYMENT_AMOUNT_KEY, PAYMENT_DATA_KEY
from signpay.types import PaymentPayload, PaymentRequirements, SettleResponse, VerifyResponse

T = TypeVar("T", bound=BaseModel)


@dataclass
class PaymentResult:
    """Verified and settled payment, available to the protected handler"""

    payment_payload: PaymentPayload
    verify_response: VerifyResponse
    settle_response: SettleResponse
    payment_requirements: PaymentRequirements
    # None when the request had no body
    request_body: Optional[bytes] = None

    def parse_body(self, model: Optional[type[T]] = None) -> Any:
        """Decode the captured request body as JSON

        Args:
            model: Optional pydantic model to validate the body against

        Returns:
            The model instance, the decoded JSON value, or None for an empty body
        """
        if not self.request_body:
            return None
        if model is None:
            return json.loads(self.request_body)
        return model.model_validate_json(self.request_body)


def set_payment_amount(request: Request, amount: str) -> None:
    """Override the configured payment amount for this request

    Must be called by a step that runs before the payment gate, e.g. a
    route dependency that prices the order.
    """
    setattr(request.state, PAYMENT_AMOUNT_KEY, str(amount))


def get_payment_amount(request: Request) -> Optional[str]:
    return getattr(request.state, PAYMENT_AMOUNT_KEY, None)


def get_payment_result(request: Request) -> Optional[PaymentResult]:
    """Return the PaymentResult stored by the gate, or None when payment was not confirmed"""
    result = getattr(request.state, PAYMENT_DATA_KEY, None)
    if isinstance(result, PaymentResult):
        return result
    return None


def store_payment_result(request: Request, result: PaymentResult) -> None:
    setattr(request.state, PAYMENT_DATA_KEY, result)
