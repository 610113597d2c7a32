"""
Server-side payment gate
"""

from signpay.server.context import (
    PaymentResult,
    get_payment_amount,
    get_payment_result,
    set_payment_amount,
)
from signpay.server.payment_gate import Facilitator, PaymentGate, payment_error_content

__all__ = [
    "Facilitator",
    "PaymentGate",
    "PaymentResult",
    "get_payment_amount",
    "get_payment_result",
    "payment_error_content",
    "set_payment_amount",
]
