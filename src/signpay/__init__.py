"""
signpay - x402 payment gate for FastAPI

Verifies and settles a signed ERC-3009 payment authorization through a
facilitator before a protected endpoint runs.
"""

__version__ = "0.1.0"

from signpay.config import (
    CHAIN_NETWORKS,
    PAYMENT_AMOUNT_KEY,
    PAYMENT_DATA_KEY,
    PAYMENT_HEADER,
    PAYMENT_RESPONSE_HEADER,
    X402_VERSION,
    GateSettings,
    NetworkConfig,
)
from signpay.exceptions import (
    ConfigurationError,
    FacilitatorError,
    PayloadDecodeError,
    PaymentGateError,
    SignPayError,
    UnsupportedChainError,
)
from signpay.facilitator import FacilitatorClient
from signpay.server import (
    PaymentGate,
    PaymentResult,
    get_payment_amount,
    get_payment_result,
    set_payment_amount,
)
from signpay.types import (
    ExactEvmAuthorization,
    ExactEvmPayload,
    PaymentPayload,
    PaymentRequired,
    PaymentRequirements,
    SettleResponse,
    VerifyResponse,
)

__all__ = [
    "__version__",
    # Config
    "CHAIN_NETWORKS",
    "PAYMENT_AMOUNT_KEY",
    "PAYMENT_DATA_KEY",
    "PAYMENT_HEADER",
    "PAYMENT_RESPONSE_HEADER",
    "X402_VERSION",
    "GateSettings",
    "NetworkConfig",
    # Exceptions
    "SignPayError",
    "ConfigurationError",
    "UnsupportedChainError",
    "PayloadDecodeError",
    "FacilitatorError",
    "PaymentGateError",
    # Gate
    "FacilitatorClient",
    "PaymentGate",
    "PaymentResult",
    "get_payment_amount",
    "get_payment_result",
    "set_payment_amount",
    # Types
    "ExactEvmAuthorization",
    "ExactEvmPayload",
    "PaymentPayload",
    "PaymentRequired",
    "PaymentRequirements",
    "SettleResponse",
    "VerifyResponse",
]
