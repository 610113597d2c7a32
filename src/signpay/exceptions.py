"""
signpay custom exception hierarchy
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from signpay.types import PaymentRequirements


class SignPayError(Exception):
    """signpay base exception"""

    pass


class ConfigurationError(SignPayError):
    """Configuration-related error"""

    pass


class UnsupportedChainError(ConfigurationError):
    """Chain ID has no entry in the chain network table"""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"unsupported chain ID: {chain_id}")


class PayloadDecodeError(SignPayError):
    """X-PAYMENT header could not be decoded into a payment payload"""

    pass


class FacilitatorError(SignPayError):
    """Facilitator could not be reached or answered with an unusable response"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class PaymentGateError(SignPayError):
    """
    Request rejected by the payment gate.

    Carries the HTTP status, the error message and, for 402 responses,
    the payment requirements the client must satisfy.
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        accepts: Optional[list["PaymentRequirements"]] = None,
    ):
        self.status_code = status_code
        self.error = error
        self.accepts = accepts
        super().__init__(error)
