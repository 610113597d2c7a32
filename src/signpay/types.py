"""
Type definitions for the x402 v1 "exact" scheme
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from signpay.config import X402_VERSION


class PaymentRequirements(BaseModel):
    """Payment requirements for a protected resource"""

    scheme: str
    network: str
    max_amount_required: str = Field(alias="maxAmountRequired")
    resource: str
    description: str
    mime_type: str = Field("", alias="mimeType")
    pay_to: str = Field(alias="payTo")
    max_timeout_seconds: int = Field(alias="maxTimeoutSeconds")
    asset: str
    output_schema: Optional[dict[str, Any]] = Field(None, alias="outputSchema")
    extra: Optional[dict[str, Any]] = None

    class Config:
        populate_by_name = True


class ExactEvmAuthorization(BaseModel):
    """ERC-3009 transferWithAuthorization message"""

    from_address: str = Field(alias="from")
    to: str
    value: str
    valid_after: str = Field(alias="validAfter")
    valid_before: str = Field(alias="validBefore")
    nonce: str

    class Config:
        populate_by_name = True


class ExactEvmPayload(BaseModel):
    """Signed authorization"""

    signature: str
    authorization: ExactEvmAuthorization


class PaymentPayload(BaseModel):
    """Payment payload sent by client in the X-PAYMENT header"""

    x402_version: int = Field(X402_VERSION, alias="x402Version")
    scheme: str
    network: str
    payload: ExactEvmPayload

    class Config:
        populate_by_name = True


class PaymentRequired(BaseModel):
    """Error body returned by the gate (402 and failures)"""

    x402_version: int = Field(X402_VERSION, alias="x402Version")
    error: str
    accepts: Optional[list[PaymentRequirements]] = None

    class Config:
        populate_by_name = True


class VerifyResponse(BaseModel):
    """Verification response from facilitator"""

    is_valid: bool = Field(alias="isValid")
    invalid_reason: Optional[str] = Field(None, alias="invalidReason")
    payer: Optional[str] = None

    class Config:
        populate_by_name = True


class SettleResponse(BaseModel):
    """Settlement response from facilitator"""

    success: bool
    error_reason: Optional[str] = Field(None, alias="errorReason")
    transaction: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None

    class Config:
        populate_by_name = True
