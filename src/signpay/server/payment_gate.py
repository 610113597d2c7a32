"""
PaymentGate - Verifies and settles the X-PAYMENT header before a protected handler runs
"""

import logging
from typing import Any, Mapping, Optional, Protocol

from fastapi import Request
from starlette.requests import ClientDisconnect

from signpay.config import (
    CHAIN_NETWORKS,
    DEFAULT_FACILITATOR_TIMEOUT,
    DEFAULT_MAX_TIMEOUT_SECONDS,
    PAYMENT_DESCRIPTION,
    PAYMENT_HEADER,
    SCHEME_EXACT,
    X402_VERSION,
    GateSettings,
    NetworkConfig,
)
from signpay.encoding import decode_payment_payload, encode_payment_payload
from signpay.exceptions import FacilitatorError, PayloadDecodeError, PaymentGateError
from signpay.facilitator import FacilitatorClient
from signpay.server.context import PaymentResult, get_payment_amount, store_payment_result
from signpay.types import (
    PaymentPayload,
    PaymentRequired,
    PaymentRequirements,
    SettleResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)


class Facilitator(Protocol):
    """Remote verify/settle service; failures to communicate raise FacilitatorError"""

    async def verify(
        self, payload: PaymentPayload, requirements: PaymentRequirements
    ) -> VerifyResponse: ...

    async def settle(
        self, payload: PaymentPayload, requirements: PaymentRequirements
    ) -> SettleResponse: ...


class PaymentGate:
    """
    Gate for a protected resource behind a single signed payment.

    Per request: capture the body, build payment requirements, decode the
    X-PAYMENT header, verify with the facilitator, then settle. Any failure
    raises PaymentGateError and nothing after it runs. Settlement is never
    attempted unless verification succeeded.

    Usage:
        gate = PaymentGate(
            chain_id=84532,
            token_address="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            token_amount="1000000",
            recipient_address="0x...",
            facilitator_url="https://x402.org/facilitator",
        )
        result = await gate.process(request)
    """

    def __init__(
        self,
        chain_id: int,
        token_address: str,
        token_amount: str,
        recipient_address: str,
        facilitator_url: str,
        *,
        api_key: Optional[str] = None,
        resource: Optional[str] = None,
        networks: Mapping[int, str] = CHAIN_NETWORKS,
        facilitator: Optional[Facilitator] = None,
        timeout: float = DEFAULT_FACILITATOR_TIMEOUT,
    ) -> None:
        """
        Initialize PaymentGate.

        Args:
            chain_id: Chain ID (e.g., 8453 for Base, 84532 for Base Sepolia)
            token_address: ERC-3009 token contract address
            token_amount: Amount in smallest token units (e.g., "19990000" for
                19.99 USDC). Empty means every request needs a dynamic amount.
            recipient_address: Address receiving the payment
            facilitator_url: Facilitator service base URL
            api_key: Facilitator API key, sent as a bearer token
            resource: Fixed resource URL; derived from the request when None
            networks: Chain ID to network name table
            facilitator: Custom facilitator client
            timeout: Facilitator call timeout (seconds)

        Raises:
            UnsupportedChainError: If chain_id is not in networks
        """
        self._network = NetworkConfig.get_network(chain_id, networks)
        self._chain_id = chain_id
        self._token_address = token_address
        self._token_amount = token_amount
        self._recipient_address = recipient_address
        self._resource = resource
        self._facilitator = facilitator or FacilitatorClient(
            base_url=facilitator_url,
            api_key=api_key,
            timeout=timeout,
        )

        logger.info(
            f"Payment gate configured: network={self._network} (chain {chain_id}), "
            f"asset={token_address}, pay_to={recipient_address}, facilitator={facilitator_url}"
        )

    @classmethod
    def from_settings(cls, settings: GateSettings, **kwargs: Any) -> "PaymentGate":
        """Build a gate from GateSettings (see GateSettings.from_env)"""
        return cls(
            chain_id=settings.chain_id,
            token_address=settings.token_address,
            token_amount=settings.token_amount,
            recipient_address=settings.recipient_address,
            facilitator_url=settings.facilitator_url,
            api_key=settings.api_key,
            resource=settings.resource,
            timeout=settings.facilitator_timeout,
            **kwargs,
        )

    @property
    def network(self) -> str:
        return self._network

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def facilitator(self) -> Facilitator:
        return self._facilitator

    async def close(self) -> None:
        """Release the facilitator HTTP client"""
        close = getattr(self._facilitator, "close", None)
        if close is not None:
            await close()

    async def process(self, request: Request) -> PaymentResult:
        """
        Run the payment flow for one request.

        Args:
            request: Incoming request

        Returns:
            PaymentResult, also stored in request state for the handler

        Raises:
            PaymentGateError: With the status and body to return to the client
        """
        request_body = await self._capture_body(request)
        requirements = self.build_payment_requirements(request)
        payload = self._extract_payload(request, requirements)

        verify_response = await self._verify(payload, requirements)
        settle_response = await self._settle(payload, requirements)

        logger.info(
            f"Payment settled: network={settle_response.network or self._network}, "
            f"tx={settle_response.transaction}, payer={settle_response.payer or verify_response.payer}"
        )

        result = PaymentResult(
            payment_payload=payload,
            verify_response=verify_response,
            settle_response=settle_response,
            payment_requirements=requirements,
            request_body=request_body,
        )
        store_payment_result(request, result)
        return result

    def build_payment_requirements(self, request: Request) -> PaymentRequirements:
        """Build payment requirements for this request

        A dynamic amount set with set_payment_amount takes precedence over
        the configured token amount.

        Raises:
            PaymentGateError: 500 if no amount is available
        """
        amount = self._token_amount
        dynamic_amount = get_payment_amount(request)
        if dynamic_amount is not None:
            amount = dynamic_amount

        if not amount:
            logger.error("Payment amount not configured and no dynamic amount set")
            raise PaymentGateError(
                500,
                "Payment amount not configured. Set token_amount or call "
                "set_payment_amount(request, amount) in a preceding step.",
            )

        return PaymentRequirements(
            scheme=SCHEME_EXACT,
            network=self._network,
            maxAmountRequired=amount,
            resource=self._resource or self._resource_url(request),
            description=PAYMENT_DESCRIPTION,
            payTo=self._recipient_address,
            maxTimeoutSeconds=DEFAULT_MAX_TIMEOUT_SECONDS,
            asset=self._token_address,
        )

    def payment_response_header(self, result: PaymentResult) -> Optional[str]:
        """Encode the settle response for X-PAYMENT-RESPONSE, None if it cannot be encoded"""
        try:
            return encode_payment_payload(result.settle_response)
        except (TypeError, ValueError) as e:
            logger.warning(f"Could not encode settle response header: {e}")
            return None

    @staticmethod
    def _resource_url(request: Request) -> str:
        url = request.url
        return f"{url.scheme}://{url.netloc}{url.path}"

    @staticmethod
    async def _capture_body(request: Request) -> Optional[bytes]:
        # Starlette caches the body, later reads by the handler get the same bytes
        try:
            body = await request.body()
        except (ClientDisconnect, RuntimeError) as e:
            logger.error(f"Failed to read request body: {e!r}")
            raise PaymentGateError(400, "Failed to read request body") from e
        return body or None

    @staticmethod
    def _extract_payload(request: Request, requirements: PaymentRequirements) -> PaymentPayload:
        payment_header = request.headers.get(PAYMENT_HEADER)
        if not payment_header:
            logger.debug(f"No {PAYMENT_HEADER} header, returning payment requirements")
            raise PaymentGateError(
                402, f"{PAYMENT_HEADER} header is required", accepts=[requirements]
            )

        try:
            payload = decode_payment_payload(payment_header, PaymentPayload)
        except PayloadDecodeError as e:
            logger.error(f"Failed to decode payment payload: {e}", exc_info=True)
            logger.debug(f"Payment header content (first 200 chars): {payment_header[:200]}")
            raise PaymentGateError(400, f"Invalid payment payload: {e}") from e

        payload.x402_version = X402_VERSION
        return payload

    async def _verify(
        self, payload: PaymentPayload, requirements: PaymentRequirements
    ) -> VerifyResponse:
        try:
            verify_response = await self._facilitator.verify(payload, requirements)
        except FacilitatorError as e:
            raise PaymentGateError(500, f"Payment verification failed: {e}") from e

        if not verify_response.is_valid:
            reason = verify_response.invalid_reason or "unknown reason"
            logger.warning(f"Payment verification rejected: {reason}")
            raise PaymentGateError(
                402, f"Payment verification failed: {reason}", accepts=[requirements]
            )
        return verify_response

    async def _settle(
        self, payload: PaymentPayload, requirements: PaymentRequirements
    ) -> SettleResponse:
        try:
            settle_response = await self._facilitator.settle(payload, requirements)
        except FacilitatorError as e:
            raise PaymentGateError(500, f"Payment settlement failed: {e}") from e

        if not settle_response.success:
            reason = settle_response.error_reason or "Settlement was not successful"
            logger.warning(f"Payment settlement rejected: {reason}")
            raise PaymentGateError(
                402, f"Payment settlement failed: {reason}", accepts=[requirements]
            )
        return settle_response


def payment_error_content(error: PaymentGateError) -> dict[str, Any]:
    """JSON body for a rejected request: error, x402Version and, when set, accepts"""
    return PaymentRequired(
        x402Version=X402_VERSION,
        error=error.error,
        accepts=error.accepts,
    ).model_dump(by_alias=True, exclude_none=True)
