"""
FacilitatorClient - Client for communicating with facilitator service
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from signpay.config import DEFAULT_FACILITATOR_TIMEOUT, X402_VERSION
from signpay.exceptions import FacilitatorError
from signpay.types import (
    PaymentPayload,
    PaymentRequirements,
    SettleResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class FacilitatorClient:
    """
    Client for communicating with facilitator service.

    Handles verify and settle. Every failure to obtain a well-formed answer
    (connection error, timeout, non-2xx status, malformed body) is raised as
    FacilitatorError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_FACILITATOR_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize facilitator client.

        Args:
            base_url: Facilitator service base URL
            api_key: Sent as "Authorization: Bearer <api_key>" on verify and settle
            headers: Custom HTTP headers
            timeout: Outbound call timeout (seconds)
            transport: Custom httpx transport
        """
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse:
        """
        Verify payment signature (without executing on-chain transaction).

        Args:
            payload: Payment payload from client
            requirements: Payment requirements

        Returns:
            VerifyResponse
        """
        return await self._post("/verify", payload, requirements, VerifyResponse)

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> SettleResponse:
        """
        Execute payment settlement (on-chain transaction).

        Args:
            payload: Payment payload from client
            requirements: Payment requirements

        Returns:
            SettleResponse with transaction hash
        """
        return await self._post("/settle", payload, requirements, SettleResponse)

    async def _post(
        self,
        path: str,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        response_model: type[T],
    ) -> T:
        client = await self._get_client()
        request_body: dict[str, Any] = {
            "x402Version": X402_VERSION,
            "paymentPayload": payload.model_dump(by_alias=True, exclude_none=True),
            "paymentRequirements": requirements.model_dump(by_alias=True, exclude_none=True),
        }

        logger.debug(f"POST {self._base_url}{path}")
        try:
            response = await client.post(path, json=request_body)
        except httpx.HTTPError as e:
            logger.error(f"Facilitator {path} request failed: {e!r}")
            raise FacilitatorError(f"{path} request failed: {str(e) or type(e).__name__}") from e

        if response.is_error:
            body = response.text
            logger.error(
                f"Facilitator {path} returned status={response.status_code}, body={body[:500]}"
            )
            raise FacilitatorError(
                f"facilitator returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        try:
            return response_model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed facilitator {path} response: {response.text[:500]}")
            raise FacilitatorError(
                f"malformed {path} response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
