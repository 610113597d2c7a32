"""
Pytest configuration and fixtures
"""

import json
from base64 import b64encode
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

from signpay.types import SettleResponse, VerifyResponse

USDC_BASE_SEPOLIA = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
MERCHANT_ADDRESS = "0xB8E124eaA317761CF8E4C63EB445fA3d21deD759"
BUYER_ADDRESS = "0x857b06519E91e3A54538791bDbb0E22373e36b66"
FACILITATOR_URL = "https://facilitator.test"


@pytest.fixture
def gate_kwargs():
    """PaymentGate arguments for Base Sepolia USDC"""
    return {
        "chain_id": 84532,
        "token_address": USDC_BASE_SEPOLIA,
        "token_amount": "1000000",
        "recipient_address": MERCHANT_ADDRESS,
        "facilitator_url": FACILITATOR_URL,
    }


@pytest.fixture
def payment_payload_dict():
    """Structurally valid x402 v1 exact payload"""
    return {
        "x402Version": 1,
        "scheme": "exact",
        "network": "base-sepolia",
        "payload": {
            "signature": "0x" + "ab" * 65,
            "authorization": {
                "from": BUYER_ADDRESS,
                "to": MERCHANT_ADDRESS,
                "value": "1000000",
                "validAfter": "1740672089",
                "validBefore": "1740672154",
                "nonce": "0x" + "cd" * 32,
            },
        },
    }


@pytest.fixture
def payment_header(payment_payload_dict):
    """X-PAYMENT header value for payment_payload_dict"""
    return b64encode(json.dumps(payment_payload_dict).encode()).decode()


@pytest.fixture
def mock_facilitator():
    """Facilitator double that accepts and settles every payment"""
    facilitator = MagicMock()
    facilitator.verify = AsyncMock(
        return_value=VerifyResponse(isValid=True, payer=BUYER_ADDRESS)
    )
    facilitator.settle = AsyncMock(
        return_value=SettleResponse(
            success=True,
            transaction="0xabc",
            network="base-sepolia",
            payer=BUYER_ADDRESS,
        )
    )
    return facilitator


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a Starlette Request with a given body and headers"""

    def _make(
        body: bytes = b"",
        headers: Optional[dict[str, str]] = None,
        path: str = "/api/purchase",
        query_string: bytes = b"",
        host: str = "shop.example.com",
        scheme: str = "https",
        disconnect: bool = False,
    ) -> Request:
        raw_headers = [(b"host", host.encode())]
        for name, value in (headers or {}).items():
            raw_headers.append((name.lower().encode(), value.encode()))

        scope = {
            "type": "http",
            "method": "POST",
            "scheme": scheme,
            "path": path,
            "raw_path": path.encode(),
            "query_string": query_string,
            "root_path": "",
            "headers": raw_headers,
            "server": (host, 443 if scheme == "https" else 80),
            "client": ("127.0.0.1", 50000),
        }
        sent = False

        async def receive():
            nonlocal sent
            if disconnect or sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return _make
