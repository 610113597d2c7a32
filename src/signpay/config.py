"""
signpay configuration
Protocol constants, the chain ID to network table and environment settings
"""

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from signpay.exceptions import ConfigurationError, UnsupportedChainError

X402_VERSION = 1

SCHEME_EXACT = "exact"
PAYMENT_DESCRIPTION = "Payment for purchase"
DEFAULT_MAX_TIMEOUT_SECONDS = 300

# Outbound call timeout for verify/settle (seconds)
DEFAULT_FACILITATOR_TIMEOUT = 30.0

PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"

# Request state keys
PAYMENT_DATA_KEY = "signPaymentData"
PAYMENT_AMOUNT_KEY = "signpay:amount"

CHAIN_NETWORKS: Mapping[int, str] = MappingProxyType(
    {
        1: "ethereum",
        11155111: "sepolia",
        8453: "base",
        84532: "base-sepolia",
        10: "optimism",
        11155420: "optimism-sepolia",
        42161: "arbitrum",
        421614: "arbitrum-sepolia",
        137: "polygon",
        80002: "polygon-amoy",
        43114: "avalanche",
        43113: "avalanche-fuji",
        59144: "linea",
        59141: "linea-sepolia",
        324: "zksync",
        300: "zksync-sepolia",
    }
)


class NetworkConfig:
    """Chain ID lookups against a chain network table"""

    BASE_SEPOLIA = 84532

    @classmethod
    def get_network(cls, chain_id: int, networks: Optional[Mapping[int, str]] = None) -> str:
        """Get network name for chain ID

        Args:
            chain_id: Numeric chain identifier (e.g., 8453)
            networks: Chain network table, defaults to CHAIN_NETWORKS

        Returns:
            Network name (e.g., "base")

        Raises:
            UnsupportedChainError: If the chain ID is not in the table
        """
        table = CHAIN_NETWORKS if networks is None else networks
        network = table.get(chain_id)
        if network is None:
            raise UnsupportedChainError(chain_id)
        return network

    @classmethod
    def is_supported(cls, chain_id: int, networks: Optional[Mapping[int, str]] = None) -> bool:
        table = CHAIN_NETWORKS if networks is None else networks
        return chain_id in table


@dataclass(frozen=True)
class GateSettings:
    """Payment gate settings, usually loaded from SIGNPAY_* environment variables"""

    chain_id: int
    token_address: str
    token_amount: str
    recipient_address: str
    facilitator_url: str
    api_key: Optional[str] = None
    resource: Optional[str] = None
    facilitator_timeout: float = DEFAULT_FACILITATOR_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GateSettings":
        """Load settings from the environment

        SIGNPAY_TOKEN_AMOUNT may be empty, in which case every request needs a
        dynamic amount set by a preceding step.

        Raises:
            ConfigurationError: If a required variable is missing or malformed
        """
        env = os.environ if environ is None else environ

        missing = [
            name
            for name in (
                "SIGNPAY_CHAIN_ID",
                "SIGNPAY_TOKEN_ADDRESS",
                "SIGNPAY_RECIPIENT_ADDRESS",
                "SIGNPAY_FACILITATOR_URL",
            )
            if not env.get(name)
        ]
        if missing:
            raise ConfigurationError(f"missing environment variables: {', '.join(missing)}")

        try:
            chain_id = int(env["SIGNPAY_CHAIN_ID"])
        except ValueError:
            raise ConfigurationError(f"invalid SIGNPAY_CHAIN_ID: {env['SIGNPAY_CHAIN_ID']}")

        timeout = DEFAULT_FACILITATOR_TIMEOUT
        if env.get("SIGNPAY_FACILITATOR_TIMEOUT"):
            try:
                timeout = float(env["SIGNPAY_FACILITATOR_TIMEOUT"])
            except ValueError:
                raise ConfigurationError(
                    f"invalid SIGNPAY_FACILITATOR_TIMEOUT: {env['SIGNPAY_FACILITATOR_TIMEOUT']}"
                )

        return cls(
            chain_id=chain_id,
            token_address=env["SIGNPAY_TOKEN_ADDRESS"],
            token_amount=env.get("SIGNPAY_TOKEN_AMOUNT", ""),
            recipient_address=env["SIGNPAY_RECIPIENT_ADDRESS"],
            facilitator_url=env["SIGNPAY_FACILITATOR_URL"],
            api_key=env.get("SIGNPAY_API_KEY") or None,
            resource=env.get("SIGNPAY_RESOURCE_URL") or None,
            facilitator_timeout=timeout,
        )
