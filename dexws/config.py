"""
Client configuration.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

# Expiry used for orders that set none (02.05.2025 02:05:25 UTC).
# Production callers are expected to pass their own.
DEFAULT_ORDER_EXPIRY = 1746144325

DEFAULT_NETWORK = "mainnet"

ENDPOINTS = {
    "mainnet": "wss://api.dex.blue/ws",
    "ropsten": "wss://api.ropsten.dex.blue/ws",
}

CHAIN_IDS = {
    "mainnet": 1,
    "ropsten": 3,
}


@dataclass
class ClientConfig:
    """Client configuration."""

    # Connection
    network: str = DEFAULT_NETWORK
    endpoint: str = ""  # Defaults to ENDPOINTS[network]
    chain_id: Optional[int] = None  # Defaults to CHAIN_IDS[network]

    # Signing keys (0x prefixed)
    account: str = field(default="", repr=False)
    delegate: str = field(default="", repr=False)
    no_auto_auth: bool = False

    # Orders
    default_expiry: int = DEFAULT_ORDER_EXPIRY

    # Codec
    max_schema_depth: int = 64

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.endpoint:
            self.endpoint = ENDPOINTS.get(self.network, "")
        if self.chain_id is None:
            self.chain_id = CHAIN_IDS.get(self.network)

    @property
    def signing_key(self) -> str:
        """Key used to sign orders: the account, else the delegate."""
        return self.account or self.delegate

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load config from environment variables."""
        chain_id = os.getenv("DEX_CHAIN_ID", "")
        return cls(
            # Connection
            network=os.getenv("DEX_NETWORK", DEFAULT_NETWORK),
            endpoint=os.getenv("DEX_ENDPOINT", ""),
            chain_id=int(chain_id) if chain_id else None,

            # Keys
            account=os.getenv("DEX_ACCOUNT_KEY", ""),
            delegate=os.getenv("DEX_DELEGATE_KEY", ""),
            no_auto_auth=os.getenv("DEX_NO_AUTO_AUTH", "").lower() in ("1", "true", "yes"),

            # Orders
            default_expiry=int(os.getenv("DEX_DEFAULT_EXPIRY", str(DEFAULT_ORDER_EXPIRY))),

            # Codec
            max_schema_depth=int(os.getenv("DEX_MAX_SCHEMA_DEPTH", "64")),

            # Logging
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_env_file(cls, path: str) -> "ClientConfig":
        """
        Load config from .env file, then environment variables.

        Environment variables override file values.
        """
        if os.path.exists(path):
            with open(path) as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" in line:
                        key, value = line.split("=", 1)
                        key = key.strip()
                        value = value.strip().strip("'\"")
                        # Only set if not already in environment
                        if key not in os.environ:
                            os.environ[key] = value

        return cls.from_env()

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.endpoint:
            errors.append(f"No endpoint for network {self.network!r}; set DEX_ENDPOINT")

        if self.chain_id is None:
            errors.append(f"No chain id for network {self.network!r}; set DEX_CHAIN_ID")

        for name, key in (("DEX_ACCOUNT_KEY", self.account), ("DEX_DELEGATE_KEY", self.delegate)):
            if key and not key.startswith("0x"):
                errors.append(f"{name} must be 0x prefixed")

        if not 0 < self.default_expiry < 2 ** 32:
            errors.append("DEX_DEFAULT_EXPIRY must fit in uint32")

        if self.max_schema_depth < 1:
            errors.append("DEX_MAX_SCHEMA_DEPTH must be at least 1")

        return errors
