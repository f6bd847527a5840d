"""Shared fixtures: a small listed snapshot and a throw-away signing key."""

import pytest

from dexws.types import ListedSnapshot

# Well-known development key (never holds funds)
TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

ENG = "0xf0ee6b27b759c9893ce4f094b49ad28fd15a23e4"
ETH = "0x0000000000000000000000000000000000000000"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
EXCHANGE = "0x000000000000541e251335090ac5b47176af4f7e"

LISTED_MESSAGE = {
    "tokens": {
        "ENG": {"contract": ENG, "decimals": 18, "name": "Enigma"},
        "ETH": {"contract": ETH, "decimals": 18},
        "USDC": {"contract": USDC, "decimals": 6},
    },
    "markets": {
        "ENGETH": {"traded": "ENG", "quote": "ETH"},
        "ETHUSDC": {"traded": "ETH", "quote": "USDC", "tickSize": "0.01"},
    },
}

CONFIG_MESSAGE = {
    "contractAddress": EXCHANGE,
    "chainId": 1,
}


@pytest.fixture
def listed_message():
    """Raw listed payload (fresh copy per test)."""
    import copy
    return copy.deepcopy(LISTED_MESSAGE)


@pytest.fixture
def snapshot(listed_message):
    """Listed snapshot with ENGETH (18/18) and ETHUSDC (18/6)."""
    return ListedSnapshot.from_parsed(listed_message)


@pytest.fixture
def config_message():
    """Raw config payload."""
    return dict(CONFIG_MESSAGE)


@pytest.fixture
def exchange_address():
    """Settlement contract address (lower-case)."""
    return EXCHANGE


@pytest.fixture
def signing_key():
    """Private key used to sign in tests."""
    return TEST_KEY


@pytest.fixture
def signer_address():
    """Checksummed address of signing_key."""
    return TEST_ADDRESS
