"""
Exchange metadata - tokens and markets from the listed packet.

A ListedSnapshot is built once per connection from the first "listed"
event and never modified afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class TokenInfo:
    """A listed token."""
    symbol: str
    contract: str  # 0x-prefixed contract address
    decimals: int


@dataclass(frozen=True, slots=True)
class MarketInfo:
    """A listed market, keyed by traded + quote symbol (e.g. "ENGETH")."""
    symbol: str
    traded: str  # Symbol of the token being bought or sold
    quote: str  # Symbol of the token prices are denominated in


@dataclass(frozen=True, slots=True)
class ListedSnapshot:
    """Tokens and markets available on the exchange."""
    tokens: Mapping[str, TokenInfo]
    markets: Mapping[str, MarketInfo]
    tokens_by_contract: Mapping[str, TokenInfo] = field(default_factory=dict)

    @classmethod
    def from_parsed(cls, parsed: dict) -> "ListedSnapshot":
        """
        Build a snapshot from a decoded "listed" payload.

        Symbols are taken from the mapping keys. Contracts are indexed
        lower-cased so lookups ignore checksum casing.
        """
        tokens = {}
        for symbol, token in (parsed.get("tokens") or {}).items():
            tokens[symbol] = TokenInfo(
                symbol=symbol,
                contract=token["contract"],
                decimals=int(token.get("decimals", 0)),
            )

        markets = {}
        for symbol, market in (parsed.get("markets") or {}).items():
            markets[symbol] = MarketInfo(
                symbol=symbol,
                traded=market["traded"],
                quote=market["quote"],
            )

        by_contract = {t.contract.lower(): t for t in tokens.values()}

        return cls(
            tokens=MappingProxyType(tokens),
            markets=MappingProxyType(markets),
            tokens_by_contract=MappingProxyType(by_contract),
        )

    def token(self, symbol: str) -> TokenInfo:
        """Token by symbol. Raises KeyError if unknown."""
        return self.tokens[symbol]

    def find_token(self, ref: str) -> Optional[TokenInfo]:
        """Find a token by contract address first, then by symbol."""
        return self.tokens_by_contract.get(ref.lower()) or self.tokens.get(ref)

    def traded_token(self, market: MarketInfo) -> TokenInfo:
        """Traded token of a market."""
        return self.tokens[market.traded]

    def quote_token(self, market: MarketInfo) -> TokenInfo:
        """Quote token of a market."""
        return self.tokens[market.quote]
