"""
Order types - raw caller input and the canonical signable order.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

# Amounts and rates accepted from callers
Number = Union[int, float, str, Decimal]


class Direction(Enum):
    """Order direction relative to the market's traded token."""
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: Any) -> Optional["Direction"]:
        """Parse "buy"/"sell" (or a Direction). Returns None otherwise."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                return None
        return None


# camelCase wire key -> RawOrder attribute
_RAW_ORDER_KEYS = {
    "market": "market",
    "amount": "amount",
    "rate": "rate",
    "side": "side",
    "direction": "direction",
    "buyToken": "buy_token",
    "sellToken": "sell_token",
    "buyAmount": "buy_amount",
    "sellAmount": "sell_amount",
    "nonce": "nonce",
    "expiry": "expiry",
    "signature": "signature",
    "signatureFormat": "signature_format",
    "contractAddress": "contract_address",
}


@dataclass(slots=True)
class RawOrder:
    """
    Order as supplied by the caller.

    Either (market, amount, rate) or (buy_token, sell_token, buy_amount,
    sell_amount) describes the trade. `side` and `direction` are optional;
    without them the sign of `amount` decides.

    `amount` given as int/float/str is in whole traded tokens; a Decimal
    amount is taken as already scaled to the smallest unit.
    """
    market: Optional[str] = None
    amount: Optional[Number] = None
    rate: Optional[Number] = None
    side: Optional[str] = None
    direction: Optional[str] = None
    buy_token: Optional[str] = None
    sell_token: Optional[str] = None
    buy_amount: Optional[Number] = None
    sell_amount: Optional[Number] = None
    nonce: Optional[int] = None
    expiry: Optional[int] = None
    signature: Optional[str] = None
    signature_format: Optional[str] = None
    contract_address: Optional[str] = None
    extra: dict = field(default_factory=dict)  # Passed through to the wire (e.g. clientId)

    @classmethod
    def from_dict(cls, data: dict) -> "RawOrder":
        """Build from a camelCase dict; unknown keys go to `extra`."""
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            attr = _RAW_ORDER_KEYS.get(key)
            if attr is None:
                extra[key] = value
            else:
                kwargs[attr] = value
        return cls(**kwargs, extra=extra)


@dataclass(slots=True)
class CanonicalOrder:
    """
    Normalized order ready to hash, sign and send.

    Amounts are base-10 integer strings in the token's smallest unit.
    Tokens are contract addresses.
    """
    market: str
    sell_token: str
    sell_amount: str
    buy_token: str
    buy_amount: str
    expiry: Optional[int] = None
    nonce: Optional[int] = None
    signature: Optional[str] = None
    signature_format: Optional[str] = None
    extra: dict = field(default_factory=dict)

    def to_params(self) -> dict:
        """Serialize to placeOrder wire parameters."""
        params = dict(self.extra)
        params.update({
            "market": self.market,
            "sellToken": self.sell_token,
            "sellAmount": self.sell_amount,
            "buyToken": self.buy_token,
            "buyAmount": self.buy_amount,
        })
        if self.expiry is not None:
            params["expiry"] = self.expiry
        if self.nonce is not None:
            params["nonce"] = self.nonce
        if self.signature is not None:
            params["signature"] = self.signature
        if self.signature_format is not None:
            params["signatureFormat"] = self.signature_format
        return params
