"""
Market and token lookup in the listed snapshot.
"""

from dataclasses import dataclass
from typing import Optional

from ..errors import ResolutionError
from ..types.market import ListedSnapshot, MarketInfo
from ..types.orders import Direction, RawOrder


@dataclass(frozen=True, slots=True)
class Resolution:
    """Market of an order, plus what the token pair implied."""
    market: MarketInfo
    direction: Optional[Direction] = None  # Set when derived from the token pair
    buy_token: Optional[str] = None  # Contract addresses, set for token-pair input
    sell_token: Optional[str] = None


def resolve(snapshot: ListedSnapshot, order: RawOrder) -> Resolution:
    """
    Find the market of an order.

    With `market` set it is looked up directly. Otherwise buy/sell tokens
    (contracts or symbols) are resolved and the market is the pair in
    either order: buy+sell means a buy, sell+buy a sell.

    Raises:
        ResolutionError: Unknown market or token, or neither given
    """
    if order.market:
        market = snapshot.markets.get(order.market)
        if market is None:
            raise ResolutionError(f"Unknown Market: {order.market}")
        return Resolution(market=market)

    if not order.buy_token or not order.sell_token:
        raise ResolutionError(
            "Please provide either the market or the buyToken and sellToken parameters"
        )

    buy = snapshot.find_token(order.buy_token)
    sell = snapshot.find_token(order.sell_token)
    if buy is None or sell is None:
        unknown = order.buy_token if buy is None else order.sell_token
        raise ResolutionError(f"Unknown token: {unknown}")

    market = snapshot.markets.get(buy.symbol + sell.symbol)
    if market is not None:
        direction = Direction.BUY
    else:
        market = snapshot.markets.get(sell.symbol + buy.symbol)
        direction = Direction.SELL
    if market is None:
        raise ResolutionError(f"Unknown Market: {buy.symbol}/{sell.symbol}")

    return Resolution(
        market=market,
        direction=direction,
        buy_token=buy.contract,
        sell_token=sell.contract,
    )
