"""
Order normalization and signing.

Callers may describe an order as (market, amount, rate) or as explicit
token amounts, with the direction given as `direction`, `side` or the sign
of `amount`. normalize_order() reduces all of these to one CanonicalOrder;
OrderBuilder adds resolution against the listed snapshot and signing.

Arithmetic is done in Decimal with a 100-digit context. Derived amounts are
truncated toward zero.
"""

import logging
from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation
from typing import Any, Callable, Optional, Union

from ..config import DEFAULT_ORDER_EXPIRY
from ..crypto import OrderSigner
from ..errors import OrderConstructionError
from ..types.market import ListedSnapshot
from ..types.orders import CanonicalOrder, Direction, RawOrder
from ..types.utils import wall_ms
from .hasher import OrderHasher
from .resolver import Resolution, resolve

logger = logging.getLogger(__name__)

AMOUNT_CONTEXT = Context(prec=100, rounding=ROUND_DOWN)

SIGNATURE_FORMAT = "sign"


def _to_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise OrderConstructionError(f"{name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise OrderConstructionError(f"{name} is not a number: {value!r}") from None
    if not result.is_finite():
        raise OrderConstructionError(f"{name} must be finite, got {value!r}")
    return result


def _scaled_amount(value: Any, decimals: int) -> Optional[Decimal]:
    """Amount in smallest units. Decimal input is taken as already scaled."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return _to_decimal("amount", value)
    return _to_decimal("amount", value).scaleb(decimals, context=AMOUNT_CONTEXT)


def _integer_string(name: str, value: Any) -> str:
    number = _to_decimal(name, value)
    if number != number.to_integral_value() or number < 0:
        raise OrderConstructionError(f"{name} must be a non-negative integer, got {value!r}")
    return str(int(number))


def _truncate(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_DOWN, context=AMOUNT_CONTEXT))


def resolve_direction(
    raw: RawOrder,
    amount: Optional[Decimal],
    resolved: Optional[Direction] = None,
) -> Direction:
    """
    Order direction by precedence: resolved/explicit direction, side,
    then the sign of the amount.

    Raises:
        OrderConstructionError: No usable direction, or an explicit buy
            with a negative amount
    """
    explicit = False
    if resolved is not None:
        direction, explicit = resolved, True
    elif raw.direction is not None:
        direction, explicit = Direction.parse(raw.direction), True
    elif raw.side is not None:
        direction = Direction.parse(raw.side)
    elif amount:
        direction = Direction.BUY if amount > 0 else Direction.SELL
    else:
        direction = None

    if direction is None:
        raise OrderConstructionError("Unknown Order Direction")

    # `side` fixes the direction regardless of sign; `direction` does not
    if explicit and direction is Direction.BUY and amount is not None and amount < 0:
        raise OrderConstructionError("Negative amount for buy order.")

    return direction


def normalize_order(
    raw: RawOrder,
    resolution: Resolution,
    snapshot: ListedSnapshot,
) -> CanonicalOrder:
    """
    Reduce caller input to an unsigned CanonicalOrder.

    Args:
        raw: Caller input
        resolution: Market (and token-pair direction) from resolve()
        snapshot: Listed snapshot, for token decimals and contracts

    Raises:
        OrderConstructionError: Missing or contradictory input
    """
    market = resolution.market
    traded = snapshot.traded_token(market)
    quote = snapshot.quote_token(market)

    amount = _scaled_amount(raw.amount, traded.decimals)
    direction = resolve_direction(raw, amount, resolution.direction)
    if amount is not None:
        amount = abs(amount)

    buy_token = resolution.buy_token or raw.buy_token
    sell_token = resolution.sell_token or raw.sell_token
    if not buy_token or not sell_token:
        if direction is Direction.BUY:
            buy_token, sell_token = traded.contract, quote.contract
        else:
            buy_token, sell_token = quote.contract, traded.contract

    if raw.buy_amount is not None and raw.sell_amount is not None:
        buy_amount = _integer_string("buyAmount", raw.buy_amount)
        sell_amount = _integer_string("sellAmount", raw.sell_amount)
    else:
        if not amount or raw.rate is None:
            raise OrderConstructionError(
                "please provide amount and rate or buyAmount and sellAmount"
            )
        rate = _to_decimal("rate", raw.rate)
        if rate <= 0:
            raise OrderConstructionError(f"rate must be positive, got {raw.rate!r}")

        base = _truncate(amount)
        counter = _truncate(
            AMOUNT_CONTEXT.multiply(
                amount.scaleb(-traded.decimals, context=AMOUNT_CONTEXT), rate
            ).scaleb(quote.decimals, context=AMOUNT_CONTEXT)
        )
        if direction is Direction.BUY:
            buy_amount, sell_amount = str(base), str(counter)
        else:
            buy_amount, sell_amount = str(counter), str(base)

    return CanonicalOrder(
        market=market.symbol,
        sell_token=sell_token,
        sell_amount=sell_amount,
        buy_token=buy_token,
        buy_amount=buy_amount,
        expiry=raw.expiry,
        nonce=raw.nonce,
        signature=raw.signature,
        signature_format=raw.signature_format,
        extra=dict(raw.extra),
    )


class OrderBuilder:
    """
    Resolves, normalizes and signs orders against one listed snapshot.

    Signing happens only when the order has no signature and a signer
    (account or delegate key) is configured.
    """

    def __init__(
        self,
        snapshot: ListedSnapshot,
        hasher: OrderHasher,
        signer: Optional[OrderSigner] = None,
        default_expiry: int = DEFAULT_ORDER_EXPIRY,
        clock: Callable[[], int] = wall_ms,
    ):
        """
        Args:
            snapshot: Listed tokens and markets
            hasher: Order hasher (knows the exchange contract)
            signer: Signs order hashes; None leaves orders unsigned
            default_expiry: Expiry for orders that set none
            clock: Millisecond clock for default nonces
        """
        self._snapshot = snapshot
        self._hasher = hasher
        self._signer = signer
        self._default_expiry = default_expiry
        self._clock = clock

    def build(self, raw: Union[RawOrder, dict]) -> CanonicalOrder:
        """
        Build the canonical (signed, if possible) order.

        Raises:
            ResolutionError: Unknown market or token
            OrderConstructionError: Missing or contradictory input
        """
        if isinstance(raw, dict):
            raw = RawOrder.from_dict(raw)

        resolution = resolve(self._snapshot, raw)
        order = normalize_order(raw, resolution, self._snapshot)

        if order.signature is None and self._signer is not None:
            self.sign(order, raw.contract_address)

        logger.debug(
            f"Built order {order.market}: sell {order.sell_amount} {order.sell_token} "
            f"for {order.buy_amount} {order.buy_token}"
        )
        return order

    def sign(self, order: CanonicalOrder, contract_address: Optional[str] = None) -> None:
        """Fill in nonce/expiry defaults and sign the order in place."""
        if self._signer is None:
            raise OrderConstructionError("No signing key configured")

        if order.nonce is None:
            order.nonce = self._clock()
        if order.expiry is None:
            order.expiry = self._default_expiry

        digest = self._hasher.hash(order, contract_address)
        order.signature = self._signer.sign_hash(digest)
        order.signature_format = SIGNATURE_FORMAT
