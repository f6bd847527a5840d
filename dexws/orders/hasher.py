"""
Order hashing for the settlement contract.

The preimage is a packed 7-field tuple. Field order and integer widths are
fixed by the contract:

    address sellToken, uint128 sellAmount, address buyToken,
    uint128 buyAmount, uint32 expiry, uint64 nonce, address contract
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from web3 import Web3

from ..errors import OrderConstructionError
from ..types.orders import CanonicalOrder

ORDER_HASH_TYPES = (
    "address",
    "uint128",
    "address",
    "uint128",
    "uint32",
    "uint64",
    "address",
)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _address(name: str, value: Any) -> str:
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise OrderConstructionError(f"{name} is not an address: {value!r}")
    return value.lower()


def _uint(name: str, value: Any, bits: int) -> int:
    if value is None or isinstance(value, bool):
        raise OrderConstructionError(f"{name} is required for hashing")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise OrderConstructionError(f"{name} is not a number: {value!r}") from None
    if not number.is_finite() or number != number.to_integral_value():
        raise OrderConstructionError(f"{name} must be an integer: {value!r}")
    result = int(number)
    if result < 0 or result >= 1 << bits:
        raise OrderConstructionError(f"{name} does not fit uint{bits}: {value!r}")
    return result


class OrderHasher:
    """
    Builds the order preimage and hashes it with keccak256 (packed).
    """

    def __init__(self, contract_address: Optional[str] = None):
        """
        Args:
            contract_address: Exchange contract from the config packet,
                used when the order carries none
        """
        self.contract_address = contract_address

    def preimage(
        self,
        order: CanonicalOrder,
        contract_address: Optional[str] = None,
    ) -> tuple:
        """
        Return the 7 preimage values in contract order.

        Addresses are lower-cased; amounts, expiry and nonce are ints
        checked against their widths.
        """
        contract = contract_address or self.contract_address
        if not contract:
            raise OrderConstructionError("No exchange contract address to hash the order with")

        return (
            _address("sellToken", order.sell_token),
            _uint("sellAmount", order.sell_amount, 128),
            _address("buyToken", order.buy_token),
            _uint("buyAmount", order.buy_amount, 128),
            _uint("expiry", order.expiry, 32),
            _uint("nonce", order.nonce, 64),
            _address("contractAddress", contract),
        )

    def hash(
        self,
        order: CanonicalOrder,
        contract_address: Optional[str] = None,
    ) -> bytes:
        """Keccak256 of the packed preimage (32 bytes)."""
        values = self.preimage(order, contract_address)
        # web3 only accepts checksummed addresses; packed bytes are identical
        values = [
            Web3.to_checksum_address(v) if t == "address" else v
            for t, v in zip(ORDER_HASH_TYPES, values)
        ]
        return bytes(Web3.solidity_keccak(list(ORDER_HASH_TYPES), values))
