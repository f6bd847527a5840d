"""
Order pipeline: resolve the market, normalize input, hash and sign.

- resolve: market (and token-pair direction) from the listed snapshot
- normalize_order: caller input to an unsigned CanonicalOrder
- OrderBuilder: resolve + normalize + sign
- OrderHasher: settlement-contract preimage and keccak256 hash
"""

from .resolver import Resolution, resolve
from .normalizer import (
    AMOUNT_CONTEXT,
    SIGNATURE_FORMAT,
    OrderBuilder,
    normalize_order,
    resolve_direction,
)
from .hasher import ORDER_HASH_TYPES, OrderHasher

__all__ = [
    "Resolution",
    "resolve",
    "AMOUNT_CONTEXT",
    "SIGNATURE_FORMAT",
    "OrderBuilder",
    "normalize_order",
    "resolve_direction",
    "ORDER_HASH_TYPES",
    "OrderHasher",
]
