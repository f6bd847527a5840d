"""
dexws types.

Re-exports the schema, market, order and packet types.

Example:
    from dexws.types import SchemaNode, NodeType, ListedSnapshot
"""

from .schema import (
    NodeType,
    SchemaNode,
    MethodSchema,
    StructDictionary,
    EventSpec,
    SCALAR_TYPES,
    BIG_NUMBER_TYPES,
)

from .market import (
    TokenInfo,
    MarketInfo,
    ListedSnapshot,
)

from .orders import (
    Number,
    Direction,
    RawOrder,
    CanonicalOrder,
)

from .packets import (
    Packet,
    Response,
)

from .utils import wall_ms

__all__ = [
    # Schema
    "NodeType",
    "SchemaNode",
    "MethodSchema",
    "StructDictionary",
    "EventSpec",
    "SCALAR_TYPES",
    "BIG_NUMBER_TYPES",
    # Market
    "TokenInfo",
    "MarketInfo",
    "ListedSnapshot",
    # Orders
    "Number",
    "Direction",
    "RawOrder",
    "CanonicalOrder",
    # Packets
    "Packet",
    "Response",
    # Utilities
    "wall_ms",
]
