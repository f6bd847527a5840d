"""
dexws - WebSocket client SDK for the dex.blue exchange.

Validates and sends typed method calls, decodes the positional wire format
into structured packets, and builds signed orders for the settlement
contract.
"""

__version__ = "0.1.0"

# Errors
from .errors import (
    DexError,
    ValidationError,
    DecodeError,
    ResolutionError,
    OrderConstructionError,
    SchemaConfigError,
    RequestError,
    ConnectionClosedError,
)

# Types
from .types import (
    NodeType,
    SchemaNode,
    EventSpec,
    TokenInfo,
    MarketInfo,
    ListedSnapshot,
    Direction,
    RawOrder,
    CanonicalOrder,
    Packet,
    Response,
)

# Schemas and codec
from .schemas import CLIENT_METHODS, SERVER_EVENTS, SERVER_STRUCTS, EVENT_NAMES
from .codec import validate, PacketDecoder, decode_packet, parse_frame

# Orders
from .orders import OrderBuilder, OrderHasher, normalize_order, resolve
from .crypto import OrderSigner

# Client
from .config import ClientConfig, DEFAULT_ORDER_EXPIRY
from .transport import Transport, WebSocketTransport
from .client import DexClient

__all__ = [
    # Version
    "__version__",
    # Errors
    "DexError",
    "ValidationError",
    "DecodeError",
    "ResolutionError",
    "OrderConstructionError",
    "SchemaConfigError",
    "RequestError",
    "ConnectionClosedError",
    # Types
    "NodeType",
    "SchemaNode",
    "EventSpec",
    "TokenInfo",
    "MarketInfo",
    "ListedSnapshot",
    "Direction",
    "RawOrder",
    "CanonicalOrder",
    "Packet",
    "Response",
    # Schemas and codec
    "CLIENT_METHODS",
    "SERVER_EVENTS",
    "SERVER_STRUCTS",
    "EVENT_NAMES",
    "validate",
    "PacketDecoder",
    "decode_packet",
    "parse_frame",
    # Orders
    "OrderBuilder",
    "OrderHasher",
    "OrderSigner",
    "normalize_order",
    "resolve",
    # Client
    "ClientConfig",
    "DEFAULT_ORDER_EXPIRY",
    "Transport",
    "WebSocketTransport",
    "DexClient",
]
