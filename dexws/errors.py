"""Exceptions raised by the dexws client and its codec."""


class DexError(Exception):
    """Base exception for dexws errors."""
    pass


class ValidationError(DexError):
    """Raised when outbound parameters do not match the method schema."""
    pass


class DecodeError(DexError):
    """Raised when an inbound packet does not match its event schema."""
    pass


class ResolutionError(DexError):
    """Raised when a market or token is not in the listed snapshot."""
    pass


class OrderConstructionError(DexError):
    """Raised when order input is incomplete or contradictory."""
    pass


class SchemaConfigError(DexError):
    """Raised when a schema dictionary entry is malformed."""
    pass


class RequestError(DexError):
    """Raised when the server answers a request with an error event."""
    pass


class ConnectionClosedError(DexError):
    """Raised for requests still pending when the channel closes."""
    pass
