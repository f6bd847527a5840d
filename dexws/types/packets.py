"""
Decoded wire packets.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(slots=True)
class Packet:
    """
    One server packet: [channel, eventId, message, requestId?].

    `message` is the raw payload, `parsed` the schema-decoded one.
    """
    channel: Any
    event: str
    message: Any
    parsed: Any = None
    request_id: Optional[int] = None


@dataclass(slots=True)
class Response:
    """Result of a request made without a callback."""
    channel: Any
    event: str
    message: Any
    parsed: Any
