"""
Wire codec: outbound validation and inbound decoding.

- validate: check client method parameters before sending
- PacketDecoder: schema-driven decoding of server payloads
- parse_frame / decode_packet: frames to wire tuples, tuples to Packets
"""

from .validator import validate, METHOD_KEY
from .decoder import PacketDecoder, decode_packet, parse_frame, is_set, DEFAULT_MAX_DEPTH

__all__ = [
    "validate",
    "METHOD_KEY",
    "PacketDecoder",
    "decode_packet",
    "parse_frame",
    "is_set",
    "DEFAULT_MAX_DEPTH",
]
