"""
Inbound packet decoding.

Server packets are compact positional arrays. PacketDecoder walks an event
schema and turns them into named structures:
- tuple arrays (`fields`) become dicts keyed by field name
- big-number strings become decimal.Decimal, never float
- struct nodes are resolved through the shared struct dictionary

Decoding is a pure function of (schema, value). Malformed data raises
DecodeError for the whole packet.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

import orjson

from ..errors import DecodeError
from ..types.packets import Packet
from ..types.schema import (
    BIG_NUMBER_TYPES,
    SCALAR_TYPES,
    EventSpec,
    NodeType,
    SchemaNode,
    StructDictionary,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


def is_set(value: Any) -> bool:
    """
    Whether an object key counts as present.

    null, false, 0 and "" are unset; empty lists and dicts are set.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


class PacketDecoder:
    """
    Recursive schema interpreter for server payloads.

    Holds only immutable schema tables; safe to share between threads.
    """

    def __init__(
        self,
        structs: StructDictionary,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Args:
            structs: Struct name -> SchemaNode
            max_depth: Nesting limit, bounds self-referencing structs
        """
        self._structs = structs
        self._max_depth = max_depth

    def decode(self, schema: SchemaNode, value: Any) -> Any:
        """
        Decode one wire value.

        Raises:
            DecodeError: If the value does not match the schema
        """
        return self._decode(schema, value, 0)

    def _decode(self, schema: SchemaNode, value: Any, depth: int) -> Any:
        if depth > self._max_depth:
            raise DecodeError(f"schema nesting exceeds {self._max_depth} levels")

        if value is None:
            if not schema.optional:
                raise DecodeError("invalid format spec: unexpected null")
            return None

        node_type = schema.type

        if node_type in SCALAR_TYPES:
            return value

        if node_type is NodeType.BINBOOL:
            return is_set(value)

        if node_type in BIG_NUMBER_TYPES:
            return self._decode_number(value)

        if node_type is NodeType.ARRAY:
            if schema.fields is not None:
                return self._decode_tuple(schema.fields, value, depth)
            if schema.elements is not None:
                if not isinstance(value, list):
                    raise DecodeError("invalid format spec: expected an array")
                return [self._decode(schema.elements, item, depth + 1) for item in value]
            raise DecodeError("invalid format spec: array without fields or elements")

        if node_type is NodeType.OBJECT:
            if not isinstance(value, dict):
                raise DecodeError("invalid format spec: expected an object")
            if schema.keys is not None:
                return self._decode_keys(schema.keys, value, depth)
            if schema.elements is not None:
                return {
                    key: self._decode(schema.elements, item, depth + 1)
                    for key, item in value.items()
                }
            raise DecodeError("invalid format spec: object without keys or elements")

        if node_type is NodeType.STRUCT:
            struct = self._structs.get(schema.struct)
            if struct is None:
                raise DecodeError(f"invalid format spec: unknown struct {schema.struct!r}")
            return self._decode(struct, value, depth + 1)

        raise DecodeError(f"invalid format spec: type {node_type.value}")

    @staticmethod
    def _decode_number(value: Any) -> Decimal:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise DecodeError(f"invalid format spec: expected a number, got {value!r}")
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise DecodeError(f"invalid format spec: bad number {value!r}") from None

    def _decode_tuple(self, fields: tuple[SchemaNode, ...], value: Any, depth: int) -> dict:
        if not isinstance(value, list) or len(value) != len(fields):
            raise DecodeError(
                f"invalid format spec: expected a tuple of {len(fields)} fields"
            )
        return {
            field.name: self._decode(field, item, depth + 1)
            for field, item in zip(fields, value)
        }

    def _decode_keys(self, keys: Mapping[str, SchemaNode], value: dict, depth: int) -> dict:
        parsed = {}
        for key, node in keys.items():
            item = value.get(key)
            if is_set(item):
                parsed[key] = self._decode(node, item, depth + 1)
            elif not node.optional:
                raise DecodeError(f"invalid format spec: missing key {key!r}")
        return parsed


def decode_packet(
    item: Any,
    events: Mapping[str, EventSpec],
    event_names: Mapping[int, str],
    decoder: PacketDecoder,
) -> Packet:
    """
    Decode one [channel, eventId, message, requestId?] wire tuple.

    Raises:
        DecodeError: On a malformed tuple or an unknown event id
    """
    if not isinstance(item, list) or len(item) not in (3, 4):
        raise DecodeError(f"malformed packet: {item!r}")

    channel, event_id, message = item[0], item[1], item[2]
    request_id: Optional[int] = item[3] if len(item) == 4 else None

    if isinstance(event_id, bool) or not isinstance(event_id, int):
        raise DecodeError(f"unknown event id: {event_id!r}")

    event = event_names.get(event_id)
    if event is None:
        raise DecodeError(f"unknown event id: {event_id!r}")

    parsed = decoder.decode(events[event].schema, message)

    return Packet(
        channel=channel,
        event=event,
        message=message,
        parsed=parsed,
        request_id=request_id,
    )


def parse_frame(data: bytes | str) -> list:
    """
    Parse one transport frame: a JSON array of packet tuples.

    Packets are left undecoded so each one can fail on its own.

    Raises:
        DecodeError: If the frame is not a JSON array
    """
    try:
        msgs = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise DecodeError(f"frame is not valid JSON: {e}") from None

    if not isinstance(msgs, list):
        raise DecodeError("frame must be an array of packets")

    return msgs
