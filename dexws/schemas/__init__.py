"""
Schema dictionaries for client methods and server events.

The JSON tables in this package are compiled into SchemaNode trees once,
at import time:
- CLIENT_METHODS: method name -> MethodSchema (outbound validation)
- SERVER_EVENTS: event name -> EventSpec (inbound decoding)
- SERVER_STRUCTS: struct name -> SchemaNode (shared by event schemas)
- EVENT_NAMES: wire event id -> event name

A malformed entry raises SchemaConfigError during import.
"""

import logging
from importlib import resources
from types import MappingProxyType
from typing import Any, Iterator, Mapping

import orjson

from ..errors import SchemaConfigError
from ..types.schema import EventSpec, MethodSchema, NodeType, SchemaNode

logger = logging.getLogger(__name__)

# Node attributes allowed in the JSON tables
_NODE_KEYS = frozenset({
    "type", "optional", "name", "length", "minLength", "maxLength",
    "elements", "fields", "keys", "struct",
})


def _check_length(raw: dict, key: str, path: str) -> Any:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SchemaConfigError(f"{path}: '{key}' must be a non-negative integer")
    return value


def compile_node(raw: Any, path: str = "<schema>") -> SchemaNode:
    """
    Compile one JSON schema entry into a SchemaNode.

    Args:
        raw: Parsed JSON object describing the node
        path: Location used in error messages

    Returns:
        Immutable SchemaNode

    Raises:
        SchemaConfigError: If the entry is malformed
    """
    if not isinstance(raw, dict):
        raise SchemaConfigError(f"{path}: schema node must be an object")

    unknown = set(raw) - _NODE_KEYS
    if unknown:
        raise SchemaConfigError(f"{path}: unknown attributes {sorted(unknown)}")

    try:
        node_type = NodeType(raw.get("type"))
    except ValueError:
        raise SchemaConfigError(f"{path}: unknown type {raw.get('type')!r}") from None

    optional = raw.get("optional", False)
    if not isinstance(optional, bool):
        raise SchemaConfigError(f"{path}: 'optional' must be a boolean")

    name = raw.get("name")
    if name is not None and not isinstance(name, str):
        raise SchemaConfigError(f"{path}: 'name' must be a string")

    elements = None
    if "elements" in raw:
        elements = compile_node(raw["elements"], f"{path}.elements")

    fields = None
    if "fields" in raw:
        if not isinstance(raw["fields"], list):
            raise SchemaConfigError(f"{path}: 'fields' must be a list")
        compiled = []
        for i, field_raw in enumerate(raw["fields"]):
            field_node = compile_node(field_raw, f"{path}.fields[{i}]")
            if not field_node.name:
                raise SchemaConfigError(f"{path}.fields[{i}]: tuple field needs a name")
            compiled.append(field_node)
        fields = tuple(compiled)

    keys = None
    if "keys" in raw:
        if not isinstance(raw["keys"], dict):
            raise SchemaConfigError(f"{path}: 'keys' must be an object")
        keys = MappingProxyType({
            key: compile_node(child, f"{path}.{key}")
            for key, child in raw["keys"].items()
        })

    struct = raw.get("struct")
    if node_type is NodeType.STRUCT and not isinstance(struct, str):
        raise SchemaConfigError(f"{path}: struct node needs a 'struct' name")

    return SchemaNode(
        type=node_type,
        optional=optional,
        name=name,
        length=_check_length(raw, "length", path),
        min_length=_check_length(raw, "minLength", path),
        max_length=_check_length(raw, "maxLength", path),
        elements=elements,
        fields=fields,
        keys=keys,
        struct=struct,
    )


def iter_struct_refs(node: SchemaNode) -> Iterator[str]:
    """Yield every struct name referenced from a node tree."""
    if node.struct is not None:
        yield node.struct
    if node.elements is not None:
        yield from iter_struct_refs(node.elements)
    for child in node.fields or ():
        yield from iter_struct_refs(child)
    for child in (node.keys or {}).values():
        yield from iter_struct_refs(child)


def load_method_schemas(raw: Any) -> Mapping[str, MethodSchema]:
    """Compile the client method table (method -> parameter -> node)."""
    if not isinstance(raw, dict):
        raise SchemaConfigError("client methods: table must be an object")

    methods = {}
    for method, params in raw.items():
        if not isinstance(params, dict):
            raise SchemaConfigError(f"{method}: parameter table must be an object")
        methods[method] = MappingProxyType({
            key: compile_node(node, f"{method}.{key}")
            for key, node in params.items()
        })
    return MappingProxyType(methods)


def load_event_specs(raw: Any) -> tuple[Mapping[str, EventSpec], Mapping[str, SchemaNode]]:
    """
    Compile the server event table.

    Returns:
        Tuple of (events by name, structs by name)

    Raises:
        SchemaConfigError: On malformed nodes, duplicate event ids or
            references to undefined structs
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("events"), dict):
        raise SchemaConfigError("server events: table needs an 'events' object")

    structs = MappingProxyType({
        name: compile_node(node, f"structs.{name}")
        for name, node in (raw.get("structs") or {}).items()
    })

    events = {}
    seen_ids: dict[int, str] = {}
    for name, entry in raw["events"].items():
        if not isinstance(entry, dict):
            raise SchemaConfigError(f"events.{name}: entry must be an object")
        entry = dict(entry)
        event_id = entry.pop("id", None)
        if isinstance(event_id, bool) or not isinstance(event_id, int):
            raise SchemaConfigError(f"events.{name}: 'id' must be an integer")
        if event_id in seen_ids:
            raise SchemaConfigError(
                f"events.{name}: id {event_id} already used by {seen_ids[event_id]}"
            )
        seen_ids[event_id] = name
        events[name] = EventSpec(
            name=name,
            id=event_id,
            schema=compile_node(entry, f"events.{name}"),
        )

    roots = [(f"events.{s.name}", s.schema) for s in events.values()]
    roots += [(f"structs.{n}", node) for n, node in structs.items()]
    for path, node in roots:
        for ref in iter_struct_refs(node):
            if ref not in structs:
                raise SchemaConfigError(f"{path}: undefined struct '{ref}'")

    return MappingProxyType(events), structs


def _read_table(filename: str) -> Any:
    return orjson.loads(resources.files(__name__).joinpath(filename).read_bytes())


CLIENT_METHODS = load_method_schemas(_read_table("client_methods.json"))
SERVER_EVENTS, SERVER_STRUCTS = load_event_specs(_read_table("server_events.json"))
EVENT_NAMES = MappingProxyType({spec.id: name for name, spec in SERVER_EVENTS.items()})

logger.debug(
    f"Loaded {len(CLIENT_METHODS)} client methods, "
    f"{len(SERVER_EVENTS)} server events, {len(SERVER_STRUCTS)} structs"
)

__all__ = [
    "CLIENT_METHODS",
    "SERVER_EVENTS",
    "SERVER_STRUCTS",
    "EVENT_NAMES",
    "compile_node",
    "iter_struct_refs",
    "load_method_schemas",
    "load_event_specs",
]
