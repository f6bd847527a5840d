"""
Schema node types - the declarative description of wire fields.

Nodes are immutable and shared by reference between every validation
and decode that uses them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class NodeType(Enum):
    """Type tag of a schema node."""
    UINT = "uint"
    INT = "int"
    FLOAT = "float"
    UINT_STRING = "uintString"
    INT_STRING = "intString"
    FLOAT_STRING = "floatString"
    BOOL = "bool"
    BINBOOL = "binbool"
    STRING = "string"
    HEX_STRING = "hexString"
    ARRAY = "array"
    OBJECT = "object"
    STRUCT = "struct"


# Tags decoded by passing the wire value through unchanged
SCALAR_TYPES = frozenset({
    NodeType.UINT,
    NodeType.INT,
    NodeType.FLOAT,
    NodeType.STRING,
    NodeType.HEX_STRING,
    NodeType.BOOL,
})

# Tags decoded into decimal.Decimal
BIG_NUMBER_TYPES = frozenset({
    NodeType.INT_STRING,
    NodeType.UINT_STRING,
    NodeType.FLOAT_STRING,
})


@dataclass(frozen=True, slots=True, eq=True)
class SchemaNode:
    """
    One field or structure of a wire schema.

    Only the children relevant to `type` are set:
    - array: `fields` (positional tuple) or `elements` (homogeneous list)
    - object: `keys` (fixed keys) or `elements` (arbitrary keys)
    - struct: `struct` (name in the struct dictionary)
    """
    type: NodeType
    optional: bool = False
    name: Optional[str] = None
    length: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    elements: Optional["SchemaNode"] = None
    fields: Optional[tuple["SchemaNode", ...]] = None
    keys: Optional[Mapping[str, "SchemaNode"]] = None
    struct: Optional[str] = None


# Parameter name -> node, one per remote method
MethodSchema = Mapping[str, SchemaNode]

# Struct name -> node
StructDictionary = Mapping[str, SchemaNode]


@dataclass(frozen=True, slots=True)
class EventSpec:
    """A server event: its wire id and payload schema."""
    name: str
    id: int
    schema: SchemaNode
