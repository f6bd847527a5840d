"""Tests for schema table compilation."""

import pytest

from dexws.errors import SchemaConfigError
from dexws.schemas import (
    CLIENT_METHODS,
    EVENT_NAMES,
    SERVER_EVENTS,
    SERVER_STRUCTS,
    compile_node,
    iter_struct_refs,
    load_event_specs,
    load_method_schemas,
)
from dexws.types import NodeType


class TestCompileNode:
    """Tests for compile_node."""

    def test_full_node(self):
        node = compile_node({
            "type": "array",
            "optional": True,
            "minLength": 1,
            "maxLength": 4,
            "elements": {"type": "string", "length": 2},
        })
        assert node.type is NodeType.ARRAY
        assert node.optional is True
        assert node.min_length == 1
        assert node.max_length == 4
        assert node.elements.type is NodeType.STRING
        assert node.elements.length == 2

    def test_fields_and_keys(self):
        node = compile_node({
            "type": "object",
            "keys": {
                "pair": {"type": "array", "fields": [
                    {"name": "a", "type": "uint"},
                    {"name": "b", "type": "struct", "struct": "x"},
                ]},
            },
        })
        pair = node.keys["pair"]
        assert [f.name for f in pair.fields] == ["a", "b"]
        assert list(iter_struct_refs(node)) == ["x"]

    @pytest.mark.parametrize("raw,message", [
        ("uint", "must be an object"),
        ({"type": "uint", "size": 3}, "unknown attributes"),
        ({"type": "bigint"}, "unknown type"),
        ({}, "unknown type"),
        ({"type": "uint", "optional": "yes"}, "'optional' must be a boolean"),
        ({"type": "string", "length": -1}, "non-negative integer"),
        ({"type": "string", "maxLength": True}, "non-negative integer"),
        ({"type": "array", "fields": [{"type": "uint"}]}, "tuple field needs a name"),
        ({"type": "struct"}, "needs a 'struct' name"),
    ])
    def test_malformed(self, raw, message):
        """Test malformed entries are rejected with the offending path."""
        with pytest.raises(SchemaConfigError, match=message):
            compile_node(raw, "m.k")


class TestLoaders:
    """Tests for the table loaders."""

    def test_method_table(self):
        methods = load_method_schemas({"ping": {}, "echo": {"text": {"type": "string"}}})
        assert dict(methods["ping"]) == {}
        assert methods["echo"]["text"].type is NodeType.STRING

    def test_method_table_must_be_object(self):
        with pytest.raises(SchemaConfigError):
            load_method_schemas([])
        with pytest.raises(SchemaConfigError, match="echo"):
            load_method_schemas({"echo": []})

    def test_event_id_stripped(self):
        events, structs = load_event_specs({"events": {"pong": {"id": 7, "type": "uint"}}})
        assert events["pong"].id == 7
        assert events["pong"].schema.type is NodeType.UINT
        assert dict(structs) == {}

    def test_duplicate_event_id(self):
        with pytest.raises(SchemaConfigError, match="already used"):
            load_event_specs({"events": {
                "a": {"id": 1, "type": "uint"},
                "b": {"id": 1, "type": "string"},
            }})

    def test_missing_event_id(self):
        with pytest.raises(SchemaConfigError, match="'id' must be an integer"):
            load_event_specs({"events": {"a": {"type": "uint"}}})

    def test_undefined_struct(self):
        with pytest.raises(SchemaConfigError, match="undefined struct 'order'"):
            load_event_specs({"events": {"a": {"id": 1, "type": "struct", "struct": "order"}}})

    def test_undefined_struct_inside_struct(self):
        with pytest.raises(SchemaConfigError, match="structs.outer"):
            load_event_specs({
                "events": {},
                "structs": {"outer": {"type": "struct", "struct": "inner"}},
            })


class TestPackagedTables:
    """Tests for the tables shipped with the package."""

    def test_event_names_invert_ids(self):
        assert len(EVENT_NAMES) == len(SERVER_EVENTS)
        for name, spec in SERVER_EVENTS.items():
            assert EVENT_NAMES[spec.id] == name

    def test_known_events(self):
        assert SERVER_EVENTS["config"].id == 1
        assert SERVER_EVENTS["listed"].id == 2
        assert SERVER_EVENTS["error"].schema.type is NodeType.STRING

    def test_struct_refs_resolve(self):
        for spec in SERVER_EVENTS.values():
            for ref in iter_struct_refs(spec.schema):
                assert ref in SERVER_STRUCTS

    def test_place_order_params(self):
        schema = CLIENT_METHODS["placeOrder"]
        assert schema["sellToken"].length == 42
        assert schema["buyAmount"].type is NodeType.UINT_STRING
        assert schema["signature"].optional

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            CLIENT_METHODS["placeOrder"] = {}
