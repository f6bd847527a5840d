"""Tests for codec/decoder.py - schema-driven packet decoding."""

from decimal import Decimal
from types import MappingProxyType

import orjson
import pytest

from dexws.codec import PacketDecoder, decode_packet, is_set, parse_frame
from dexws.errors import DecodeError
from dexws.schemas import EVENT_NAMES, SERVER_EVENTS, SERVER_STRUCTS
from dexws.types import NodeType, SchemaNode


def _node(node_type, **kwargs):
    return SchemaNode(type=node_type, **kwargs)


def _field(name, node_type, **kwargs):
    return SchemaNode(type=node_type, name=name, **kwargs)


@pytest.fixture
def decoder():
    """Decoder over the packaged struct dictionary."""
    return PacketDecoder(SERVER_STRUCTS)


class TestScalars:
    """Tests for scalar and number tags."""

    @pytest.mark.parametrize("node_type,value", [
        (NodeType.UINT, 5),
        (NodeType.INT, -5),
        (NodeType.FLOAT, 1.25),
        (NodeType.STRING, "abc"),
        (NodeType.HEX_STRING, "0xff"),
        (NodeType.BOOL, False),
    ])
    def test_passthrough(self, decoder, node_type, value):
        """Test scalar values pass through unchanged."""
        assert decoder.decode(_node(node_type), value) == value

    @pytest.mark.parametrize("value,expected", [(1, True), (0, False), ("", False), ("x", True)])
    def test_binbool(self, decoder, value, expected):
        assert decoder.decode(_node(NodeType.BINBOOL), value) is expected

    def test_big_numbers_are_decimal(self, decoder):
        """Test big-number strings keep full precision."""
        value = decoder.decode(_node(NodeType.UINT_STRING), "123456789012345678901234567890")
        assert isinstance(value, Decimal)
        assert value == Decimal("123456789012345678901234567890")

        rate = decoder.decode(_node(NodeType.FLOAT_STRING), "0.000000000000000001")
        assert rate == Decimal("1E-18")

        assert decoder.decode(_node(NodeType.INT_STRING), -7) == Decimal(-7)

    def test_bad_number(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(_node(NodeType.FLOAT_STRING), "1.2.3")
        with pytest.raises(DecodeError):
            decoder.decode(_node(NodeType.UINT_STRING), [1])

    def test_null(self, decoder):
        """Test null is allowed only for optional nodes."""
        assert decoder.decode(_node(NodeType.UINT, optional=True), None) is None
        with pytest.raises(DecodeError, match="invalid format spec"):
            decoder.decode(_node(NodeType.UINT), None)


class TestArrays:
    """Tests for tuple and homogeneous arrays."""

    @pytest.fixture
    def tuple_node(self):
        return _node(NodeType.ARRAY, fields=(
            _field("rate", NodeType.FLOAT_STRING),
            _field("amount", NodeType.UINT_STRING),
            _field("orders", NodeType.UINT),
        ))

    def test_tuple_to_named_fields(self, decoder, tuple_node):
        parsed = decoder.decode(tuple_node, ["0.003", "1000", 2])
        assert parsed == {"rate": Decimal("0.003"), "amount": Decimal(1000), "orders": 2}

    @pytest.mark.parametrize("value", [["0.003", "1000"], ["0.003", "1000", 2, 9], {"rate": "1"}])
    def test_tuple_length_must_match(self, decoder, tuple_node, value):
        with pytest.raises(DecodeError, match="tuple of 3 fields"):
            decoder.decode(tuple_node, value)

    def test_tuple_optional_field_null(self, decoder):
        node = _node(NodeType.ARRAY, fields=(
            _field("id", NodeType.UINT),
            _field("clientId", NodeType.STRING, optional=True),
        ))
        assert decoder.decode(node, [1, None]) == {"id": 1, "clientId": None}

    def test_elements_preserve_order(self, decoder):
        node = _node(NodeType.ARRAY, elements=_node(NodeType.UINT_STRING))
        assert decoder.decode(node, ["3", "1", "2"]) == [Decimal(3), Decimal(1), Decimal(2)]
        assert decoder.decode(node, []) == []

    def test_array_without_children(self, decoder):
        with pytest.raises(DecodeError, match="invalid format spec"):
            decoder.decode(_node(NodeType.ARRAY), [1])


class TestObjects:
    """Tests for keyed and arbitrary-key objects."""

    @pytest.fixture
    def keyed(self):
        return _node(NodeType.OBJECT, keys=MappingProxyType({
            "address": _node(NodeType.HEX_STRING),
            "delegate": _node(NodeType.BINBOOL, optional=True),
        }))

    def test_keys_decoded(self, decoder, keyed):
        assert decoder.decode(keyed, {"address": "0xab", "delegate": 1}) == {
            "address": "0xab",
            "delegate": True,
        }

    def test_absent_optional_key_is_omitted(self, decoder, keyed):
        """Test absent optional keys are left out, not set to None."""
        parsed = decoder.decode(keyed, {"address": "0xab"})
        assert parsed == {"address": "0xab"}
        assert "delegate" not in parsed

    def test_falsy_optional_key_is_omitted(self, decoder, keyed):
        parsed = decoder.decode(keyed, {"address": "0xab", "delegate": 0})
        assert "delegate" not in parsed

    def test_missing_required_key(self, decoder, keyed):
        with pytest.raises(DecodeError, match="missing key 'address'"):
            decoder.decode(keyed, {"delegate": 1})

    def test_undeclared_keys_dropped(self, decoder, keyed):
        assert decoder.decode(keyed, {"address": "0xab", "extra": 1}) == {"address": "0xab"}

    def test_elements_keep_all_keys(self, decoder):
        node = _node(NodeType.OBJECT, elements=_node(NodeType.UINT_STRING))
        assert decoder.decode(node, {"ETH": "1", "ENG": "2"}) == {
            "ETH": Decimal(1),
            "ENG": Decimal(2),
        }

    def test_object_requires_mapping(self, decoder, keyed):
        with pytest.raises(DecodeError, match="expected an object"):
            decoder.decode(keyed, ["0xab"])

    def test_is_set(self):
        """Test JSON-falsy values are unset and empty containers are set."""
        assert not is_set(None)
        assert not is_set(False)
        assert not is_set(0)
        assert not is_set("")
        assert is_set([])
        assert is_set({})
        assert is_set("0")


class TestStructs:
    """Tests for struct references and the depth guard."""

    def test_struct_resolved(self, decoder):
        node = _node(NodeType.STRUCT, struct="balance")
        assert decoder.decode(node, ["10", "5"]) == {
            "available": Decimal(10),
            "locked": Decimal(5),
        }

    def test_unknown_struct(self, decoder):
        with pytest.raises(DecodeError, match="unknown struct"):
            decoder.decode(_node(NodeType.STRUCT, struct="nope"), [1])

    def test_recursive_struct(self):
        """Test a self-referencing struct decodes finite data."""
        tree = _node(NodeType.OBJECT, keys=MappingProxyType({
            "value": _node(NodeType.UINT),
            "children": _node(
                NodeType.ARRAY,
                optional=True,
                elements=_node(NodeType.STRUCT, struct="tree"),
            ),
        }))
        decoder = PacketDecoder({"tree": tree})
        parsed = decoder.decode(
            _node(NodeType.STRUCT, struct="tree"),
            {"value": 1, "children": [{"value": 2}, {"value": 3, "children": []}]},
        )
        assert parsed == {
            "value": 1,
            "children": [{"value": 2}, {"value": 3, "children": []}],
        }

    def test_cyclic_struct_hits_depth_limit(self):
        """Test a struct that only references itself cannot recurse forever."""
        decoder = PacketDecoder({"loop": _node(NodeType.STRUCT, struct="loop")}, max_depth=10)
        with pytest.raises(DecodeError, match="exceeds 10 levels"):
            decoder.decode(_node(NodeType.STRUCT, struct="loop"), 1)


class TestProperties:
    """Round trip and idempotence over the packaged order struct."""

    ORDER = {
        "id": 17,
        "market": "ENGETH",
        "sellToken": "0x0000000000000000000000000000000000000000",
        "sellAmount": Decimal("90000000000000000"),
        "buyToken": "0xf0ee6b27b759c9893ce4f094b49ad28fd15a23e4",
        "buyAmount": Decimal("30000000000000000000"),
        "filled": Decimal("0"),
        "status": "open",
        "timestamp": 1700000000000,
        "clientId": "abc",
    }

    def _encode(self, record):
        fields = SERVER_STRUCTS["order"].fields
        return [
            str(record[f.name]) if isinstance(record[f.name], Decimal) else record[f.name]
            for f in fields
        ]

    def test_round_trip(self, decoder):
        """Test record -> positional tuple -> record reproduces the record."""
        wire = orjson.loads(orjson.dumps(self._encode(self.ORDER)))
        parsed = decoder.decode(_node(NodeType.STRUCT, struct="order"), wire)
        assert parsed == self.ORDER

    def test_idempotent(self, decoder):
        wire = self._encode(self.ORDER)
        node = SERVER_EVENTS["orders"].schema
        assert decoder.decode(node, [wire, wire]) == decoder.decode(node, [wire, wire])


class TestPackets:
    """Tests for decode_packet and parse_frame."""

    def test_decode_packet(self, decoder, listed_message):
        packet = decode_packet(
            [0, SERVER_EVENTS["listed"].id, listed_message, 4],
            SERVER_EVENTS, EVENT_NAMES, decoder,
        )
        assert packet.event == "listed"
        assert packet.channel == 0
        assert packet.request_id == 4
        assert packet.message is listed_message
        assert packet.parsed["tokens"]["USDC"] == {
            "contract": listed_message["tokens"]["USDC"]["contract"],
            "decimals": 6,
        }
        assert packet.parsed["markets"]["ETHUSDC"]["tickSize"] == Decimal("0.01")

    def test_decode_packet_without_rid(self, decoder):
        packet = decode_packet(["ENGETH", SERVER_EVENTS["orderCanceled"].id, 12], SERVER_EVENTS, EVENT_NAMES, decoder)
        assert packet.request_id is None
        assert packet.parsed == 12

    def test_unknown_event_id(self, decoder):
        with pytest.raises(DecodeError, match="unknown event id"):
            decode_packet([0, 999, None], SERVER_EVENTS, EVENT_NAMES, decoder)

    @pytest.mark.parametrize("item", [[0, 1], "abc", [0, 1, {}, 2, 3]])
    def test_malformed_packet(self, decoder, item):
        with pytest.raises(DecodeError, match="malformed packet"):
            decode_packet(item, SERVER_EVENTS, EVENT_NAMES, decoder)

    @pytest.mark.parametrize("event_id", [[1], {"id": 1}, True, "2", 2.0])
    def test_event_id_must_be_int(self, decoder, event_id):
        """Test non-integer event ids fail as decode errors, hashable or not."""
        with pytest.raises(DecodeError, match="unknown event id"):
            decode_packet(["0", event_id, {}], SERVER_EVENTS, EVENT_NAMES, decoder)

    def test_listed_with_zero_decimals(self, decoder, listed_message):
        """Test a token with 0 decimals does not reject the whole listing."""
        listed_message["tokens"]["PTS"] = {
            "contract": "0x1111111111111111111111111111111111111111",
            "decimals": 0,
        }
        packet = decode_packet(
            [0, SERVER_EVENTS["listed"].id, listed_message],
            SERVER_EVENTS, EVENT_NAMES, decoder,
        )
        assert packet.parsed["tokens"]["PTS"] == {
            "contract": "0x1111111111111111111111111111111111111111",
        }
        assert packet.parsed["tokens"]["ENG"]["decimals"] == 18

    def test_parse_frame(self):
        assert parse_frame(b'[[0, 3, "boom", 1]]') == [[0, 3, "boom", 1]]
        with pytest.raises(DecodeError, match="not valid JSON"):
            parse_frame(b"[[0, 3,")
        with pytest.raises(DecodeError, match="array of packets"):
            parse_frame(b'{"a": 1}')
