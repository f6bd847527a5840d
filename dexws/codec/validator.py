"""
Outbound parameter validation against client method schemas.

Checks run in declaration order and stop at the first violation.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from ..errors import ValidationError
from ..types.schema import MethodSchema, NodeType, SchemaNode

# Key used to tag the method name on outbound packets
METHOD_KEY = "c"

# Wrapper key used to validate array elements with the same rules
_ELEMENT_KEY = "array element"

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def _is_uint(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    if isinstance(value, float):
        return value.is_integer() and value >= 0
    return False


def _is_uint_string(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        return False
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return False
    return number.is_finite() and number == number.to_integral_value() and number >= 0


def _check_type(key: str, node: SchemaNode, value: Any) -> None:
    node_type = node.type

    if node_type is NodeType.UINT:
        if not _is_uint(value):
            raise ValidationError(f"Malformed parameter: {key}, expected an unsigned integer.")

    elif node_type is NodeType.UINT_STRING:
        if not _is_uint_string(value):
            raise ValidationError(
                f"Malformed parameter: {key}, expected an unsigned integer wrapped "
                f"in a string (to prevent rounding errors)."
            )

    elif node_type is NodeType.BOOL:
        if not isinstance(value, bool):
            raise ValidationError(f"Malformed parameter: {key}, expected a boolean.")

    elif node_type is NodeType.STRING:
        if not isinstance(value, str):
            raise ValidationError(f"Malformed parameter: {key}, expected a string.")

    elif node_type is NodeType.HEX_STRING:
        if not isinstance(value, str) or not _HEX_RE.match(value):
            raise ValidationError(
                f"Malformed parameter: {key}, expected a hex string (with leading 0x)."
            )

    elif node_type is NodeType.ARRAY:
        if not isinstance(value, (list, tuple)):
            raise ValidationError(f"Malformed parameter: {key}, expected an array.")
        if node.elements is not None:
            wrapper = {_ELEMENT_KEY: node.elements}
            for element in value:
                validate(wrapper, {_ELEMENT_KEY: element})

    else:
        raise ValidationError(f"Unimplemented type: {node_type.value} in key {key}")


def _check_lengths(key: str, node: SchemaNode, value: Any) -> None:
    if node.length is None and node.min_length is None and node.max_length is None:
        return

    try:
        size = len(value)
    except TypeError:
        raise ValidationError(
            f"Malformed input: {key} has a length constraint but no length."
        ) from None

    if node.length is not None and size != node.length:
        raise ValidationError(
            f"Malformed input: {key} expected a length of {node.length}. "
            f"Input has length {size}."
        )
    if node.min_length is not None and size < node.min_length:
        raise ValidationError(
            f"Malformed input: {key} expected a length of at least {node.min_length}. "
            f"Input has length {size}."
        )
    if node.max_length is not None and size > node.max_length:
        raise ValidationError(
            f"Malformed input: {key} expected a length of at most {node.max_length}. "
            f"Input has length {size}."
        )


def validate(schema: MethodSchema, params: Mapping[str, Any]) -> None:
    """
    Validate outbound parameters against a method schema.

    Args:
        schema: Parameter name -> SchemaNode
        params: Parameters to send (not modified)

    Raises:
        ValidationError: On the first missing, malformed or unexpected parameter
    """
    for key, node in schema.items():
        if key in params and params[key] is not None:
            value = params[key]
            _check_type(key, node, value)
            _check_lengths(key, node, value)
        elif not node.optional:
            raise ValidationError(f"Missing parameter: {key}")

    for key in params:
        if key not in schema and key != METHOD_KEY:
            expected = ", ".join(schema) if schema else "none for this command"
            raise ValidationError(
                f"Unexpected parameter: '{key}'. Expected parameters are: {expected}."
            )
