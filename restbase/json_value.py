"""
Dynamic JSON value model.

Request and response payloads have no fixed schema, so they are carried as a
plain tree of None, bool, int, float, str, list and dict (string keys only).
The helpers here tag, parse, serialize, copy and compare such trees.
"""

import json
import math
from enum import Enum
from typing import Any, Dict, List, Union

from .exceptions import ParseError, SerializationError

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


class JsonKind(str, Enum):
    """Variant tag of a JsonValue."""

    NULL = "null"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(value: Any) -> JsonKind:
    """Return the variant of ``value``. Raises TypeError for non-JSON values."""
    if value is None:
        return JsonKind.NULL
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, int):
        return JsonKind.INTEGER
    if isinstance(value, float):
        return JsonKind.FLOAT
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, list):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"{type(value).__name__} is not a JSON value")


def _reject_constant(name: str) -> Any:
    raise ParseError(f"Invalid JSON literal: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    # overflowing literals such as 1e400 would decode to inf
    if not math.isfinite(value):
        raise ParseError(f"Number out of range: {text}")
    return value


def parse_json(text: Union[str, bytes, bytearray]) -> JsonValue:
    """
    Parse wire text into a JsonValue.

    Standard JSON only: NaN, Infinity and -Infinity are rejected, and so are
    numbers too large for a finite float.

    Raises:
        ParseError: if ``text`` is not well-formed JSON.
    """
    try:
        return json.loads(
            text,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError both derive from ValueError
        raise ParseError(f"Malformed JSON: {e}") from e


def dump_json(value: JsonValue) -> str:
    """
    Serialize a JsonValue to compact wire text.

    Raises:
        SerializationError: ``value`` holds NaN, an infinity or a non-JSON type.
    """
    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Payload is not valid JSON: {e}") from e


def deep_clone(value: JsonValue) -> JsonValue:
    """
    Copy a JsonValue so that the result shares no containers with the source.

    Array order is preserved. Raises TypeError on non-JSON values, including
    objects with non-string keys.
    """
    kind = kind_of(value)
    if kind is JsonKind.ARRAY:
        return [deep_clone(item) for item in value]  # type: ignore[union-attr]
    if kind is JsonKind.OBJECT:
        cloned: Dict[str, Any] = {}
        for key, item in value.items():  # type: ignore[union-attr]
            if not isinstance(key, str):
                raise TypeError(f"JSON object keys must be str, got {type(key).__name__}")
            cloned[key] = deep_clone(item)
        return cloned
    return value


def structurally_equal(left: JsonValue, right: JsonValue) -> bool:
    """
    Compare two JsonValues variant by variant.

    Unlike ``==``, ``1``, ``1.0`` and ``True`` are three different values here.
    """
    kind = kind_of(left)
    if kind is not kind_of(right):
        return False
    if kind is JsonKind.ARRAY:
        return len(left) == len(right) and all(  # type: ignore[arg-type]
            structurally_equal(a, b) for a, b in zip(left, right)  # type: ignore[arg-type]
        )
    if kind is JsonKind.OBJECT:
        if left.keys() != right.keys():  # type: ignore[union-attr]
            return False
        return all(
            structurally_equal(item, right[key])  # type: ignore[index]
            for key, item in left.items()  # type: ignore[union-attr]
        )
    return left == right
