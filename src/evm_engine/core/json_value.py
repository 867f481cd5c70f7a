"""
JSON value tree and typed field extraction.

Contract call arguments arrive as JSON and are decoded into a JsonValue tree.
Callers then pull typed fields out of the top-level object with the
accessors below; each failure raises a JsonError whose kind tells "missing"
apart from "wrong type" apart from "out of range".

128-bit amounts must be sent as decimal strings. JSON numbers are rejected
for them because a float cannot hold 128 bits without losing precision.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from evm_engine.core.constants import (
    I64_MAX,
    I64_MIN,
    I128_MAX,
    I128_MIN,
    U8_MAX,
    U64_MAX,
    U128_MAX,
    U128_MAX_DIGITS,
)
from evm_engine.core.engine_exceptions import JsonError, JsonErrorKind


class JsonKind(Enum):
    NULL = "null"
    F64 = "f64"
    I64 = "i64"
    U64 = "u64"
    BOOL = "bool"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


_NUMBER_KINDS = frozenset({JsonKind.F64, JsonKind.I64, JsonKind.U64})

_UNSIGNED_DECIMAL = re.compile(r"\+?[0-9]+")
_SIGNED_DECIMAL = re.compile(r"[+-]?[0-9]+")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, repr=False)
class JsonValue:
    """
    A decoded JSON document node.

    Exactly one of eight kinds. Objects keep their members sorted by key so
    two documents with the same members compare equal and render identically
    whatever order the source used. Equality is structural: ``U64(1)``,
    ``I64(1)`` and ``F64(1.0)`` are three different values.

    Arrays hold a tuple and objects a read-only mapping, so a decoded tree
    cannot be altered after construction and every node is hashable.
    """

    kind: JsonKind
    value: Any = None

    def __post_init__(self) -> None:
        kind, value = self.kind, self.value
        if kind is JsonKind.NULL:
            if value is not None:
                raise ValueError("null carries no value")
        elif kind is JsonKind.BOOL:
            if not isinstance(value, bool):
                raise TypeError(f"bool value expected, got {type(value).__name__}")
        elif kind is JsonKind.U64:
            if not _is_int(value) or not 0 <= value <= U64_MAX:
                raise ValueError(f"u64 value out of range: {value!r}")
        elif kind is JsonKind.I64:
            if not _is_int(value) or not I64_MIN <= value <= I64_MAX:
                raise ValueError(f"i64 value out of range: {value!r}")
        elif kind is JsonKind.F64:
            if not isinstance(value, float):
                raise TypeError(f"float value expected, got {type(value).__name__}")
        elif kind is JsonKind.STRING:
            if not isinstance(value, str):
                raise TypeError(f"str value expected, got {type(value).__name__}")
        elif kind is JsonKind.ARRAY:
            items = tuple(value)
            if not all(isinstance(item, JsonValue) for item in items):
                raise TypeError("array elements must be JsonValue")
            object.__setattr__(self, "value", items)
        elif kind is JsonKind.OBJECT:
            members = dict(value)
            for key, member in members.items():
                if not isinstance(key, str) or not isinstance(member, JsonValue):
                    raise TypeError("object members must map str to JsonValue")
            object.__setattr__(self, "value", MappingProxyType(dict(sorted(members.items()))))
        else:
            raise TypeError(f"unknown JSON kind: {kind!r}")

    # ==================== Construction ====================

    @classmethod
    def null(cls) -> JsonValue:
        return cls(JsonKind.NULL)

    @classmethod
    def from_f64(cls, value: float) -> JsonValue:
        return cls(JsonKind.F64, float(value))

    @classmethod
    def from_i64(cls, value: int) -> JsonValue:
        return cls(JsonKind.I64, value)

    @classmethod
    def from_u64(cls, value: int) -> JsonValue:
        return cls(JsonKind.U64, value)

    @classmethod
    def from_bool(cls, value: bool) -> JsonValue:
        return cls(JsonKind.BOOL, value)

    @classmethod
    def from_string(cls, value: str) -> JsonValue:
        return cls(JsonKind.STRING, value)

    @classmethod
    def from_array(cls, items: Iterable[JsonValue]) -> JsonValue:
        return cls(JsonKind.ARRAY, items)

    @classmethod
    def from_object(cls, members: Mapping[str, JsonValue]) -> JsonValue:
        return cls(JsonKind.OBJECT, members)

    @classmethod
    def from_native(cls, obj: Any) -> JsonValue:
        """
        Convert plain Python data into a JsonValue.

        Integers become U64 when non-negative and in range, else I64; an
        integer outside both ranges raises ValueError.
        """
        if obj is None:
            return cls.null()
        if isinstance(obj, bool):
            return cls.from_bool(obj)
        if isinstance(obj, int):
            if 0 <= obj <= U64_MAX:
                return cls.from_u64(obj)
            return cls.from_i64(obj)
        if isinstance(obj, float):
            return cls.from_f64(obj)
        if isinstance(obj, str):
            return cls.from_string(obj)
        if isinstance(obj, (list, tuple)):
            return cls.from_array([cls.from_native(item) for item in obj])
        if isinstance(obj, dict):
            return cls.from_object({key: cls.from_native(member) for key, member in obj.items()})
        raise TypeError(f"cannot convert {type(obj).__name__} to a JSON value")

    # ==================== Field Extraction ====================

    def _members(self) -> Mapping[str, JsonValue]:
        if self.kind is not JsonKind.OBJECT:
            raise JsonError(JsonErrorKind.NOT_JSON_TYPE, details={"kind": self.kind.value})
        return self.value

    def _lookup(self, key: str) -> JsonValue:
        member = self._members().get(key)
        if member is None:
            raise JsonError(JsonErrorKind.MISSING_VALUE, details={"key": key})
        return member

    def get(self, key: str) -> Optional[JsonValue]:
        """Return the member stored under ``key``, or None when it is absent."""
        return self._members().get(key)

    def string(self, key: str) -> str:
        member = self._lookup(key)
        if member.kind is not JsonKind.STRING:
            raise JsonError(JsonErrorKind.INVALID_STRING, details={"key": key})
        return member.value

    def u64(self, key: str) -> int:
        member = self._lookup(key)
        if member.kind is not JsonKind.U64:
            raise JsonError(JsonErrorKind.INVALID_U64, details={"key": key})
        return member.value

    def u128(self, key: str) -> int:
        """
        Extract an unsigned 128-bit integer sent as a decimal string.

        Raises:
            JsonError: EXPECTED_STRING_GOT_NUMBER for JSON numbers,
                OUT_OF_RANGE(U128) for signed values that parse but do not
                fit (e.g. "-1"), INVALID_U128 otherwise
        """
        return json_to_u128(self._lookup(key))

    def u8(self, key: str) -> int:
        return JsonValue.parse_u8(self._lookup(key))

    def array(self, key: str) -> List[JsonValue]:
        member = self._lookup(key)
        if member.kind is not JsonKind.ARRAY:
            raise JsonError(JsonErrorKind.INVALID_ARRAY, details={"key": key})
        return list(member.value)

    @staticmethod
    def parse_u8(value: JsonValue) -> int:
        if value.kind is not JsonKind.U64:
            raise JsonError(JsonErrorKind.INVALID_U8)
        if value.value > U8_MAX:
            raise JsonError.out_of_range_u8()
        return value.value

    # Defined last: inside the class body this name shadows the builtin.
    def bool(self, key: str) -> bool:
        member = self._lookup(key)
        if member.kind is not JsonKind.BOOL:
            raise JsonError(JsonErrorKind.INVALID_BOOL, details={"key": key})
        return member.value

    def __hash__(self) -> int:
        if self.kind is JsonKind.OBJECT:
            return hash((self.kind, tuple(self.value.items())))
        return hash((self.kind, self.value))

    # ==================== Rendering ====================

    def __repr__(self) -> str:
        return _render(self)

    __str__ = __repr__


def _parse_decimal(text: str, pattern: re.Pattern, low: int, high: int) -> Optional[int]:
    if not pattern.fullmatch(text):
        return None
    negative = text[0] == "-"
    digits = text.lstrip("+-").lstrip("0") or "0"
    # Anything longer cannot fit in 128 bits; also keeps int() off huge inputs.
    if len(digits) > U128_MAX_DIGITS:
        return None
    number = -int(digits) if negative else int(digits)
    if low <= number <= high:
        return number
    return None


def json_to_u128(value: JsonValue) -> int:
    """Convert a single JSON value to an unsigned 128-bit integer."""
    if value.kind in _NUMBER_KINDS:
        raise JsonError(JsonErrorKind.EXPECTED_STRING_GOT_NUMBER)
    if value.kind is not JsonKind.STRING:
        raise JsonError(JsonErrorKind.INVALID_U128)

    text = value.value
    unsigned = _parse_decimal(text, _UNSIGNED_DECIMAL, 0, U128_MAX)
    if unsigned is not None:
        return unsigned
    if _parse_decimal(text, _SIGNED_DECIMAL, I128_MIN, I128_MAX) is not None:
        raise JsonError.out_of_range_u128()
    raise JsonError(JsonErrorKind.INVALID_U128)


def _render_f64(number: float) -> str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if number.is_integer():
        return ("-" if math.copysign(1.0, number) < 0 else "") + str(abs(int(number)))
    return repr(number)


def _render(node: JsonValue) -> str:
    kind = node.kind
    if kind is JsonKind.NULL:
        return "null"
    if kind is JsonKind.BOOL:
        return "true" if node.value else "false"
    if kind is JsonKind.F64:
        return _render_f64(node.value)
    if kind in (JsonKind.I64, JsonKind.U64):
        return str(node.value)
    if kind is JsonKind.STRING:
        return f'"{node.value}"'
    if kind is JsonKind.ARRAY:
        return "[" + ", ".join(_render(item) for item in node.value) + "]"
    return "{" + ", ".join(f'"{key}": {_render(member)}' for key, member in node.value.items()) + "}"


class JsonValueBuilder:
    """Builds JsonValue trees for the grammar scanner (implements IValueBuilder)."""

    def new_array(self) -> List[JsonValue]:
        return []

    def push(self, array: List[JsonValue], value: JsonValue) -> None:
        array.append(value)

    def finish_array(self, array: List[JsonValue]) -> JsonValue:
        return JsonValue.from_array(array)

    def new_object(self) -> Dict[str, JsonValue]:
        return {}

    def insert(self, obj: Dict[str, JsonValue], key: str, value: JsonValue) -> None:
        obj[key] = value

    def finish_object(self, obj: Dict[str, JsonValue]) -> JsonValue:
        return JsonValue.from_object(obj)

    def null(self) -> JsonValue:
        return JsonValue.null()

    def from_bool(self, value: bool) -> JsonValue:
        return JsonValue.from_bool(value)

    def from_u64(self, value: int) -> JsonValue:
        return JsonValue.from_u64(value)

    def from_i64(self, value: int) -> JsonValue:
        return JsonValue.from_i64(value)

    def from_f64(self, value: float) -> JsonValue:
        return JsonValue.from_f64(value)

    def from_string(self, value: str) -> JsonValue:
        return JsonValue.from_string(value)
