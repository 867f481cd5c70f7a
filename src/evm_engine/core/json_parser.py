"""
Recursive-descent JSON scanner.

The scanner recognises the JSON grammar and drives an IValueBuilder to
construct the document, so the same grammar engine serves any value
representation (JsonValue trees for contract arguments, plain Python objects
for tooling).

Input bytes are mapped one-to-one onto code points 0-255; there is no
multi-byte decoding. Every structural character of the grammar is ASCII and
argument values are contract-controlled, so this is sufficient.

Parsing is total: any grammar violation, oversized input or excessive
nesting yields None. The scanner never returns a partial document and never
raises on malformed input.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from evm_engine.core import config
from evm_engine.core.constants import I64_MAX, I64_MIN, U64_MAX, U64_MAX_DIGITS
from evm_engine.core.json_value import JsonValue, JsonValueBuilder
from evm_engine.core.protocols import IValueBuilder

logger = logging.getLogger(__name__)

_WHITESPACE = frozenset(" \t\n\r")
_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_LITERALS = ("true", "false", "null")


class _ScanError(Exception):
    """Internal signal for a grammar violation; never escapes this module."""

    def __init__(self, reason: str, offset: int) -> None:
        super().__init__(reason)
        self.reason = reason
        self.offset = offset


class _Scanner:
    def __init__(self, text: str, builder: IValueBuilder, max_depth: int) -> None:
        self.text = text
        self.pos = 0
        self.builder = builder
        self.max_depth = max_depth

    def fail(self, reason: str) -> None:
        raise _ScanError(reason, self.pos)

    def peek(self) -> str:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ""

    def skip_whitespace(self) -> None:
        text, pos = self.text, self.pos
        while pos < len(text) and text[pos] in _WHITESPACE:
            pos += 1
        self.pos = pos

    def expect(self, char: str) -> None:
        if self.peek() != char:
            self.fail(f"expected {char!r}")
        self.pos += 1

    def document(self) -> Any:
        self.skip_whitespace()
        value = self.value(depth=0)
        self.skip_whitespace()
        if self.pos != len(self.text):
            self.fail("trailing characters after document")
        return value

    def value(self, depth: int) -> Any:
        char = self.peek()
        if char == "{":
            return self.object(depth + 1)
        if char == "[":
            return self.array(depth + 1)
        if char == '"':
            return self.builder.from_string(self.string())
        if char == "-" or char in _DIGITS:
            return self.number()
        if char in ("t", "f", "n"):
            return self.literal()
        self.fail("unexpected character" if char else "unexpected end of input")

    def object(self, depth: int) -> Any:
        if depth > self.max_depth:
            self.fail("nesting too deep")
        self.expect("{")
        obj = self.builder.new_object()
        self.skip_whitespace()
        if self.peek() == "}":
            self.pos += 1
            return self.builder.finish_object(obj)
        while True:
            self.skip_whitespace()
            if self.peek() != '"':
                self.fail("expected object key")
            key = self.string()
            self.skip_whitespace()
            self.expect(":")
            self.skip_whitespace()
            self.builder.insert(obj, key, self.value(depth))
            self.skip_whitespace()
            char = self.peek()
            if char == ",":
                self.pos += 1
                continue
            if char == "}":
                self.pos += 1
                return self.builder.finish_object(obj)
            self.fail("expected ',' or '}'")

    def array(self, depth: int) -> Any:
        if depth > self.max_depth:
            self.fail("nesting too deep")
        self.expect("[")
        array = self.builder.new_array()
        self.skip_whitespace()
        if self.peek() == "]":
            self.pos += 1
            return self.builder.finish_array(array)
        while True:
            self.skip_whitespace()
            self.builder.push(array, self.value(depth))
            self.skip_whitespace()
            char = self.peek()
            if char == ",":
                self.pos += 1
                continue
            if char == "]":
                self.pos += 1
                return self.builder.finish_array(array)
            self.fail("expected ',' or ']'")

    def string(self) -> str:
        self.expect('"')
        text = self.text
        chunks: List[str] = []
        start = self.pos
        while True:
            if self.pos >= len(text):
                self.fail("unterminated string")
            char = text[self.pos]
            if char == '"':
                chunks.append(text[start:self.pos])
                self.pos += 1
                return "".join(chunks)
            if char == "\\":
                chunks.append(text[start:self.pos])
                self.pos += 1
                chunks.append(self.escape())
                start = self.pos
                continue
            if ord(char) < 0x20:
                self.fail("control character in string")
            self.pos += 1

    def escape(self) -> str:
        char = self.peek()
        if char in _SIMPLE_ESCAPES:
            self.pos += 1
            return _SIMPLE_ESCAPES[char]
        if char != "u":
            self.fail("invalid escape")
        self.pos += 1
        unit = self.hex4()
        if 0xDC00 <= unit <= 0xDFFF:
            self.fail("unpaired low surrogate")
        if 0xD800 <= unit <= 0xDBFF:
            if self.text[self.pos:self.pos + 2] != "\\u":
                self.fail("unpaired high surrogate")
            self.pos += 2
            low = self.hex4()
            if not 0xDC00 <= low <= 0xDFFF:
                self.fail("invalid low surrogate")
            return chr(0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00))
        return chr(unit)

    def hex4(self) -> int:
        digits = self.text[self.pos:self.pos + 4]
        if len(digits) != 4 or not all(d in _HEX_DIGITS for d in digits):
            self.fail("invalid unicode escape")
        self.pos += 4
        return int(digits, 16)

    def digits(self) -> None:
        start = self.pos
        text = self.text
        while self.pos < len(text) and text[self.pos] in _DIGITS:
            self.pos += 1
        if self.pos == start:
            self.fail("expected digit")

    def number(self) -> Any:
        start = self.pos
        if self.peek() == "-":
            self.pos += 1
        if self.peek() == "0":
            self.pos += 1
        else:
            self.digits()
        integral = True
        if self.peek() == ".":
            integral = False
            self.pos += 1
            self.digits()
        if self.peek() in ("e", "E"):
            integral = False
            self.pos += 1
            if self.peek() in ("+", "-"):
                self.pos += 1
            self.digits()

        literal = self.text[start:self.pos]
        if integral and len(literal.lstrip("-")) <= U64_MAX_DIGITS:
            number = int(literal)
            if 0 <= number <= U64_MAX:
                return self.builder.from_u64(number)
            if I64_MIN <= number <= I64_MAX:
                return self.builder.from_i64(number)
        return self.builder.from_f64(float(literal))

    def literal(self) -> Any:
        for word in _LITERALS:
            if self.text.startswith(word, self.pos):
                self.pos += len(word)
                if word == "null":
                    return self.builder.null()
                return self.builder.from_bool(word == "true")
        self.fail("invalid literal")


def scan(text: str, builder: IValueBuilder, *, max_depth: Optional[int] = None) -> Optional[Any]:
    """
    Scan a complete JSON document held in ``text`` and build it with ``builder``.

    Args:
        text: Document characters
        builder: Construction primitives for the target representation
        max_depth: Maximum container nesting (defaults to EVM_ENGINE_MAX_JSON_DEPTH)

    Returns:
        The built value, or None if the document is malformed
    """
    depth_limit = config.MAX_JSON_DEPTH if max_depth is None else max_depth
    scanner = _Scanner(text, builder, depth_limit)
    try:
        return scanner.document()
    except _ScanError as exc:
        logger.debug(
            "JSON rejected at offset %d: %s",
            exc.offset,
            exc.reason,
            extra={"event": "json.rejected", "offset": exc.offset, "reason": exc.reason},
        )
        return None
    except RecursionError:
        # max_depth configured above what the interpreter stack allows
        logger.warning(
            "JSON nesting exhausted the interpreter stack (max_depth=%d)",
            depth_limit,
            extra={"event": "json.recursion_limit", "max_depth": depth_limit},
        )
        return None


def _decode_bytes(data: bytes, max_bytes: Optional[int]) -> Optional[str]:
    limit = config.MAX_JSON_BYTES if max_bytes is None else max_bytes
    if len(data) > limit:
        logger.debug(
            "JSON input of %d bytes exceeds limit %d",
            len(data),
            limit,
            extra={"event": "json.too_large", "size": len(data), "limit": limit},
        )
        return None
    # latin-1 maps every byte to the code point of the same value
    return bytes(data).decode("latin-1")


def parse_json(
    data: bytes,
    *,
    max_bytes: Optional[int] = None,
    max_depth: Optional[int] = None,
) -> Optional[JsonValue]:
    """
    Decode raw argument bytes into a JsonValue tree.

    Returns:
        The decoded document, or None on any grammar violation or limit breach
    """
    text = _decode_bytes(data, max_bytes)
    if text is None:
        return None
    return scan(text, JsonValueBuilder(), max_depth=max_depth)


class PlainValueBuilder:
    """Builds plain Python objects (None, bool, int, float, str, list, dict)."""

    def new_array(self) -> List[Any]:
        return []

    def push(self, array: List[Any], value: Any) -> None:
        array.append(value)

    def finish_array(self, array: List[Any]) -> List[Any]:
        return array

    def new_object(self) -> Dict[str, Any]:
        return {}

    def insert(self, obj: Dict[str, Any], key: str, value: Any) -> None:
        obj[key] = value

    def finish_object(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        return dict(sorted(obj.items()))

    def null(self) -> None:
        return None

    def from_bool(self, value: bool) -> bool:
        return value

    def from_u64(self, value: int) -> int:
        return value

    def from_i64(self, value: int) -> int:
        return value

    def from_f64(self, value: float) -> float:
        return value

    def from_string(self, value: str) -> str:
        return value


def parse_plain(
    data: bytes,
    *,
    max_bytes: Optional[int] = None,
    max_depth: Optional[int] = None,
) -> Optional[Any]:
    """
    Decode raw bytes into plain Python objects with the same grammar and limits.

    A document that is literally ``null`` and a rejected document both
    return None; use parse_json when the difference matters.
    """
    text = _decode_bytes(data, max_bytes)
    if text is None:
        return None
    return scan(text, PlainValueBuilder(), max_depth=max_depth)
