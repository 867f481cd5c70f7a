"""
Engine exception hierarchy and diagnostic taxonomy.

Every failure raised by the engine derives from EngineError. Failures that
cross the contract boundary (argument extraction, account parsing, call
record decoding) also carry a fixed diagnostic byte string which is returned
verbatim to the caller. Those strings are part of the external interface and
must not change between releases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

# ==================== Diagnostic Payloads ====================

ERR_NOT_A_JSON_TYPE = b"ERR_NOT_A_JSON_TYPE"
ERR_JSON_MISSING_VALUE = b"ERR_JSON_MISSING_VALUE"
ERR_FAILED_PARSE_U8 = b"ERR_FAILED_PARSE_U8"
ERR_FAILED_PARSE_U64 = b"ERR_FAILED_PARSE_U64"
ERR_FAILED_PARSE_U128 = b"ERR_FAILED_PARSE_U128"
ERR_FAILED_PARSE_BOOL = b"ERR_FAILED_PARSE_BOOL"
ERR_FAILED_PARSE_STRING = b"ERR_FAILED_PARSE_STRING"
ERR_FAILED_PARSE_ARRAY = b"ERR_FAILED_PARSE_ARRAY"
ERR_EXPECTED_STRING_GOT_NUMBER = b"ERR_EXPECTED_STRING_GOT_NUMBER"
ERR_OUT_OF_RANGE_U8 = b"ERR_OUT_OF_RANGE_U8"
ERR_OUT_OF_RANGE_U128 = b"ERR_OUT_OF_RANGE_U128"
ERR_INVALID_ACCOUNT_ID = b"ERR_INVALID_ACCOUNT_ID"
ERR_ARG_PARSE = b"ERR_ARG_PARSE"


class EngineError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Value Extraction Errors ====================


class JsonOutOfRangeError(Enum):
    """Range failures for values that exist but do not fit the target type."""

    OUT_OF_RANGE_U8 = "out_of_range_u8"
    OUT_OF_RANGE_U128 = "out_of_range_u128"

    @property
    def diagnostic(self) -> bytes:
        return _OUT_OF_RANGE_DIAGNOSTICS[self]


class JsonErrorKind(Enum):
    """Closed set of extraction failures."""

    NOT_JSON_TYPE = "not_json_type"
    MISSING_VALUE = "missing_value"
    INVALID_U8 = "invalid_u8"
    INVALID_U64 = "invalid_u64"
    INVALID_U128 = "invalid_u128"
    INVALID_BOOL = "invalid_bool"
    INVALID_STRING = "invalid_string"
    INVALID_ARRAY = "invalid_array"
    EXPECTED_STRING_GOT_NUMBER = "expected_string_got_number"
    OUT_OF_RANGE = "out_of_range"


_OUT_OF_RANGE_DIAGNOSTICS: Dict[JsonOutOfRangeError, bytes] = {
    JsonOutOfRangeError.OUT_OF_RANGE_U8: ERR_OUT_OF_RANGE_U8,
    JsonOutOfRangeError.OUT_OF_RANGE_U128: ERR_OUT_OF_RANGE_U128,
}

# OUT_OF_RANGE resolves through its JsonOutOfRangeError
_JSON_DIAGNOSTICS: Dict[JsonErrorKind, bytes] = {
    JsonErrorKind.NOT_JSON_TYPE: ERR_NOT_A_JSON_TYPE,
    JsonErrorKind.MISSING_VALUE: ERR_JSON_MISSING_VALUE,
    JsonErrorKind.INVALID_U8: ERR_FAILED_PARSE_U8,
    JsonErrorKind.INVALID_U64: ERR_FAILED_PARSE_U64,
    JsonErrorKind.INVALID_U128: ERR_FAILED_PARSE_U128,
    JsonErrorKind.INVALID_BOOL: ERR_FAILED_PARSE_BOOL,
    JsonErrorKind.INVALID_STRING: ERR_FAILED_PARSE_STRING,
    JsonErrorKind.INVALID_ARRAY: ERR_FAILED_PARSE_ARRAY,
    JsonErrorKind.EXPECTED_STRING_GOT_NUMBER: ERR_EXPECTED_STRING_GOT_NUMBER,
}


class JsonError(EngineError):
    """Raised when a typed field cannot be extracted from a JSON value.

    The diagnostic is fixed per kind; ``bytes(exc)`` returns it.
    """

    def __init__(
        self,
        kind: JsonErrorKind,
        out_of_range: Optional[JsonOutOfRangeError] = None,
        **kwargs: Any,
    ) -> None:
        if (kind is JsonErrorKind.OUT_OF_RANGE) != (out_of_range is not None):
            raise ValueError("out_of_range is required for, and only for, JsonErrorKind.OUT_OF_RANGE")
        self.kind = kind
        self.out_of_range = out_of_range
        super().__init__(self.diagnostic.decode("ascii"), **kwargs)

    @classmethod
    def out_of_range_u8(cls) -> "JsonError":
        return cls(JsonErrorKind.OUT_OF_RANGE, JsonOutOfRangeError.OUT_OF_RANGE_U8)

    @classmethod
    def out_of_range_u128(cls) -> "JsonError":
        return cls(JsonErrorKind.OUT_OF_RANGE, JsonOutOfRangeError.OUT_OF_RANGE_U128)

    @property
    def diagnostic(self) -> bytes:
        if self.out_of_range is not None:
            return self.out_of_range.diagnostic
        return _JSON_DIAGNOSTICS[self.kind]

    def __bytes__(self) -> bytes:
        return self.diagnostic


# ==================== Account Identifier Errors ====================


class ParseErrorKind(Enum):
    INVALID_ACCOUNT_ID = "invalid_account_id"


_PARSE_DIAGNOSTICS: Dict[ParseErrorKind, bytes] = {
    ParseErrorKind.INVALID_ACCOUNT_ID: ERR_INVALID_ACCOUNT_ID,
}


class ParseError(EngineError):
    """Raised when an external identifier is syntactically invalid."""

    def __init__(self, kind: ParseErrorKind, **kwargs: Any) -> None:
        self.kind = kind
        super().__init__(self.diagnostic.decode("ascii"), **kwargs)

    @property
    def diagnostic(self) -> bytes:
        return _PARSE_DIAGNOSTICS[self.kind]

    def __bytes__(self) -> bytes:
        return self.diagnostic


# ==================== Encoding Errors ====================


class EncodingError(EngineError):
    """Raised when a value cannot be encoded into its fixed byte layout."""
    pass


class LogEncodingError(EncodingError):
    """Raised when an event log cannot be serialized (too many or malformed topics)."""
    pass


class CallArgsError(EncodingError):
    """Raised when a call argument record cannot be decoded from bytes."""

    diagnostic = ERR_ARG_PARSE

    def __bytes__(self) -> bytes:
        return self.diagnostic


# ==================== Hashing & Configuration Errors ====================


class HashBackendError(EngineError):
    """Raised when a hash backend returns an unusable digest."""
    pass


class ConfigurationError(EngineError):
    """Raised when engine configuration is missing or invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


# ==================== Utility Functions ====================


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, EngineError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, (JsonError, ParseError, CallArgsError)):
        context["diagnostic"] = exc.diagnostic.decode("ascii")

    if isinstance(exc, JsonError):
        context["kind"] = exc.kind.value
        if exc.out_of_range is not None:
            context["out_of_range"] = exc.out_of_range.value

    return context
