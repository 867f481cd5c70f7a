"""
Storage key layout and byte codecs.

Persistent engine state lives in an external key-value store. Every key
starts with a one-byte KeyPrefix so that nonces, balances, code and storage
slots of the same address can never collide, followed by the 20-byte
address and, for storage slots, the 32-byte slot:

    address key:  prefix(1) || address(20)                 = 21 bytes
    storage key:  0x04(1)   || address(20) || slot(32)     = 53 bytes

Keys of one kind sort by their trailing bytes, so the store can range-scan
all slots of an address by prefix. These layouts are consensus-critical:
independent implementations must produce identical bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from evm_engine.core.constants import (
    ADDRESS_KEY_LENGTH,
    ADDRESS_LENGTH,
    HEX_ALPHABET,
    MAX_LOG_TOPICS,
    STORAGE_KEY_LENGTH,
    U256_MAX,
    WORD_LENGTH,
)
from evm_engine.core.engine_exceptions import EncodingError, LogEncodingError


class KeyPrefix(IntEnum):
    """Namespace byte for keys in the external store [CONSENSUS]."""

    CONFIG = 0x00
    NONCE = 0x01
    BALANCE = 0x02
    CODE = 0x03
    STORAGE = 0x04


def _check_width(value: bytes, width: int, what: str) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise EncodingError(f"{what} must be bytes-like, got {type(value).__name__}")
    value = bytes(value)
    if len(value) != width:
        raise EncodingError(
            f"{what} must be exactly {width} bytes (got {len(value)})",
            details={"expected": width, "actual": len(value)},
        )
    return value


def address_key(prefix: KeyPrefix, address: bytes) -> bytes:
    """Build the 21-byte key ``prefix || address``."""
    if isinstance(prefix, bool):
        raise EncodingError(f"key prefix must be a KeyPrefix, got {prefix!r}")
    try:
        prefix = KeyPrefix(prefix)
    except ValueError as exc:
        raise EncodingError(f"unknown key prefix {prefix!r}") from exc
    return bytes([prefix]) + _check_width(address, ADDRESS_LENGTH, "address")


def storage_key(address: bytes, slot: bytes) -> bytes:
    """Build the 53-byte key ``STORAGE || address || slot``."""
    return address_key(KeyPrefix.STORAGE, address) + _check_width(slot, WORD_LENGTH, "storage slot")


def parse_key(key: bytes) -> Tuple[KeyPrefix, bytes, Optional[bytes]]:
    """
    Split a store key back into (prefix, address, slot).

    ``slot`` is None for 21-byte address keys. A 21-byte STORAGE key is the
    range-scan prefix covering every slot of its address.

    Raises:
        EncodingError: If the prefix is unknown or the length does not match it
    """
    key = bytes(key)
    if not key:
        raise EncodingError("empty key")
    try:
        prefix = KeyPrefix(key[0])
    except ValueError as exc:
        raise EncodingError(f"unknown key prefix 0x{key[0]:02x}") from exc

    if prefix is KeyPrefix.STORAGE:
        expected: Tuple[int, ...] = (ADDRESS_KEY_LENGTH, STORAGE_KEY_LENGTH)
    else:
        expected = (ADDRESS_KEY_LENGTH,)
    if len(key) not in expected:
        raise EncodingError(
            f"{prefix.name} key must be {' or '.join(map(str, expected))} bytes (got {len(key)})",
            details={"prefix": prefix.name, "expected": list(expected), "actual": len(key)},
        )
    address = key[1:ADDRESS_KEY_LENGTH]
    slot = key[ADDRESS_KEY_LENGTH:] or None
    return prefix, address, slot


def u256_to_bytes(value: int) -> bytes:
    """Encode an unsigned 256-bit integer as 32 big-endian bytes."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"u256 value must be an int, got {type(value).__name__}")
    if not 0 <= value <= U256_MAX:
        raise EncodingError("u256 value out of range", details={"value": str(value)})
    return value.to_bytes(WORD_LENGTH, "big")


def bytes_to_u256(data: bytes) -> int:
    """Decode 32 big-endian bytes into an unsigned 256-bit integer."""
    return int.from_bytes(_check_width(data, WORD_LENGTH, "u256"), "big")


def log_to_bytes(topics: Sequence[bytes], data: bytes) -> bytes:
    """
    Serialize an event log as ``count(1) || topic_0(32) || ... || data``.

    Raises:
        LogEncodingError: More than 255 topics, or a topic that is not 32 bytes
    """
    if len(topics) > MAX_LOG_TOPICS:
        raise LogEncodingError(
            f"log has {len(topics)} topics; at most {MAX_LOG_TOPICS} fit the count byte",
            details={"topics": len(topics), "max_topics": MAX_LOG_TOPICS},
        )
    parts = [bytes([len(topics)])]
    for index, topic in enumerate(topics):
        try:
            parts.append(_check_width(topic, WORD_LENGTH, f"topic {index}"))
        except EncodingError as exc:
            raise LogEncodingError(exc.message, details=exc.details) from exc
    parts.append(bytes(data))
    return b"".join(parts)


def bytes_to_hex(data: bytes) -> str:
    """Render bytes as lowercase hex, two digits per byte, no prefix."""
    return "".join(HEX_ALPHABET[b >> 4] + HEX_ALPHABET[b & 0x0F] for b in bytes(data))


def hex_to_bytes(text: str) -> bytes:
    """Parse hex produced by bytes_to_hex (an optional ``0x`` prefix is accepted)."""
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if len(text) % 2 or any(c not in "0123456789abcdefABCDEF" for c in text):
        raise EncodingError("invalid hex string")
    return bytes.fromhex(text)


@dataclass
class Log:
    """An EVM event log: emitting address, indexed topics and payload."""

    address: bytes
    topics: List[bytes] = field(default_factory=list)
    data: bytes = b""

    def __post_init__(self) -> None:
        self.address = _check_width(self.address, ADDRESS_LENGTH, "log address")

    def to_bytes(self) -> bytes:
        return log_to_bytes(self.topics, self.data)
