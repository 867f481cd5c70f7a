"""
EVM Engine - Core Protocol Interfaces

Structural interfaces for the two pluggable seams of the engine:

- IValueBuilder: the construction primitives a grammar scanner drives to
  build a document. The scanner is written once against this interface, so
  the same grammar engine can produce different value representations.
- IHashBackend: the Keccak-256 primitive. It is either computed locally or
  supplied by the host environment; both must be bit-exact.

Using Protocol (from typing) keeps these contracts free of inheritance and
lets tests substitute recording or failing implementations.
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

V = TypeVar("V")
A = TypeVar("A")
O = TypeVar("O")


@runtime_checkable
class IValueBuilder(Protocol[V, A, O]):
    """
    Construction primitives for a decoded document.

    ``V`` is the finished value type, ``A`` an array under construction and
    ``O`` an object under construction. Builders must accept every
    well-formed call sequence; rejecting malformed input is the scanner's job.
    """

    def new_array(self) -> A:
        """Start an empty array."""
        ...

    def push(self, array: A, value: V) -> None:
        """Append an element to an array under construction."""
        ...

    def finish_array(self, array: A) -> V:
        """Seal an array into a value."""
        ...

    def new_object(self) -> O:
        """Start an empty object."""
        ...

    def insert(self, obj: O, key: str, value: V) -> None:
        """
        Insert a member into an object under construction.

        A repeated key replaces the earlier member.
        """
        ...

    def finish_object(self, obj: O) -> V:
        """Seal an object into a value."""
        ...

    def null(self) -> V:
        ...

    def from_bool(self, value: bool) -> V:
        ...

    def from_u64(self, value: int) -> V:
        ...

    def from_i64(self, value: int) -> V:
        ...

    def from_f64(self, value: float) -> V:
        ...

    def from_string(self, value: str) -> V:
        ...


@runtime_checkable
class IHashBackend(Protocol):
    """
    Keccak-256 provider.

    Thread Safety: implementations MUST be reentrant; the engine calls them
    from any thread without locking.
    """

    name: str

    def keccak256(self, data: bytes) -> bytes:
        """
        Hash ``data`` with Keccak-256 (the pre-standard SHA-3 padding used by Ethereum).

        Returns:
            Exactly 32 bytes
        """
        ...
