"""
Account identifier to EVM address derivation.

Host accounts are named by opaque identifiers (e.g. "alice.near"). The
engine maps them into the 160-bit address space by hashing:

    address = keccak256(identifier)[12:32]

Derivation is total: any byte string is a valid identifier.
account_to_address() additionally enforces the account-id syntax before
deriving, for callers that accept identifiers from untrusted input.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from evm_engine.core.constants import (
    DERIVED_ADDRESS_OFFSET,
    MAX_ACCOUNT_ID_LENGTH,
    MIN_ACCOUNT_ID_LENGTH,
)
from evm_engine.core.engine_exceptions import ParseError, ParseErrorKind
from evm_engine.core.hashing import keccak256
from evm_engine.core.protocols import IHashBackend

# Dot-separated parts; each part is runs of [a-z0-9] joined by a single '-' or '_'
_ACCOUNT_ID_PATTERN = re.compile(r"(?:[a-z0-9]+[-_])*[a-z0-9]+(?:\.(?:[a-z0-9]+[-_])*[a-z0-9]+)*")


def derive_address(identifier: bytes, backend: Optional[IHashBackend] = None) -> bytes:
    """Derive the 20-byte address of an account identifier."""
    return keccak256(bytes(identifier), backend)[DERIVED_ADDRESS_OFFSET:]


def is_valid_account_id(account_id: Union[str, bytes]) -> bool:
    if isinstance(account_id, (bytes, bytearray)):
        try:
            account_id = bytes(account_id).decode("ascii")
        except UnicodeDecodeError:
            return False
    if not MIN_ACCOUNT_ID_LENGTH <= len(account_id) <= MAX_ACCOUNT_ID_LENGTH:
        return False
    return _ACCOUNT_ID_PATTERN.fullmatch(account_id) is not None


def validate_account_id(account_id: Union[str, bytes]) -> str:
    """
    Validate an account identifier.

    Returns:
        The identifier as text

    Raises:
        ParseError: INVALID_ACCOUNT_ID if the identifier is malformed
    """
    if not is_valid_account_id(account_id):
        raise ParseError(ParseErrorKind.INVALID_ACCOUNT_ID, details={"account_id": repr(account_id)})
    if isinstance(account_id, (bytes, bytearray)):
        return bytes(account_id).decode("ascii")
    return account_id


def account_to_address(account_id: Union[str, bytes], backend: Optional[IHashBackend] = None) -> bytes:
    """Validate an account identifier, then derive its address."""
    return derive_address(validate_account_id(account_id).encode("ascii"), backend)
