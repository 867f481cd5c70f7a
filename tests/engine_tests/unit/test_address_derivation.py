"""
Tests for account identifier validation and address derivation.
"""

import pytest
from eth_utils import keccak as eth_keccak

from evm_engine.core.address_derivation import (
    account_to_address,
    derive_address,
    is_valid_account_id,
    validate_account_id,
)
from evm_engine.core.engine_exceptions import ParseError, ParseErrorKind
from evm_engine.core.hashing import HostKeccakBackend


class TestDeriveAddress:
    def test_empty_identifier(self):
        assert derive_address(b"") == bytes.fromhex("dcc703c0e500b653ca82273b7bfad8045d85a470")

    @pytest.mark.parametrize("identifier", [b"alice.near", b"bob", b"\x00\xff", b"not a valid account!"])
    def test_last_twenty_bytes_of_keccak(self, identifier):
        address = derive_address(identifier)
        assert len(address) == 20
        assert address == eth_keccak(identifier)[12:]

    def test_distinct_identifiers(self):
        assert derive_address(b"alice.near") != derive_address(b"bob.near")

    def test_uses_given_backend(self):
        backend = HostKeccakBackend(lambda data: bytes(range(32)))
        assert derive_address(b"anything", backend) == bytes(range(12, 32))


class TestAccountIds:
    @pytest.mark.parametrize(
        "account_id",
        ["ok", "alice.near", "bob_1.testnet", "a-b.c_d.e", "0x" + "a" * 62, "app.alice.near", "a" * 64],
    )
    def test_valid(self, account_id):
        assert is_valid_account_id(account_id)
        assert validate_account_id(account_id) == account_id

    @pytest.mark.parametrize(
        "account_id",
        [
            "",
            "a",
            "a" * 65,
            "Alice.near",
            "alice..near",
            ".alice",
            "alice.",
            "alice-",
            "-alice",
            "a--b",
            "a_-b",
            "alice near",
            "alice@near",
            "élan.near",
        ],
    )
    def test_invalid(self, account_id):
        assert not is_valid_account_id(account_id)
        with pytest.raises(ParseError) as excinfo:
            validate_account_id(account_id)
        assert excinfo.value.kind is ParseErrorKind.INVALID_ACCOUNT_ID
        assert bytes(excinfo.value) == b"ERR_INVALID_ACCOUNT_ID"

    def test_bytes_identifiers(self):
        assert validate_account_id(b"alice.near") == "alice.near"
        assert not is_valid_account_id(b"\xff\xfe")

    def test_account_to_address(self):
        assert account_to_address("alice.near") == derive_address(b"alice.near")
        assert account_to_address(b"alice.near") == derive_address(b"alice.near")
        with pytest.raises(ParseError):
            account_to_address("Alice")
