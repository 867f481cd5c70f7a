"""
Unit tests for storage key layout and byte codecs.

These encodings address persisted state; any change in bytes is a breaking
change for every node, so expected values are spelled out literally.
"""

import pytest

from evm_engine.core.engine_exceptions import EncodingError, LogEncodingError
from evm_engine.core.storage_keys import (
    KeyPrefix,
    Log,
    address_key,
    bytes_to_hex,
    bytes_to_u256,
    hex_to_bytes,
    log_to_bytes,
    parse_key,
    storage_key,
    u256_to_bytes,
)


class TestHex:
    def test_reference_vector(self):
        assert bytes_to_hex(bytes([0, 1, 255, 16])) == "0001ff10"

    def test_empty(self):
        assert bytes_to_hex(b"") == ""

    def test_matches_builtin_hex(self):
        data = bytes(range(256))
        assert bytes_to_hex(data) == data.hex()

    def test_hex_to_bytes(self):
        assert hex_to_bytes("0001ff10") == bytes([0, 1, 255, 16])
        assert hex_to_bytes("0xABcd") == b"\xab\xcd"
        for bad in ("abc", "zz", "0x0g", "00 11"):
            with pytest.raises(EncodingError):
                hex_to_bytes(bad)


class TestKeys:
    def test_prefix_values(self):
        assert [p.value for p in KeyPrefix] == [0, 1, 2, 3, 4]
        assert [p.name for p in KeyPrefix] == ["CONFIG", "NONCE", "BALANCE", "CODE", "STORAGE"]

    def test_address_key_layout(self, alice_address):
        key = address_key(KeyPrefix.BALANCE, alice_address)
        assert len(key) == 21
        assert key == b"\x02" + alice_address

    def test_address_key_accepts_raw_prefix_value(self, alice_address):
        assert address_key(3, alice_address) == address_key(KeyPrefix.CODE, alice_address)
        with pytest.raises(EncodingError):
            address_key(5, alice_address)

    @pytest.mark.parametrize("prefix", [True, False])
    def test_bool_is_not_a_prefix(self, prefix, alice_address):
        with pytest.raises(EncodingError):
            address_key(prefix, alice_address)

    def test_prefixes_partition_key_space(self, alice_address):
        keys = {address_key(prefix, alice_address) for prefix in KeyPrefix}
        assert len(keys) == len(KeyPrefix)

    def test_storage_key_layout(self, alice_address):
        slot = bytes(31) + b"\x01"
        key = storage_key(alice_address, slot)
        assert len(key) == 53
        assert key[:21] == address_key(KeyPrefix.STORAGE, alice_address)
        assert key[21:] == slot
        assert bytes_to_hex(key) == "04" + "a0" * 20 + "00" * 31 + "01"

    def test_storage_keys_sort_by_slot_within_address(self, alice_address, bob_address):
        slots = [u256_to_bytes(n) for n in (5, 0, 2**255, 1)]
        keys = sorted(storage_key(alice_address, s) for s in slots)
        assert [bytes_to_u256(k[21:]) for k in keys] == [0, 1, 5, 2**255]
        # bob_address < alice_address, so all of bob's slots come first
        assert storage_key(bob_address, b"\xff" * 32) < min(keys)

    @pytest.mark.parametrize("address", [b"", bytes(19), bytes(21)])
    def test_wrong_address_width(self, address):
        with pytest.raises(EncodingError):
            address_key(KeyPrefix.NONCE, address)
        with pytest.raises(EncodingError):
            storage_key(address, bytes(32))

    def test_wrong_slot_width(self, alice_address):
        with pytest.raises(EncodingError):
            storage_key(alice_address, bytes(31))

    def test_non_bytes_address(self):
        with pytest.raises(EncodingError):
            address_key(KeyPrefix.NONCE, "a0" * 20)

    def test_parse_key_roundtrip(self, alice_address):
        slot = bytes(range(32))
        assert parse_key(address_key(KeyPrefix.CODE, alice_address)) == (KeyPrefix.CODE, alice_address, None)
        assert parse_key(storage_key(alice_address, slot)) == (KeyPrefix.STORAGE, alice_address, slot)

    def test_parse_storage_scan_prefix(self, alice_address):
        prefix_key = address_key(KeyPrefix.STORAGE, alice_address)
        assert parse_key(prefix_key) == (KeyPrefix.STORAGE, alice_address, None)
        assert storage_key(alice_address, bytes(32)).startswith(prefix_key)

    @pytest.mark.parametrize(
        "key",
        [
            b"",
            b"\x05" + bytes(20),
            b"\x01" + bytes(19),
            b"\x02" + bytes(52),
            b"\x04" + bytes(19),
            b"\x04" + bytes(51),
            b"\x04" + bytes(53),
        ],
    )
    def test_parse_key_rejects_malformed(self, key):
        with pytest.raises(EncodingError):
            parse_key(key)


class TestU256:
    def test_boundaries(self):
        assert u256_to_bytes(0) == bytes(32)
        assert u256_to_bytes(1) == bytes(31) + b"\x01"
        assert u256_to_bytes(2**256 - 1) == b"\xff" * 32

    def test_big_endian(self):
        assert u256_to_bytes(0x0102) == bytes(30) + b"\x01\x02"

    @pytest.mark.parametrize("value", [0, 1, 2**256 - 1, 2**128 + 7])
    def test_roundtrip(self, value):
        assert bytes_to_u256(u256_to_bytes(value)) == value

    @pytest.mark.parametrize("value", [-1, 2**256])
    def test_out_of_range(self, value):
        with pytest.raises(EncodingError):
            u256_to_bytes(value)

    @pytest.mark.parametrize("value", [1.0, "1", True])
    def test_non_integer(self, value):
        with pytest.raises(EncodingError):
            u256_to_bytes(value)

    def test_decode_requires_32_bytes(self):
        with pytest.raises(EncodingError):
            bytes_to_u256(bytes(33))


class TestLogEncoding:
    def test_layout(self):
        topics = [b"\x11" * 32, b"\x22" * 32]
        encoded = log_to_bytes(topics, b"payload")
        assert encoded[0] == 2
        assert encoded[1:33] == topics[0]
        assert encoded[33:65] == topics[1]
        assert encoded[65:] == b"payload"
        assert len(encoded) == 1 + 64 + 7

    def test_no_topics(self):
        assert log_to_bytes([], b"") == b"\x00"
        assert log_to_bytes([], b"\x01\x02") == b"\x00\x01\x02"

    def test_topic_limit_is_enforced(self):
        topic = bytes(32)
        assert log_to_bytes([topic] * 255, b"")[0] == 255
        with pytest.raises(LogEncodingError) as excinfo:
            log_to_bytes([topic] * 256, b"")
        assert excinfo.value.details["topics"] == 256

    def test_topics_must_be_words(self):
        with pytest.raises(LogEncodingError):
            log_to_bytes([bytes(31)], b"")

    def test_log_record(self, alice_address):
        log = Log(address=alice_address, topics=[b"\x01" * 32], data=b"\xff")
        assert log.to_bytes() == b"\x01" + b"\x01" * 32 + b"\xff"
        with pytest.raises(EncodingError):
            Log(address=bytes(3))
