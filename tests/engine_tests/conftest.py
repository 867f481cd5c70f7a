"""
Shared fixtures for the engine test suite
"""

import pytest


@pytest.fixture(autouse=True)
def reset_hash_backend():
    """Restore configuration-driven hash backend selection around every test"""
    from evm_engine.core import hashing

    hashing.set_hash_backend(None)
    yield
    hashing.set_hash_backend(None)


@pytest.fixture
def alice_address():
    """A fixed 20-byte address"""
    return bytes.fromhex("a0" * 20)


@pytest.fixture
def bob_address():
    """A second fixed 20-byte address"""
    return bytes(range(1, 21))


@pytest.fixture
def transfer_args():
    """Raw argument bytes for a typical token transfer call"""
    return (
        b'{"receiver_id": "bob.near", "amount": "340282366920938463463374607431768211455",'
        b' "memo": "rent", "decimals": 18, "nonce": 7, "refund": false}'
    )
