"""
Keccak-256 hash backends.

The engine needs one hashing capability: Keccak-256 as used by Ethereum
(not the NIST SHA3-256 padding). It is provided either locally through
pycryptodome or by the host environment. Selection follows
EVM_ENGINE_HASH_BACKEND, and a host embedding the engine registers its
primitive with set_hash_backend() at startup.

Both backends must agree bit-for-bit; tests cross-check them against known
vectors.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from Crypto.Hash import keccak

from evm_engine.core import config
from evm_engine.core.config import HashBackendType
from evm_engine.core.constants import HASH_LENGTH
from evm_engine.core.engine_exceptions import ConfigurationError, HashBackendError
from evm_engine.core.protocols import IHashBackend

logger = logging.getLogger(__name__)

# Keccak-256 of the empty string
EMPTY_KECCAK256 = bytes.fromhex("c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470")


class LocalKeccakBackend:
    """Keccak-256 computed in-process with pycryptodome."""

    name = HashBackendType.LOCAL.value

    def keccak256(self, data: bytes) -> bytes:
        k = keccak.new(digest_bits=256)
        k.update(bytes(data))
        return k.digest()


class HostKeccakBackend:
    """Keccak-256 delegated to a primitive supplied by the host environment."""

    name = HashBackendType.HOST.value

    def __init__(self, host_fn: Callable[[bytes], bytes]) -> None:
        if not callable(host_fn):
            raise ConfigurationError("host hash primitive must be callable")
        self._host_fn = host_fn

    def keccak256(self, data: bytes) -> bytes:
        digest = self._host_fn(bytes(data))
        if not isinstance(digest, (bytes, bytearray)) or len(digest) != HASH_LENGTH:
            raise HashBackendError(
                "host hash primitive returned an invalid digest",
                details={"expected_length": HASH_LENGTH, "type": type(digest).__name__},
            )
        return bytes(digest)


_active_backend: Optional[IHashBackend] = None


def set_hash_backend(backend: Optional[IHashBackend]) -> None:
    """Install the process-wide hash backend; None restores configuration-driven selection."""
    global _active_backend
    if backend is not None and not isinstance(backend, IHashBackend):
        raise ConfigurationError(f"{type(backend).__name__} does not implement keccak256")
    _active_backend = backend
    if backend is not None:
        logger.info(
            "Hash backend set to %s",
            backend.name,
            extra={"event": "hashing.backend_set", "backend": backend.name},
        )


def get_hash_backend() -> IHashBackend:
    """
    Return the active hash backend.

    Raises:
        ConfigurationError: If the host backend is configured but none was registered
    """
    global _active_backend
    if _active_backend is not None:
        return _active_backend
    if config.HASH_BACKEND is HashBackendType.HOST:
        raise ConfigurationError(
            "EVM_ENGINE_HASH_BACKEND=host requires a backend registered with set_hash_backend()",
            details={"backend": config.HASH_BACKEND.value},
        )
    _active_backend = LocalKeccakBackend()
    return _active_backend


def keccak256(data: bytes, backend: Optional[IHashBackend] = None) -> bytes:
    """Hash ``data`` with Keccak-256 using ``backend`` or the active backend."""
    return (backend or get_hash_backend()).keccak256(data)


def verify_backend(backend: IHashBackend) -> bool:
    """Check a backend against the empty-input test vector and the local implementation."""
    probe = b"evm-engine backend self-test"
    matches = (
        backend.keccak256(b"") == EMPTY_KECCAK256
        and backend.keccak256(probe) == LocalKeccakBackend().keccak256(probe)
    )
    if not matches:
        logger.error(
            "Hash backend %s disagrees with reference Keccak-256",
            backend.name,
            extra={"event": "hashing.backend_mismatch", "backend": backend.name},
        )
    return matches
