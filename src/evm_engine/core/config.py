"""
EVM Engine Configuration

All settings come from environment variables. The module-level constants
hold the values read at import time; ``load_config()`` re-reads the
environment and validates it, raising ConfigurationError on bad input.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

from evm_engine.core.constants import DEFAULT_MAX_JSON_BYTES, DEFAULT_MAX_JSON_DEPTH
from evm_engine.core.engine_exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class HashBackendType(Enum):
    LOCAL = "local"
    HOST = "host"


def _get_int_setting(env_var: str, default: int, minimum: int = 1) -> int:
    """Read a positive integer setting, rejecting garbage instead of guessing."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var},
        ) from exc
    if value < minimum:
        raise ConfigurationError(
            f"{env_var} must be >= {minimum}, got {value}",
            details={"env_var": env_var},
        )
    return value


def _get_hash_backend_setting(env_var: str = "EVM_ENGINE_HASH_BACKEND") -> HashBackendType:
    raw = os.getenv(env_var, HashBackendType.LOCAL.value).strip().lower()
    try:
        return HashBackendType(raw)
    except ValueError as exc:
        choices = ", ".join(t.value for t in HashBackendType)
        raise ConfigurationError(
            f"{env_var} must be one of: {choices}; got {raw!r}",
            details={"env_var": env_var},
        ) from exc


@dataclass(frozen=True)
class EngineConfig:
    """Snapshot of the engine settings."""

    hash_backend: HashBackendType = HashBackendType.LOCAL
    max_json_bytes: int = DEFAULT_MAX_JSON_BYTES
    max_json_depth: int = DEFAULT_MAX_JSON_DEPTH
    log_level: str = "INFO"
    environment: str = "production"


def load_config() -> EngineConfig:
    """Read and validate the engine settings from the environment."""
    log_level = os.getenv("EVM_ENGINE_LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(
            f"EVM_ENGINE_LOG_LEVEL is not a logging level: {log_level!r}",
            details={"env_var": "EVM_ENGINE_LOG_LEVEL"},
        )

    config = EngineConfig(
        hash_backend=_get_hash_backend_setting(),
        max_json_bytes=_get_int_setting("EVM_ENGINE_MAX_JSON_BYTES", DEFAULT_MAX_JSON_BYTES),
        max_json_depth=_get_int_setting("EVM_ENGINE_MAX_JSON_DEPTH", DEFAULT_MAX_JSON_DEPTH),
        log_level=log_level,
        environment=os.getenv("EVM_ENGINE_ENV", "production").strip() or "production",
    )
    logger.debug(
        "Engine configuration loaded: backend=%s max_json_bytes=%d max_json_depth=%d",
        config.hash_backend.value,
        config.max_json_bytes,
        config.max_json_depth,
        extra={"event": "config.loaded"},
    )
    return config


CONFIG = load_config()

HASH_BACKEND = CONFIG.hash_backend
MAX_JSON_BYTES = CONFIG.max_json_bytes
MAX_JSON_DEPTH = CONFIG.max_json_depth
LOG_LEVEL = CONFIG.log_level
ENVIRONMENT = CONFIG.environment
