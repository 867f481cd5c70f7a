"""
EVM Engine Constants

Fixed widths, integer bounds and limits shared by the value model and the
key encoding layer.

NOTE: Values marked [CONSENSUS] define byte layouts that independent
implementations must reproduce exactly. Changing any of them changes every
persisted key and is a breaking change for stored state.
"""

from typing import Final

# =============================================================================
# BYTE WIDTHS [CONSENSUS - DO NOT CHANGE]
# =============================================================================

ADDRESS_LENGTH: Final[int] = 20  # H160
WORD_LENGTH: Final[int] = 32  # H256 / U256
KEY_PREFIX_LENGTH: Final[int] = 1
ADDRESS_KEY_LENGTH: Final[int] = KEY_PREFIX_LENGTH + ADDRESS_LENGTH  # 21
STORAGE_KEY_LENGTH: Final[int] = ADDRESS_KEY_LENGTH + WORD_LENGTH  # 53

# Keccak-256 digest is 32 bytes; the derived address is its low 20 bytes
HASH_LENGTH: Final[int] = 32
DERIVED_ADDRESS_OFFSET: Final[int] = HASH_LENGTH - ADDRESS_LENGTH  # 12

# Variable-length byte strings in call records carry a u32 little-endian length
LENGTH_PREFIX_BYTES: Final[int] = 4

# Event logs store their topic count in one byte
MAX_LOG_TOPICS: Final[int] = 255

HEX_ALPHABET: Final[str] = "0123456789abcdef"

# =============================================================================
# INTEGER BOUNDS
# =============================================================================

U8_MAX: Final[int] = 2**8 - 1
U32_MAX: Final[int] = 2**32 - 1
U64_MAX: Final[int] = 2**64 - 1
I64_MIN: Final[int] = -(2**63)
I64_MAX: Final[int] = 2**63 - 1
U128_MAX: Final[int] = 2**128 - 1
I128_MIN: Final[int] = -(2**127)
I128_MAX: Final[int] = 2**127 - 1
U256_MAX: Final[int] = 2**256 - 1

# Longest decimal renderings, used to reject oversized digit strings before int()
U64_MAX_DIGITS: Final[int] = len(str(U64_MAX))  # 20
U128_MAX_DIGITS: Final[int] = len(str(U128_MAX))  # 39

# =============================================================================
# PARSER LIMITS (defaults, overridable through config)
# =============================================================================

DEFAULT_MAX_JSON_BYTES: Final[int] = 1024 * 1024  # 1 MiB
DEFAULT_MAX_JSON_DEPTH: Final[int] = 64

# =============================================================================
# ACCOUNT IDENTIFIERS
# =============================================================================

MIN_ACCOUNT_ID_LENGTH: Final[int] = 2
MAX_ACCOUNT_ID_LENGTH: Final[int] = 64
