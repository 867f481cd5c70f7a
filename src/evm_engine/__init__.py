"""
EVM Engine - argument decoding and state addressing core

Building blocks for an account-based EVM engine embedded in a host chain:

Main Components:
- Value model: JSON argument decoding with strictly typed field extraction
- Call records: fixed-layout packed arguments for the engine entry points
- Key encoding: deterministic binary keys for the external key-value store
- Address derivation: Keccak-256 mapping from host accounts to EVM addresses

The EVM interpreter, the account ledger and the host bindings live outside
this package and consume these primitives.
"""

__version__ = "0.1.0"
__author__ = "EVM Engine Development Team"

__all__ = []
