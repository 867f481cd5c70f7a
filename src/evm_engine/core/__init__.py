"""
EVM Engine Core Module

Value model, byte codecs, key layout, hashing and the ambient
configuration/logging used by every engine component.
"""

__all__ = []
