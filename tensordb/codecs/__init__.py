"""
Codec components for tensordb.

This module provides the binary codec used to persist a tensor
registry to disk.
"""

from .codec import RegistryCodec, CodecEntry

__all__ = [
    "RegistryCodec",
    "CodecEntry",
]
