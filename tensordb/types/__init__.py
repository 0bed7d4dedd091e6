"""
Type definitions for tensordb.

This module provides type aliases, enumerations and the metadata
records shared by the tensor engine and the registry.
"""

from .descriptors import TensorMetadata, RegistryStats, Point3D, format_shape
from .enums import ErrorKind, Operation
from .aliases import (
    Shape,
    ByteSize
)

__all__ = [
    # Descriptors
    "TensorMetadata",
    "RegistryStats",
    "Point3D",
    "format_shape",

    # Enums
    "ErrorKind",
    "Operation",

    # Type aliases
    "Shape",
    "ByteSize",
]
