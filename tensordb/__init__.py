"""
tensordb - Dense Tensor Engine and Named Tensor Registry

A small N-dimensional float32 array library together with a registry
that stores named tensors with metadata.

Key Features:
- Row-major dense tensors with reshaping, slicing and reductions
- Elementwise arithmetic with exact shape checking and matrix products
- Named registry with tags, shape/rank/tag queries and derived computation
- Compact binary persistence of registry contents
- NumPy and PyTorch interoperability
"""

from __future__ import annotations

__version__ = "1.0.0"
__license__ = "MIT"

# Core components
from .core.tensor import Tensor
from .core.ops import matmul, concatenate, stack, broadcast_shapes
from .core.result import Result
from .core.registry import TensorRegistry
from .core.interop import from_numpy, to_numpy, from_torch, to_torch

# Configuration and factories
from .config import RegistryConfig
from .factory import (
    create_registry,
    create_compat_registry,
    create_portable_registry,
    get_default_registry
)

# Codecs
from .codecs.codec import RegistryCodec

# Types
from .types.descriptors import TensorMetadata, RegistryStats, Point3D
from .types.enums import ErrorKind, Operation

# Exceptions
from .exceptions import (
    TensorDBError,
    TensorError,
    InvalidShape,
    SizeMismatch,
    RankMismatch,
    OutOfRange,
    ShapeMismatch,
    InvalidArgument,
    RegistryError,
    NotFound,
    CorruptData,
    EncodingError
)

# Public API
__all__ = [
    # Core components
    "Tensor",
    "matmul",
    "concatenate",
    "stack",
    "broadcast_shapes",
    "Result",
    "TensorRegistry",
    "from_numpy",
    "to_numpy",
    "from_torch",
    "to_torch",

    # Configuration
    "RegistryConfig",
    "create_registry",
    "create_compat_registry",
    "create_portable_registry",
    "get_default_registry",

    # Codecs
    "RegistryCodec",

    # Types
    "TensorMetadata",
    "RegistryStats",
    "Point3D",
    "ErrorKind",
    "Operation",

    # Exceptions
    "TensorDBError",
    "TensorError",
    "InvalidShape",
    "SizeMismatch",
    "RankMismatch",
    "OutOfRange",
    "ShapeMismatch",
    "InvalidArgument",
    "RegistryError",
    "NotFound",
    "CorruptData",
    "EncodingError",
]

# Version info
VERSION_INFO = tuple(map(int, __version__.split('.')))

def get_version() -> str:
    """Get the current version string."""
    return __version__

def get_version_info() -> tuple[int, ...]:
    """Get version as tuple of integers."""
    return VERSION_INFO
