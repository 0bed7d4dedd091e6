"""
Core components of tensordb.

This module contains the dense tensor engine, free tensor operations,
the result type and the named tensor registry.
"""

from .tensor import Tensor
from .ops import matmul, concatenate, stack, broadcast_shapes
from .result import Result
from .registry import TensorRegistry

__all__ = [
    "Tensor",
    "matmul",
    "concatenate",
    "stack",
    "broadcast_shapes",
    "Result",
    "TensorRegistry",
]
