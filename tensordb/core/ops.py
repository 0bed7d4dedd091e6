"""
Free tensor operations for tensordb.

Joining operations and shape helpers that act on several tensors at once.
"""

from __future__ import annotations
from typing import Sequence

import numpy as np

from ..types.aliases import Shape
from ..types.descriptors import format_shape
from ..exceptions import InvalidArgument, OutOfRange, RankMismatch, ShapeMismatch
from .tensor import Tensor


def matmul(a: Tensor, b: Tensor) -> Tensor:
    return a.matmul(b)


def concatenate(tensors: Sequence[Tensor], axis: int = 0) -> Tensor:
    """Join tensors along an existing axis."""
    if not tensors:
        raise InvalidArgument("Cannot concatenate empty list")

    first = tensors[0]
    for tensor in tensors[1:]:
        if tensor.rank != first.rank:
            raise RankMismatch("All tensors must have same rank")

    if first.rank == 0 or axis < 0 or axis >= first.rank:
        raise OutOfRange(f"Axis {axis} out of range for rank {first.rank}")

    for tensor in tensors[1:]:
        for dim, (left, right) in enumerate(zip(first.shape, tensor.shape)):
            if dim != axis and left != right:
                raise ShapeMismatch(
                    f"Shape mismatch on non-concat axis: {first.shape_string()} vs {tensor.shape_string()}",
                    left=first.shape,
                    right=tensor.shape
                )

    joined = np.concatenate([tensor.numpy() for tensor in tensors], axis=axis)
    return Tensor(joined.shape, joined)


def stack(tensors: Sequence[Tensor], axis: int = 0) -> Tensor:
    """Join equally shaped tensors along a new axis."""
    if not tensors:
        raise InvalidArgument("Cannot stack empty list")

    first = tensors[0]
    if first.empty:
        raise InvalidArgument("Cannot stack empty tensors")
    for tensor in tensors[1:]:
        if tensor.shape != first.shape or tensor.size != first.size:
            raise ShapeMismatch(
                f"Cannot stack {first.shape_string()} with {tensor.shape_string()}",
                left=first.shape,
                right=tensor.shape
            )

    if axis < 0 or axis > first.rank:
        raise OutOfRange(f"Axis {axis} out of range for stack on rank {first.rank}")

    stacked = np.stack([tensor.numpy() for tensor in tensors], axis=axis)
    return Tensor(stacked.shape, stacked)


def broadcast_shapes(a: Shape, b: Shape) -> Shape:
    """Unify two shapes under right-aligned broadcasting rules.

    Elementwise operators never call this; they require equal shapes.
    """
    a, b = tuple(a), tuple(b)
    if a == b:
        return a

    result = []
    for offset in range(1, max(len(a), len(b)) + 1):
        left = a[-offset] if offset <= len(a) else 1
        right = b[-offset] if offset <= len(b) else 1
        if left != right and left != 1 and right != 1:
            raise ShapeMismatch(
                f"Shapes {format_shape(a)} and {format_shape(b)} cannot be broadcast",
                left=a,
                right=b
            )
        result.append(max(left, right))
    return tuple(reversed(result))
