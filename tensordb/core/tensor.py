"""
Dense tensor implementation for tensordb.

This module provides the ``Tensor`` value type: an owned, contiguous,
row-major float32 buffer with a shape and derived strides. Every
transforming operation returns a new tensor.
"""

from __future__ import annotations
import math
from collections.abc import Iterable
from numbers import Integral, Real
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..types.aliases import Shape
from ..types.descriptors import Point3D, format_shape
from ..exceptions import (
    InvalidShape,
    SizeMismatch,
    RankMismatch,
    OutOfRange,
    ShapeMismatch,
    InvalidArgument,
)

DTYPE = np.float32

Generator = Callable[[int], float]
TensorData = Union[Sequence[float], np.ndarray, Generator]


def _validate_shape(shape: Any) -> Shape:
    if isinstance(shape, (str, bytes)) or not isinstance(shape, Iterable):
        raise InvalidShape(f"Shape must be a sequence of integers: {shape!r}")

    dims = tuple(shape)
    for dim in dims:
        if isinstance(dim, bool) or not isinstance(dim, Integral) or dim <= 0:
            raise InvalidShape(f"Shape dimensions must be positive: {dims}", shape=dims)
    return tuple(int(dim) for dim in dims)


def _compute_strides(shape: Shape) -> Tuple[int, ...]:
    strides = [0] * len(shape)
    step = 1
    for axis in range(len(shape) - 1, -1, -1):
        strides[axis] = step
        step *= shape[axis]
    return tuple(strides)


def _element_count(shape: Shape) -> int:
    count = 1
    for dim in shape:
        count *= dim
    return count


class Tensor:
    """Dense N-dimensional float32 array with value semantics.

    ``Tensor()`` is the empty rank-0 tensor holding no elements, while
    ``Tensor.scalar(v)`` and ``Tensor(())`` are rank-0 tensors holding
    exactly one element. The two states compare unequal.
    """

    __slots__ = ('_shape', '_strides', '_data')

    # Keeps numpy scalars on the left of an operator from converting the tensor.
    __array_ufunc__ = None

    def __init__(self, shape: Optional[Sequence[int]] = None, data: Optional[TensorData] = None):
        if shape is None:
            if data is not None:
                raise InvalidArgument("Tensor data requires a shape")
            self._set_storage((), np.empty(0, dtype=DTYPE))
            return

        dims = _validate_shape(shape)
        expected = _element_count(dims)

        if data is None:
            buffer = np.zeros(expected, dtype=DTYPE)
        elif callable(data):
            buffer = np.fromiter((data(i) for i in range(expected)), dtype=DTYPE, count=expected)
        else:
            buffer = np.array(data, dtype=DTYPE).reshape(-1)
            if buffer.size != expected:
                raise SizeMismatch(
                    f"Data size {buffer.size} doesn't match shape {format_shape(dims)}",
                    expected=expected,
                    actual=buffer.size
                )

        self._set_storage(dims, buffer)

    def _set_storage(self, shape: Shape, buffer: np.ndarray) -> None:
        self._shape = shape
        self._strides = _compute_strides(shape)
        self._data = buffer

    @classmethod
    def _wrap(cls, shape: Shape, buffer: np.ndarray) -> Tensor:
        """Adopt ``buffer`` without copying or validation."""
        tensor = cls.__new__(cls)
        tensor._set_storage(shape, np.ascontiguousarray(buffer, dtype=DTYPE).reshape(-1))
        return tensor

    # Factories

    @classmethod
    def scalar(cls, value: float) -> Tensor:
        return cls._wrap((), np.array([value], dtype=DTYPE))

    @classmethod
    def zeros(cls, shape: Sequence[int]) -> Tensor:
        return cls(shape)

    @classmethod
    def ones(cls, shape: Sequence[int]) -> Tensor:
        return cls.fill(shape, 1.0)

    @classmethod
    def fill(cls, shape: Sequence[int], value: float) -> Tensor:
        dims = _validate_shape(shape)
        return cls._wrap(dims, np.full(_element_count(dims), value, dtype=DTYPE))

    @classmethod
    def random(cls, shape: Sequence[int], low: float = 0.0, high: float = 1.0,
               seed: Optional[int] = None) -> Tensor:
        """Uniformly distributed values in ``[low, high)``."""
        dims = _validate_shape(shape)
        rng = np.random.default_rng(seed)
        return cls._wrap(dims, rng.uniform(low, high, _element_count(dims)))

    @classmethod
    def range(cls, start: float, end: float, step: float = 1.0) -> Tensor:
        """Half-open arithmetic progression; the empty tensor when it has no values."""
        if step == 0:
            raise InvalidArgument("range() step must not be zero")

        count = math.ceil((end - start) / step)
        if count <= 0:
            return cls()
        values = start + np.arange(count, dtype=np.float64) * step
        return cls._wrap((count,), values)

    @classmethod
    def identity(cls, n: int) -> Tensor:
        dims = _validate_shape((n, n))
        return cls._wrap(dims, np.eye(dims[0], dtype=DTYPE))

    @classmethod
    def from_vector(cls, values: Sequence[float]) -> Tensor:
        buffer = np.array(values, dtype=DTYPE).reshape(-1)
        if buffer.size == 0:
            return cls()
        return cls._wrap((buffer.size,), buffer)

    @classmethod
    def from_matrix(cls, rows: Sequence[Sequence[float]]) -> Tensor:
        rows = [list(row) for row in rows]
        if not rows:
            raise InvalidArgument("Cannot build a matrix from no rows")

        cols = len(rows[0])
        for row in rows:
            if len(row) != cols:
                raise InvalidArgument("Inconsistent row sizes")
        return cls((len(rows), cols), [value for row in rows for value in row])

    # Properties

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def strides(self) -> Tuple[int, ...]:
        return self._strides

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return int(self._data.size)

    @property
    def empty(self) -> bool:
        return self._data.size == 0

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the flat row-major buffer."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def dim(self, axis: int) -> int:
        self._check_axis(axis)
        return self._shape[axis]

    def tolist(self) -> List[float]:
        return self._data.tolist()

    def numpy(self) -> np.ndarray:
        """Shaped copy of the buffer."""
        if self.empty:
            return np.empty(0, dtype=DTYPE)
        return self._data.reshape(self._shape).copy()

    def copy(self) -> Tensor:
        return Tensor._wrap(self._shape, self._data.copy())

    def __copy__(self) -> Tensor:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> Tensor:
        return self.copy()

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        array = self.numpy()
        return array if dtype is None else array.astype(dtype)

    # Indexing

    def _check_axis(self, axis: int) -> None:
        if not isinstance(axis, Integral) or axis < 0 or axis >= self.rank:
            raise OutOfRange(f"Axis {axis} out of range for rank {self.rank}")

    def _check_flat(self, index: Any) -> int:
        if isinstance(index, bool) or not isinstance(index, Integral):
            raise TypeError(f"Tensor indices must be integers, not {type(index).__name__}")
        if index < 0 or index >= self._data.size:
            raise OutOfRange(f"Index {index} out of range for size {self._data.size}")
        return int(index)

    def _flat_index(self, indices: Sequence[int]) -> int:
        if len(indices) != self.rank:
            raise RankMismatch(
                f"Number of indices ({len(indices)}) doesn't match rank {self.rank}"
            )
        if self.empty:
            raise OutOfRange("Cannot index an empty tensor")

        flat = 0
        for index, dim, stride in zip(indices, self._shape, self._strides):
            if isinstance(index, bool) or not isinstance(index, Integral):
                raise TypeError(f"Tensor indices must be integers, not {type(index).__name__}")
            if index < 0 or index >= dim:
                raise OutOfRange(f"Index {tuple(indices)} out of bounds for shape {self.shape_string()}")
            flat += int(index) * stride
        return flat

    def _unflat_index(self, flat: int) -> Tuple[int, ...]:
        indices = []
        for stride in self._strides:
            indices.append(flat // stride)
            flat %= stride
        return tuple(indices)

    @staticmethod
    def _collect_indices(indices: tuple) -> tuple:
        if len(indices) == 1 and isinstance(indices[0], (tuple, list)):
            return tuple(indices[0])
        return indices

    def at(self, *indices: Union[int, Sequence[int]]) -> float:
        """Element at a multi-index, given as ``at(i, j)`` or ``at((i, j))``."""
        return float(self._data[self._flat_index(self._collect_indices(indices))])

    def set_at(self, indices: Sequence[int], value: float) -> None:
        self._data[self._flat_index(tuple(indices))] = value

    def __getitem__(self, key: Union[int, Tuple[int, ...]]) -> float:
        if isinstance(key, tuple):
            return self.at(key)
        return float(self._data[self._check_flat(key)])

    def __setitem__(self, key: Union[int, Tuple[int, ...]], value: float) -> None:
        if isinstance(key, tuple):
            self.set_at(key, value)
        else:
            self._data[self._check_flat(key)] = value

    def __iter__(self) -> Iterator[float]:
        return iter(self._data.tolist())

    # Reshaping

    def reshape(self, shape: Sequence[int]) -> Tensor:
        dims = _validate_shape(shape)
        if _element_count(dims) != self._data.size:
            raise SizeMismatch(
                f"Cannot reshape {self.shape_string()} into {format_shape(dims)}: incompatible sizes",
                expected=self._data.size,
                actual=_element_count(dims)
            )
        return Tensor._wrap(dims, self._data.copy())

    def flatten(self) -> Tensor:
        return self.reshape((self._data.size,))

    def transpose(self, axes: Optional[Sequence[int]] = None, validate: bool = True) -> Tensor:
        """Swap the axes of a matrix, or permute axes of any rank.

        With ``validate=False`` only the length of ``axes`` is checked and
        repeated entries are accepted; later elements overwrite earlier
        ones at colliding positions.
        """
        if axes is None:
            if self.rank != 2:
                raise InvalidArgument("transpose() without axes only for 2D tensors")
            return Tensor._wrap((self._shape[1], self._shape[0]), self.numpy().T)

        axes = tuple(axes)
        if len(axes) != self.rank:
            raise RankMismatch(f"Axes {axes} must match tensor rank {self.rank}")

        if validate:
            if sorted(axes) != list(range(self.rank)):
                raise InvalidArgument(f"Axes {axes} are not a permutation of range({self.rank})")
            if self.empty:
                return self.copy()
            new_shape = tuple(self._shape[axis] for axis in axes)
            return Tensor._wrap(new_shape, np.transpose(self.numpy(), axes))

        return self._transpose_unchecked(axes)

    def _transpose_unchecked(self, axes: Tuple[int, ...]) -> Tensor:
        for axis in axes:
            if not isinstance(axis, Integral) or axis < 0 or axis >= self.rank:
                raise OutOfRange(f"Axis {axis} out of range for rank {self.rank}")
        if self.empty:
            return self.copy()

        result = Tensor(tuple(self._shape[axis] for axis in axes))
        for flat in range(self._data.size):
            old_index = self._unflat_index(flat)
            new_index = tuple(old_index[axis] for axis in axes)
            result._data[result._flat_index(new_index)] = self._data[flat]
        return result

    def squeeze(self) -> Tensor:
        new_shape = tuple(dim for dim in self._shape if dim != 1)
        return self.reshape(new_shape or (1,))

    def unsqueeze(self, axis: int) -> Tensor:
        if not isinstance(axis, Integral) or axis < 0 or axis > self.rank:
            raise OutOfRange(f"Axis {axis} out of range for unsqueeze on rank {self.rank}")
        return self.reshape(self._shape[:axis] + (1,) + self._shape[axis:])

    # Slicing

    def slice(self, axis: int, start: int, end: int) -> Tensor:
        """Sub-tensor with ``axis`` restricted to ``[start, end)``."""
        self._check_axis(axis)
        if start < 0 or start >= end or end > self._shape[axis]:
            raise OutOfRange(
                f"Invalid slice range [{start}, {end}) for axis {axis} of size {self._shape[axis]}"
            )

        selector = [slice(None)] * self.rank
        selector[axis] = slice(start, end)
        new_shape = self._shape[:axis] + (end - start,) + self._shape[axis + 1:]
        return Tensor._wrap(new_shape, self._data.reshape(self._shape)[tuple(selector)].copy())

    def row(self, i: int) -> Tensor:
        if self.rank != 2:
            raise InvalidArgument("row() only for 2D tensors")
        return self.slice(0, i, i + 1).squeeze()

    def col(self, j: int) -> Tensor:
        if self.rank != 2:
            raise InvalidArgument("col() only for 2D tensors")
        return self.slice(1, j, j + 1).squeeze()

    # Elementwise operations

    def _map(self, func: Callable[[np.ndarray], np.ndarray]) -> Tensor:
        with np.errstate(all='ignore'):
            buffer = func(self._data)
        return Tensor._wrap(self._shape, buffer)

    def apply(self, func: Callable[[float], float]) -> Tensor:
        """Apply ``func`` to every element; numpy ufuncs run vectorised."""
        if isinstance(func, np.ufunc):
            return self._map(func)
        return self._map(
            lambda data: np.fromiter((func(x) for x in data.tolist()), dtype=DTYPE, count=data.size)
        )

    def _binary(self, other: Any, ufunc: np.ufunc, verb: str, reflected: bool = False) -> Tensor:
        if isinstance(other, Tensor):
            if self._shape != other._shape or self._data.size != other._data.size:
                raise ShapeMismatch(
                    f"Shape mismatch for {verb}: {self.shape_string()} vs {other.shape_string()}",
                    left=self._shape,
                    right=other._shape
                )
            with np.errstate(all='ignore'):
                buffer = ufunc(self._data, other._data)
            return Tensor._wrap(self._shape, buffer)

        if isinstance(other, Real):
            scalar = DTYPE(other)
            if reflected:
                return self._map(lambda data: ufunc(scalar, data))
            return self._map(lambda data: ufunc(data, scalar))

        return NotImplemented

    def __add__(self, other):
        return self._binary(other, np.add, "addition")

    def __radd__(self, other):
        return self._binary(other, np.add, "addition", reflected=True)

    def __sub__(self, other):
        return self._binary(other, np.subtract, "subtraction")

    def __rsub__(self, other):
        return self._binary(other, np.subtract, "subtraction", reflected=True)

    def __mul__(self, other):
        return self._binary(other, np.multiply, "multiplication")

    def __rmul__(self, other):
        return self._binary(other, np.multiply, "multiplication", reflected=True)

    def __truediv__(self, other):
        return self._binary(other, np.divide, "division")

    def __rtruediv__(self, other):
        return self._binary(other, np.divide, "division", reflected=True)

    def _assign(self, result: Any) -> Tensor:
        if result is NotImplemented:
            return NotImplemented
        self._data = result._data
        return self

    def __iadd__(self, other):
        return self._assign(self.__add__(other))

    def __isub__(self, other):
        return self._assign(self.__sub__(other))

    def __imul__(self, other):
        return self._assign(self.__mul__(other))

    def __itruediv__(self, other):
        return self._assign(self.__truediv__(other))

    def __neg__(self) -> Tensor:
        return self.apply(np.negative)

    def __pos__(self) -> Tensor:
        return self.copy()

    def __abs__(self) -> Tensor:
        return self.abs()

    def __pow__(self, exponent: float) -> Tensor:
        if not isinstance(exponent, Real):
            return NotImplemented
        return self.pow(exponent)

    def sqrt(self) -> Tensor:
        return self.apply(np.sqrt)

    def pow(self, exponent: float) -> Tensor:
        power = DTYPE(exponent)
        return self._map(lambda data: np.power(data, power))

    def exp(self) -> Tensor:
        return self.apply(np.exp)

    def log(self) -> Tensor:
        return self.apply(np.log)

    def abs(self) -> Tensor:
        return self.apply(np.abs)

    def sin(self) -> Tensor:
        return self.apply(np.sin)

    def cos(self) -> Tensor:
        return self.apply(np.cos)

    # Reductions

    def _reduce_axis(self, axis: int, reducer: Callable[..., np.ndarray]) -> Tensor:
        self._check_axis(axis)
        reduced = reducer(self._data.reshape(self._shape), axis=axis)
        new_shape = self._shape[:axis] + self._shape[axis + 1:]
        return Tensor._wrap(new_shape or (1,), reduced)

    def _require_elements(self, reduction: str) -> None:
        if self.empty:
            raise InvalidArgument(f"{reduction}() of an empty tensor")

    def sum(self, axis: Optional[int] = None) -> Union[float, Tensor]:
        """Sum of all elements, or a tensor with ``axis`` summed out."""
        if axis is None:
            return float(np.sum(self._data, dtype=DTYPE))
        return self._reduce_axis(axis, np.sum)

    def mean(self, axis: Optional[int] = None) -> Union[float, Tensor]:
        if axis is None:
            if self.empty:
                return float('nan')
            return float(np.sum(self._data, dtype=DTYPE) / DTYPE(self._data.size))
        return self.sum(axis) / self._shape[axis]

    def min(self, axis: Optional[int] = None) -> Union[float, Tensor]:
        if axis is None:
            self._require_elements("min")
            return float(np.min(self._data))
        return self._reduce_axis(axis, np.min)

    def max(self, axis: Optional[int] = None) -> Union[float, Tensor]:
        if axis is None:
            self._require_elements("max")
            return float(np.max(self._data))
        return self._reduce_axis(axis, np.max)

    def prod(self) -> float:
        return float(np.prod(self._data, dtype=DTYPE))

    # Matrix operations

    def matmul(self, other: Tensor) -> Tensor:
        """Matrix product ``(m, n) @ (n, p) -> (m, p)``."""
        if self.rank != 2 or other.rank != 2:
            raise InvalidArgument("matmul requires 2D tensors")
        if self._shape[1] != other._shape[0]:
            raise InvalidArgument(
                f"Incompatible shapes for matmul: {self.shape_string()} @ {other.shape_string()}"
            )
        result = np.matmul(self._data.reshape(self._shape), other._data.reshape(other._shape))
        return Tensor._wrap((self._shape[0], other._shape[1]), result)

    def __matmul__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.matmul(other)

    def dot(self, other: Tensor) -> Tensor:
        if self.rank != 1 or other.rank != 1:
            raise InvalidArgument("dot requires 1D tensors")
        if self._shape[0] != other._shape[0]:
            raise InvalidArgument("Vectors must have same length")
        return Tensor.scalar(np.dot(self._data, other._data))

    def norm(self) -> float:
        """Euclidean norm of the flat buffer."""
        return float(np.sqrt(np.sum(self._data * self._data, dtype=DTYPE)))

    def normalize(self) -> Tensor:
        magnitude = self.norm()
        if magnitude == 0:
            return self.copy()
        return self / magnitude

    # Comparison

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return self._shape == other._shape and np.array_equal(self._data, other._data)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def allclose(self, other: Tensor, rtol: float = 1e-5, atol: float = 1e-8) -> bool:
        if self._shape != other._shape or self._data.size != other._data.size:
            return False
        diff = np.abs(self._data - other._data)
        return bool(np.all(diff <= atol + rtol * np.abs(other._data)))

    # String views

    def shape_string(self) -> str:
        return format_shape(self._shape)

    def to_string(self) -> str:
        if self.empty:
            return "Tensor([])"
        if self.rank == 0:
            return f"Tensor({self._data[0]:.6f})"

        if self.rank == 1:
            return "[" + ", ".join(f"{value:.4f}" for value in self._data.tolist()) + "]"

        if self.rank == 2:
            matrix = self._data.reshape(self._shape).tolist()
            rows = ("[" + ", ".join(f"{value:.4f}" for value in row) + "]" for row in matrix)
            return "[" + ",\n ".join(rows) + "]"

        # Higher ranks render a summary only.
        return f"Tensor(shape={self.shape_string()}, data=[...])"

    def detailed_string(self) -> str:
        lines = [
            "Tensor {",
            f"  shape: {self.shape_string()}",
            f"  rank: {self.rank}",
            f"  size: {self.size} elements",
        ]
        if not self.empty:
            lines.append(f"  min: {self.min():g}")
            lines.append(f"  max: {self.max():g}")
            lines.append(f"  mean: {self.mean():g}")
        lines.append(f"  data: {self.to_string()}")
        lines.append("}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Tensor(shape={self.shape_string()}, size={self.size})"

    # Visualization support

    def normalized_data(self) -> List[float]:
        """Elements mapped into ``[0, 1]``; a constant tensor maps to zeros."""
        if self.empty:
            return []
        low = DTYPE(self.min())
        span = DTYPE(self.max()) - low
        if span == 0:
            span = DTYPE(1)
        return ((self._data - low) / span).tolist()

    def get_3d_positions(self, spacing: float = 1.0) -> List[Point3D]:
        positions = []
        for flat in range(self._data.size):
            index = self._unflat_index(flat) + (0, 0, 0)
            positions.append(Point3D(
                float(index[0] * spacing),
                float(index[1] * spacing),
                float(index[2] * spacing),
            ))
        return positions
