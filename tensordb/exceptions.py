from __future__ import annotations
from typing import Optional

from .types.enums import ErrorKind


class TensorDBError(Exception):
    kind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, **kwargs):
        super().__init__(message)
        self.message = message
        self.context = kwargs

    def __str__(self) -> str:
        return self.message


class TensorError(TensorDBError):
    pass


class InvalidShape(TensorError, ValueError):
    kind = ErrorKind.INVALID_SHAPE

    def __init__(self, message: str, shape: Optional[tuple] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.shape = shape


class SizeMismatch(TensorError, ValueError):
    kind = ErrorKind.SIZE_MISMATCH

    def __init__(self, message: str, expected: Optional[int] = None,
                 actual: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


class RankMismatch(TensorError, ValueError):
    kind = ErrorKind.RANK_MISMATCH


class OutOfRange(TensorError, IndexError):
    kind = ErrorKind.OUT_OF_RANGE


class ShapeMismatch(TensorError, ValueError):
    kind = ErrorKind.SHAPE_MISMATCH

    def __init__(self, message: str, left: Optional[tuple] = None,
                 right: Optional[tuple] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.left = left
        self.right = right


class InvalidArgument(TensorError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT


class RegistryError(TensorDBError):
    def __init__(self, message: str, name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.name = name


class NotFound(RegistryError, KeyError):
    kind = ErrorKind.NOT_FOUND


class CorruptData(RegistryError):
    kind = ErrorKind.CORRUPT_DATA

    def __init__(self, message: str, offset: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.offset = offset


class EncodingError(RegistryError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, encoding: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.encoding = encoding
