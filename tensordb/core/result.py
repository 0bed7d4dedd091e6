from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ..types.enums import ErrorKind
from ..exceptions import TensorDBError

T = TypeVar('T')


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a registry operation that never raises.

    ``error`` is ``ErrorKind.NONE`` on success. ``exception`` is set only
    when the failure was an exception caught during the operation, as
    opposed to a condition the registry detected itself.
    """
    value: Optional[T] = None
    error: ErrorKind = ErrorKind.NONE
    message: str = ""
    exception: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error == ErrorKind.NONE

    @property
    def raised(self) -> bool:
        return self.exception is not None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Optional[T] = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> Result[T]:
        return cls(error=error, message=message)

    @classmethod
    def from_exception(cls, exc: Exception) -> Result[T]:
        if isinstance(exc, TensorDBError):
            kind = exc.kind
        elif isinstance(exc, OSError):
            kind = ErrorKind.IO_ERROR
        else:
            kind = ErrorKind.UNEXPECTED
        return cls(error=kind, message=str(exc), exception=exc)
