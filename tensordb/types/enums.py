"""
Enumeration types for tensordb.

This module defines the enumeration types used for error classification
and derived computation dispatch.
"""

from __future__ import annotations
from enum import Enum, IntEnum
from typing import Optional


class ErrorKind(IntEnum):
    """Failure categories shared by exceptions and results."""
    NONE = 0
    INVALID_SHAPE = 1
    SIZE_MISMATCH = 2
    RANK_MISMATCH = 3
    OUT_OF_RANGE = 4
    SHAPE_MISMATCH = 5
    INVALID_ARGUMENT = 6
    NOT_FOUND = 7
    UNKNOWN_OPERATION = 8
    CORRUPT_DATA = 9
    IO_ERROR = 10
    UNEXPECTED = 11


class Operation(Enum):
    """Binary operations accepted by ``TensorRegistry.compute``."""
    ADD = 'add'
    SUB = 'sub'
    MUL = 'mul'
    DIV = 'div'
    MATMUL = 'matmul'

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @classmethod
    def parse(cls, token: str) -> Optional[Operation]:
        """Resolve an operation name or its symbol alias, or ``None``."""
        for op in cls:
            if token == op.value or token == _SYMBOLS[op]:
                return op
        return None


_SYMBOLS = {
    Operation.ADD: '+',
    Operation.SUB: '-',
    Operation.MUL: '*',
    Operation.DIV: '/',
    Operation.MATMUL: '@',
}
