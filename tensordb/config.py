"""
Registry configuration for tensordb.
"""

from __future__ import annotations
import codecs
from dataclasses import dataclass

_BYTE_ORDERS = ('=', '<', '>')


@dataclass(frozen=True)
class RegistryConfig:
    """Settings that control registry persistence.

    ``atomic_load`` decodes a file completely before replacing the registry
    contents. When disabled the registry is cleared first and a malformed
    file leaves it empty.

    ``byte_order`` is a ``struct`` byte-order prefix: ``'='`` writes the
    host's native layout, ``'<'`` and ``'>'`` force little/big endian.
    """
    atomic_load: bool = True
    byte_order: str = '='
    encoding: str = 'utf-8'

    def __post_init__(self):
        if self.byte_order not in _BYTE_ORDERS:
            raise ValueError(f"Invalid byte order: {self.byte_order!r}")

        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Unknown encoding: {self.encoding!r}") from None
