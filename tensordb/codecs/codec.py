"""
Binary registry codec for tensordb.

This module reads and writes the registry file layout: an unversioned
sequence of length-prefixed records, one per tensor, with 8-byte size
fields and 4-byte IEEE-754 float data. Tags and timestamps are not part
of the layout.
"""

from __future__ import annotations
import logging
import os
import struct
from typing import Iterable, List, NamedTuple, Tuple, Union

import numpy as np

from ..config import RegistryConfig
from ..exceptions import CorruptData, EncodingError, TensorError
from ..core.tensor import DTYPE, Tensor

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class CodecEntry(NamedTuple):
    name: str
    description: str
    tensor: Tensor


class _Reader:
    """Bounds-checked cursor over an encoded payload."""

    __slots__ = ('_view', '_offset', '_size_field')

    def __init__(self, data: Union[bytes, memoryview], size_field: struct.Struct):
        self._view = memoryview(data)
        self._offset = 0
        self._size_field = size_field

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._view) - self._offset

    def take(self, length: int, what: str) -> memoryview:
        if length > self.remaining:
            raise CorruptData(
                f"Truncated data reading {what}: need {length} bytes, {self.remaining} left",
                offset=self._offset
            )
        chunk = self._view[self._offset:self._offset + length]
        self._offset += length
        return chunk

    def size(self, what: str) -> int:
        return self._size_field.unpack(self.take(self._size_field.size, what))[0]


class RegistryCodec:
    """Encoder/decoder for the registry file layout."""

    __slots__ = ('_size_field', '_float_dtype', '_encoding')

    def __init__(self, config: RegistryConfig = RegistryConfig()):
        self._size_field = struct.Struct(f"{config.byte_order}Q")
        self._float_dtype = np.dtype(f"{config.byte_order}f4")
        self._encoding = config.encoding

    def _encode_text(self, text: str, name: str) -> bytes:
        try:
            return text.encode(self._encoding, errors='surrogateescape')
        except UnicodeEncodeError as exc:
            raise EncodingError(
                f"Cannot encode text of {name!r} as {self._encoding}: {exc.reason}",
                name=name, encoding=self._encoding
            ) from exc

    def _decode_text(self, raw: memoryview) -> str:
        return bytes(raw).decode(self._encoding, errors='surrogateescape')

    def encode(self, entries: Iterable[Tuple[str, str, Tensor]]) -> bytes:
        """Encode ``(name, description, tensor)`` records."""
        pack = self._size_field.pack
        records = list(entries)
        parts = [pack(len(records))]

        for name, description, tensor in records:
            raw_name = self._encode_text(name, name)
            raw_description = self._encode_text(description, name)

            parts.append(pack(len(raw_name)))
            parts.append(raw_name)
            parts.append(pack(len(raw_description)))
            parts.append(raw_description)
            parts.append(pack(tensor.rank))
            parts.extend(pack(dim) for dim in tensor.shape)
            parts.append(pack(tensor.size))
            parts.append(np.asarray(tensor.data, dtype=self._float_dtype).tobytes())

        payload = b"".join(parts)
        logger.debug("Encoded %d tensors into %d bytes", len(records), len(payload))
        return payload

    def decode(self, data: Union[bytes, memoryview]) -> List[CodecEntry]:
        """Decode a complete payload; raises ``CorruptData`` on malformed input."""
        reader = _Reader(data, self._size_field)
        count = reader.size("tensor count")

        entries = []
        for index in range(count):
            name = self._decode_text(reader.take(reader.size("name length"), "name"))
            description = self._decode_text(
                reader.take(reader.size("description length"), "description")
            )

            rank = reader.size("rank")
            if rank * self._size_field.size > reader.remaining:
                raise CorruptData(f"Rank {rank} of '{name}' exceeds remaining data",
                                  name=name, offset=reader.offset)
            shape = tuple(reader.size("dimension") for _ in range(rank))

            data_size = reader.size("data size")
            raw = reader.take(data_size * self._float_dtype.itemsize, "tensor data")
            values = np.frombuffer(raw, dtype=self._float_dtype).astype(DTYPE)

            entries.append(CodecEntry(name, description, self._build_tensor(name, shape, values)))

        if reader.remaining:
            raise CorruptData(f"{reader.remaining} trailing bytes after {count} tensors",
                              offset=reader.offset)

        logger.debug("Decoded %d tensors", len(entries))
        return entries

    @staticmethod
    def _build_tensor(name: str, shape: Tuple[int, ...], values: np.ndarray) -> Tensor:
        if not shape and values.size == 0:
            return Tensor()
        try:
            return Tensor(shape, values)
        except TensorError as exc:
            raise CorruptData(f"Invalid tensor '{name}': {exc}", name=name) from exc

    def write_file(self, path: PathLike, entries: Iterable[Tuple[str, str, Tensor]]) -> int:
        """Write records to ``path``; returns the number of bytes written."""
        payload = self.encode(entries)
        with open(path, 'wb') as f:
            f.write(payload)
        return len(payload)

    def read_file(self, path: PathLike) -> List[CodecEntry]:
        with open(path, 'rb') as f:
            payload = f.read()
        return self.decode(payload)
