"""
Tensor registry implementation for tensordb.

This module provides a named store of tensors with metadata, tag and
shape queries, derived computation and binary persistence. Lookups and
mutations report failure through return values instead of raising.
"""

from __future__ import annotations
import logging
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..config import RegistryConfig
from ..codecs.codec import PathLike, RegistryCodec
from ..exceptions import NotFound, TensorDBError
from ..types.aliases import ByteSize
from ..types.descriptors import TensorMetadata, RegistryStats
from ..types.enums import ErrorKind, Operation
from .result import Result
from .tensor import DTYPE, Tensor

logger = logging.getLogger(__name__)

_OPERATIONS: Dict[Operation, Callable[[Tensor, Tensor], Tensor]] = {
    Operation.ADD: lambda a, b: a + b,
    Operation.SUB: lambda a, b: a - b,
    Operation.MUL: lambda a, b: a * b,
    Operation.DIV: lambda a, b: a / b,
    Operation.MATMUL: lambda a, b: a.matmul(b),
}


class _Entry:
    __slots__ = ('tensor', 'metadata')

    def __init__(self, tensor: Tensor, metadata: TensorMetadata):
        self.tensor = tensor
        self.metadata = metadata

    def refresh(self) -> None:
        self.metadata.shape = self.tensor.shape
        self.metadata.size = self.tensor.size
        self.metadata.modified = datetime.now()


class TensorRegistry:
    """Named tensor store with metadata, queries and persistence."""

    __slots__ = ('_entries', '_config', '_codec')

    def __init__(self, config: Optional[RegistryConfig] = None, **kwargs):
        self._config = config if config is not None else RegistryConfig(**kwargs)
        self._entries: Dict[str, _Entry] = {}
        self._codec = RegistryCodec(self._config)

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def _sorted_entries(self) -> Iterator[Tuple[str, _Entry]]:
        for name in sorted(self._entries):
            yield name, self._entries[name]

    # CRUD

    def store(self, name: str, tensor: Tensor, description: str = "") -> None:
        """Insert or overwrite ``name`` with a copy of ``tensor`` and fresh metadata."""
        now = datetime.now()
        metadata = TensorMetadata(
            name=name,
            description=description,
            shape=tensor.shape,
            size=tensor.size,
            created=now,
            modified=now
        )
        self._entries[name] = _Entry(tensor.copy(), metadata)
        logger.debug("Stored tensor '%s' with shape %s", name, tensor.shape_string())

    def get(self, name: str) -> Optional[Tensor]:
        entry = self._entries.get(name)
        if entry is None:
            return None
        return entry.tensor.copy()

    def get_ref(self, name: str) -> Tensor:
        """Return the stored tensor itself; raises ``NotFound`` if absent."""
        entry = self._entries.get(name)
        if entry is None:
            raise NotFound(f"Tensor not found: {name}", name=name)
        return entry.tensor

    def update(self, name: str, tensor: Tensor) -> bool:
        """Replace the tensor of an existing entry, keeping its creation time and tags."""
        entry = self._entries.get(name)
        if entry is None:
            logger.debug("Update of missing tensor '%s' ignored", name)
            return False

        entry.tensor = tensor.copy()
        entry.refresh()
        return True

    def remove(self, name: str) -> bool:
        removed = self._entries.pop(name, None) is not None
        if removed:
            logger.debug("Removed tensor '%s'", name)
        return removed

    def exists(self, name: str) -> bool:
        return name in self._entries

    def list_names(self) -> List[str]:
        return sorted(self._entries)

    def count(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def items(self) -> Iterator[Tuple[str, Tensor]]:
        """Iterate ``(name, tensor copy)`` pairs in name order."""
        for name, entry in self._sorted_entries():
            yield name, entry.tensor.copy()

    # Metadata

    def get_metadata(self, name: str) -> Optional[TensorMetadata]:
        entry = self._entries.get(name)
        if entry is None:
            return None
        return entry.metadata.copy()

    def set_tag(self, name: str, key: str, value: str) -> bool:
        entry = self._entries.get(name)
        if entry is None:
            return False
        entry.metadata.tags[key] = value
        return True

    def get_tag(self, name: str, key: str) -> Optional[str]:
        entry = self._entries.get(name)
        if entry is None:
            return None
        return entry.metadata.tags.get(key)

    # Queries

    def find_by_shape(self, shape: Sequence[int]) -> List[str]:
        shape = tuple(shape)
        return [name for name, entry in self._sorted_entries() if entry.tensor.shape == shape]

    def find_by_rank(self, rank: int) -> List[str]:
        return [name for name, entry in self._sorted_entries() if entry.tensor.rank == rank]

    def find_by_tag(self, key: str, value: str) -> List[str]:
        return [
            name for name, entry in self._sorted_entries()
            if entry.metadata.tags.get(key) == value
        ]

    # Derived computation

    def compute(self, result_name: str, a: str, b: str, operation: str) -> bool:
        """Store ``a <operation> b`` under ``result_name``; never raises."""
        return self.compute_result(result_name, a, b, operation).ok

    def compute_result(self, result_name: str, a: str, b: str, operation: str) -> Result[Tensor]:
        left = self._entries.get(a)
        right = self._entries.get(b)
        if left is None or right is None:
            missing = a if left is None else b
            logger.debug("compute '%s' skipped: tensor '%s' not found", result_name, missing)
            return Result.failure(ErrorKind.NOT_FOUND, f"Tensor not found: {missing}")

        op = Operation.parse(operation)
        if op is None:
            logger.debug("compute '%s' skipped: unknown operation '%s'", result_name, operation)
            return Result.failure(ErrorKind.UNKNOWN_OPERATION, f"Unknown operation: {operation}")

        try:
            result = _OPERATIONS[op](left.tensor, right.tensor)
        except Exception as exc:
            logger.warning("compute '%s' = %s %s %s failed: %s", result_name, a, operation, b, exc)
            return Result.from_exception(exc)

        self.store(result_name, result, f"Computed: {a} {operation} {b}")
        return Result.success(result.copy())

    def apply(self, name: str, func: Callable[[Tensor], Optional[Tensor]]) -> bool:
        """Run ``func`` on the stored tensor.

        ``func`` may mutate the tensor in place or return a replacement.
        Exceptions raised by ``func`` propagate to the caller.
        """
        entry = self._entries.get(name)
        if entry is None:
            return False

        replacement = func(entry.tensor)
        if isinstance(replacement, Tensor):
            entry.tensor = replacement.copy()
        entry.refresh()
        return True

    # Persistence

    def save_to_file(self, path: PathLike) -> bool:
        records = [
            (name, entry.metadata.description, entry.tensor)
            for name, entry in self._sorted_entries()
        ]
        try:
            written = self._codec.write_file(path, records)
        except (OSError, TensorDBError) as exc:
            logger.error("Failed to save registry to %s: %s", path, exc)
            return False

        logger.info("Saved %d tensors (%d bytes) to %s", len(records), written, path)
        return True

    def load_from_file(self, path: PathLike) -> bool:
        return self.load_result(path).ok

    def load_result(self, path: PathLike) -> Result[int]:
        """Replace the registry contents with the tensors stored in ``path``.

        An unreadable file leaves the registry untouched. A malformed file
        leaves it untouched under ``atomic_load``, and empty otherwise.
        """
        try:
            with open(path, 'rb') as f:
                payload = f.read()
        except OSError as exc:
            logger.error("Failed to read registry file %s: %s", path, exc)
            return Result.from_exception(exc)

        if not self._config.atomic_load:
            self.clear()

        try:
            entries = self._codec.decode(payload)
        except TensorDBError as exc:
            logger.error("Failed to load registry from %s: %s", path, exc)
            return Result.from_exception(exc)

        self.clear()
        for entry in entries:
            self.store(entry.name, entry.tensor, entry.description)

        logger.info("Loaded %d tensors from %s", len(entries), path)
        return Result.success(len(entries))

    # Statistics

    def get_stats(self) -> RegistryStats:
        total_elements = 0
        ranks: Counter = Counter()

        for entry in self._entries.values():
            total_elements += entry.tensor.size
            ranks[entry.tensor.rank] += 1

        return RegistryStats(
            tensor_count=len(self._entries),
            total_elements=total_elements,
            total_memory_bytes=ByteSize(total_elements * DTYPE().itemsize),
            rank_distribution=dict(sorted(ranks.items()))
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_names())

    def __repr__(self) -> str:
        return f"TensorRegistry(count={len(self._entries)}, atomic_load={self._config.atomic_load})"
