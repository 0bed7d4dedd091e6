from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, NamedTuple

from .aliases import Shape, ByteSize

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_shape(shape: Shape) -> str:
    return "(" + ", ".join(str(dim) for dim in shape) + ")"


class Point3D(NamedTuple):
    x: float
    y: float
    z: float


@dataclass
class TensorMetadata:
    name: str
    description: str
    shape: Shape
    size: int
    created: datetime = field(default_factory=datetime.now)
    modified: datetime = field(default_factory=datetime.now)
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def rank(self) -> int:
        return len(self.shape)

    def shape_string(self) -> str:
        return format_shape(self.shape)

    def created_string(self) -> str:
        return self.created.strftime(_TIMESTAMP_FORMAT)

    def modified_string(self) -> str:
        return self.modified.strftime(_TIMESTAMP_FORMAT)

    def copy(self) -> TensorMetadata:
        return replace(self, tags=dict(self.tags))

    def __str__(self) -> str:
        return (
            f"TensorMetadata(name={self.name}, shape={self.shape_string()}, "
            f"size={self.size}, modified={self.modified_string()})"
        )


@dataclass(frozen=True)
class RegistryStats:
    tensor_count: int = 0
    total_elements: int = 0
    total_memory_bytes: ByteSize = ByteSize(0)
    rank_distribution: Dict[int, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            'tensor_count': self.tensor_count,
            'total_elements': self.total_elements,
            'total_memory_bytes': self.total_memory_bytes,
            'rank_distribution': dict(self.rank_distribution),
        }
