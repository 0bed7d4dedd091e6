from __future__ import annotations
from functools import lru_cache

from .config import RegistryConfig
from .core.registry import TensorRegistry


@lru_cache(maxsize=1)
def get_default_registry() -> TensorRegistry:
    return TensorRegistry()


def create_registry(**kwargs) -> TensorRegistry:
    return TensorRegistry(RegistryConfig(**kwargs))


def create_compat_registry() -> TensorRegistry:
    return TensorRegistry(RegistryConfig(
        atomic_load=False  # clear before decoding, as older builds did
    ))


def create_portable_registry() -> TensorRegistry:
    return TensorRegistry(RegistryConfig(
        byte_order='<'  # little-endian files regardless of host
    ))
