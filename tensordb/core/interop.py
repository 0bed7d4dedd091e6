"""
Conversions between tensordb tensors and numpy / PyTorch arrays.
"""

from __future__ import annotations

import numpy as np
import torch

from .tensor import DTYPE, Tensor


def from_numpy(array: np.ndarray) -> Tensor:
    """Copy a numpy array into a float32 tensor."""
    array = np.asarray(array)
    if array.size == 0:
        return Tensor()
    if array.ndim == 0:
        return Tensor.scalar(float(array))
    return Tensor(array.shape, array)


def to_numpy(tensor: Tensor) -> np.ndarray:
    return tensor.numpy()


def from_torch(tensor: torch.Tensor) -> Tensor:
    """Copy a PyTorch tensor (any device, any float dtype) into a tensor."""
    if not isinstance(tensor, torch.Tensor):
        raise TypeError("Expected torch.Tensor")

    if tensor.is_cuda:
        tensor = tensor.cpu()
    if not tensor.is_contiguous():
        tensor = tensor.contiguous()

    return from_numpy(tensor.detach().to(torch.float32).numpy())


def to_torch(tensor: Tensor) -> torch.Tensor:
    if tensor.empty:
        return torch.empty(0, dtype=torch.float32)
    array = np.ascontiguousarray(tensor.numpy(), dtype=DTYPE)
    return torch.from_numpy(array).reshape(tensor.shape)
