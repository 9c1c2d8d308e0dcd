"""
Shared helpers for the torch-based imfilter backend.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import torch


def default_device() -> torch.device:
    """CUDA when available, otherwise CPU."""

    return torch.device("cuda" if torch.cuda.is_available() else "cpu")


def ensure_tensor(
    data,
    device: Optional[torch.device] = None,
    dtype: torch.dtype = torch.float32,
) -> torch.Tensor:
    """
    Convert input data to a torch tensor on the requested device.
    """

    if isinstance(data, torch.Tensor):
        tensor = data.to(dtype=dtype)
        if device is not None:
            tensor = tensor.to(device)
        return tensor

    return torch.as_tensor(np.asarray(data), dtype=dtype, device=device)


def hwc_to_nchw(img: torch.Tensor) -> torch.Tensor:
    """
    Reshape an H×W×C image tensor to NCHW with a batch of one.
    """

    if img.dim() != 3:
        raise ValueError(f"Expected H×W×C tensor, got rank {img.dim()}")

    return img.permute(2, 0, 1).unsqueeze(0)


def nchw_to_hwc(img: torch.Tensor) -> torch.Tensor:
    """
    Convert a single-image NCHW tensor back to H×W×C.
    """

    if img.dim() != 4:
        raise ValueError("Expected NCHW tensor with a batch dimension.")

    if img.shape[0] != 1:
        raise ValueError("Batch size > 1 is not supported yet.")

    return img.squeeze(0).permute(1, 2, 0)
