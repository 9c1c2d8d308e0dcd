"""
Bilateral filtering on torch tensors.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np
import torch
import torch.nn.functional as F

from imfilter.core.config import FilterParameters, Quantization
from imfilter.filtering.bilateral import SnapshotCallback, clipped_radii, validate_image
from imfilter.torch.common import default_device, ensure_tensor, hwc_to_nchw, nchw_to_hwc
from imfilter.utils.color import LUMINANCE_WEIGHTS

logger = logging.getLogger(__name__)


class TorchBilateralFilter:
    """
    Bilateral filter using torch unfold for GPU execution.

    Taps that ``unfold`` pads outside the image are masked out with an
    unfolded all-ones tensor, giving the same clipped window as the numpy
    implementation. ``nthreads`` is not used here.
    """

    def __init__(
        self,
        params: Optional[FilterParameters] = None,
        device: Optional[torch.device] = None,
        dtype: torch.dtype = torch.float32,
    ) -> None:
        self.params = params or FilterParameters()
        self.params.validate()

        self.device = device or default_device()
        self.dtype = dtype
        self._spatial_terms: Dict[Tuple[int, int], torch.Tensor] = {}

        logger.info("Initializing TorchBilateralFilter (%s)", self.device)

    def _prepare_spatial_terms(self, radius_y: int, radius_x: int) -> torch.Tensor:
        cached = self._spatial_terms.get((radius_y, radius_x))
        if cached is not None:
            return cached

        yy, xx = torch.meshgrid(
            torch.arange(-radius_y, radius_y + 1, device=self.device, dtype=self.dtype),
            torch.arange(-radius_x, radius_x + 1, device=self.device, dtype=self.dtype),
            indexing="ij",
        )
        sigma = self.params.spatial_sigma
        if sigma > 0:
            spatial = (xx**2 + yy**2) / (2.0 * sigma**2)
        else:
            spatial = torch.zeros_like(xx)
        self._spatial_terms[(radius_y, radius_x)] = spatial.reshape(1, -1, 1)
        return self._spatial_terms[(radius_y, radius_x)]

    def _filter_once(self, img: torch.Tensor) -> torch.Tensor:
        """Filter a working-form NCHW tensor once."""

        n, c, h, w = img.shape
        ry, rx = clipped_radii(self.params.spatial_sigma, h, w)
        kernel_size = (2 * ry + 1, 2 * rx + 1)
        taps = kernel_size[0] * kernel_size[1]

        patches = F.unfold(img, kernel_size=kernel_size, padding=(ry, rx)).reshape(n, c, taps, h * w)
        valid = F.unfold(
            torch.ones((1, 1, h, w), device=img.device, dtype=img.dtype),
            kernel_size=kernel_size,
            padding=(ry, rx),
        )

        lum_weights = torch.as_tensor(LUMINANCE_WEIGHTS, device=img.device, dtype=img.dtype)
        lum_patches = (patches * lum_weights.reshape(1, 3, 1, 1)).sum(dim=1)
        center = (img * lum_weights.reshape(1, 3, 1, 1)).sum(dim=1).reshape(n, 1, h * w)

        exponent = -self._prepare_spatial_terms(ry, rx)
        sigma_b = self.params.intensity_sigma
        if sigma_b > 0:
            exponent = exponent - (center - lum_patches) ** 2 / (2.0 * sigma_b**2)

        weights = torch.exp(exponent) * valid
        filtered = (weights.unsqueeze(1) * patches).sum(dim=2) / weights.sum(dim=1, keepdim=True)
        return filtered.reshape(n, c, h, w)

    def _quantize(self, img: torch.Tensor) -> torch.Tensor:
        scaled = img * 255.0
        if self.params.quantization == Quantization.ROUND:
            scaled = torch.floor(scaled + 0.5)
        else:
            # float32 averages of a constant land a few ulps below it
            scaled = torch.trunc(scaled + 64.0 * 255.0 * torch.finfo(self.dtype).eps)
        return torch.clamp(scaled, 0.0, 255.0)

    def process(
        self,
        image: np.ndarray,
        snapshot: Optional[SnapshotCallback] = None,
    ) -> np.ndarray:
        """
        Filter an H×W×3 uint8 image for ``params.repetitions`` passes.
        """

        validate_image(image)

        stored = hwc_to_nchw(ensure_tensor(image, device=self.device, dtype=self.dtype))
        reps = self.params.repetitions

        with torch.no_grad():
            for rep in range(reps):
                stored = self._quantize(self._filter_once(stored / 255.0))
                logger.info("Repetition %d/%d complete", rep + 1, reps)
                if rep < reps - 1 and snapshot is not None:
                    snapshot(rep, self._to_numpy(stored))

        return self._to_numpy(stored)

    @staticmethod
    def _to_numpy(stored: torch.Tensor) -> np.ndarray:
        return nchw_to_hwc(stored).to(torch.uint8).cpu().numpy()
