"""Bilateral image filter (imfilter).

Edge-preserving smoothing of 8-bit RGB images with repeated bilateral
passes, a row-partitioned worker pool and an optional PyTorch backend.
"""

from imfilter.core.config import Backend, FilterParameters, Quantization, RunConfig
from imfilter.core.errors import ConfigurationError, ImageIOError, ImfilterError
from imfilter.core.pipeline import BilateralImageFilter, bilateral_filter
from imfilter.filtering.bilateral import filter_image, filter_pixel, support_radius
from imfilter.io.image import ImageBuffer

__all__ = [
    "BilateralImageFilter",
    "FilterParameters",
    "RunConfig",
    "Quantization",
    "Backend",
    "ImageBuffer",
    "ImfilterError",
    "ConfigurationError",
    "ImageIOError",
    "bilateral_filter",
    "filter_image",
    "filter_pixel",
    "support_radius",
]

try:  # Optional PyTorch acceleration
    from imfilter.torch import TorchBilateralFilter  # type: ignore

    __all__.append("TorchBilateralFilter")
except ImportError:  # pragma: no cover - torch not installed
    TorchBilateralFilter = None  # type: ignore

__version__ = "1.0.0"
