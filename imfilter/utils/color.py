"""
Pixel representation helpers: luminance and stored/working form conversion.
"""

from __future__ import annotations

import numpy as np

from imfilter.core.config import Quantization

# Perceptual weights used to summarize an RGB difference as one intensity
LUMINANCE_WEIGHTS = np.array([0.2125, 0.7154, 0.0721])

# Weighted averages of a constant can land a few ulps below it; truncation
# must still return the constant
TRUNCATE_TOLERANCE = 1e-9


def luminance(rgb: np.ndarray) -> np.ndarray:
    """
    Compute the intensity of working-form RGB values.

    Parameters
    ----------
    rgb : np.ndarray
        Working-form colors, shape (..., 3)
    """

    return np.dot(rgb, LUMINANCE_WEIGHTS)


def to_working(pixels: np.ndarray) -> np.ndarray:
    """Convert stored uint8 values to floats in [0, 1]."""

    return pixels.astype(np.float64) / 255.0


def to_stored(
    values: np.ndarray,
    quantization: Quantization = Quantization.ROUND,
) -> np.ndarray:
    """
    Quantize working-form values back to uint8.

    ``ROUND`` rounds half up, ``TRUNCATE`` drops the fractional part after
    adding ``TRUNCATE_TOLERANCE``. Both saturate to [0, 255].
    """

    scaled = np.asarray(values, dtype=np.float64) * 255.0
    if quantization == Quantization.ROUND:
        scaled = np.floor(scaled + 0.5)
    else:
        scaled = np.trunc(scaled + TRUNCATE_TOLERANCE)
    return np.clip(scaled, 0.0, 255.0).astype(np.uint8)
