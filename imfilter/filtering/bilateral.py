"""
Edge-preserving bilateral filtering of 8-bit RGB images.

Every output pixel is a weighted average over a square support window of
radius ``floor(3 * spatial_sigma)`` clipped to the image. A neighbor's weight
is ``exp(-d1 - d2)`` where ``d1`` is its squared distance over
``2 * spatial_sigma**2`` and ``d2`` is the squared luminance difference to
the center over ``2 * intensity_sigma**2``. A sigma of 0 switches its term
off.
"""

from __future__ import annotations

import logging
import math
from functools import partial
from typing import Callable, Optional, Tuple

import numpy as np
from scipy import ndimage

from imfilter.core.config import FilterParameters, Quantization
from imfilter.core.errors import ConfigurationError
from imfilter.filtering.scheduler import run_bands
from imfilter.utils.color import luminance, to_stored, to_working

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[int, np.ndarray], None]


def support_radius(spatial_sigma: float) -> int:
    """Half-width of the support window for ``spatial_sigma``."""

    return int(math.floor(3.0 * spatial_sigma))


def clipped_radii(spatial_sigma: float, height: int, width: int) -> Tuple[int, int]:
    """
    Row and column radii of the support window, capped at the image extent.

    Offsets beyond ``height - 1`` rows or ``width - 1`` columns can never
    reach a pixel inside the image.
    """

    radius = support_radius(spatial_sigma)
    return min(radius, height - 1), min(radius, width - 1)


def support_window(
    x: int,
    y: int,
    width: int,
    height: int,
    spatial_sigma: float,
) -> Tuple[int, int, int, int]:
    """
    Inclusive window ``(x1, x2, y1, y2)`` around ``(x, y)`` clipped to the image.
    """

    radius = support_radius(spatial_sigma)
    return (
        max(x - radius, 0),
        min(x + radius, width - 1),
        max(y - radius, 0),
        min(y + radius, height - 1),
    )


def validate_image(image: np.ndarray, name: str = "image") -> None:
    """Check that ``image`` is a non-empty H×W×3 uint8 array."""

    if not isinstance(image, np.ndarray):
        raise ConfigurationError(f"{name} must be a numpy array, got {type(image).__name__}")
    if image.ndim != 3 or image.shape[2] != 3:
        raise ConfigurationError(f"Expected H×W×3 {name}, got shape {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ConfigurationError(f"{name} must have positive width and height")
    if image.dtype != np.uint8:
        raise ConfigurationError(f"Expected uint8 {name}, got {image.dtype}")


def filter_pixel(
    image: np.ndarray,
    x: int,
    y: int,
    spatial_sigma: float,
    intensity_sigma: float,
    quantization: Quantization = Quantization.ROUND,
) -> np.ndarray:
    """
    Compute the filtered color of one pixel.

    Parameters
    ----------
    image : np.ndarray
        Stored-form input image, shape (H, W, 3), uint8
    x, y : int
        Column and row of the target pixel
    spatial_sigma : float
        Standard deviation of the distance falloff (0 disables it)
    intensity_sigma : float
        Standard deviation of the luminance falloff (0 disables it)
    quantization : Quantization
        Mapping of the filtered value back to 8 bits

    Returns
    -------
    np.ndarray
        Filtered pixel, shape (3,), uint8
    """

    height, width = image.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        raise IndexError(f"Pixel ({x}, {y}) outside {width}x{height} image")

    x1, x2, y1, y2 = support_window(x, y, width, height, spatial_sigma)
    window = to_working(image[y1:y2 + 1, x1:x2 + 1])
    center = to_working(image[y, x])

    d1 = np.zeros(window.shape[:2])
    if spatial_sigma > 0:
        ys, xs = np.mgrid[y1:y2 + 1, x1:x2 + 1]
        d1 = ((xs - x) ** 2 + (ys - y) ** 2) / (2.0 * spatial_sigma * spatial_sigma)

    d2 = np.zeros(window.shape[:2])
    if intensity_sigma > 0:
        diff = luminance(center - window)
        d2 = diff * diff / (2.0 * intensity_sigma * intensity_sigma)

    weights = np.exp(-d1 - d2)
    color = np.sum(weights[:, :, np.newaxis] * window, axis=(0, 1))
    return to_stored(color / np.sum(weights), quantization)


def _spatial_kernel(spatial_sigma: float, radius_y: int, radius_x: int) -> np.ndarray:
    yy, xx = np.meshgrid(
        np.arange(-radius_y, radius_y + 1, dtype=np.float64),
        np.arange(-radius_x, radius_x + 1, dtype=np.float64),
        indexing="ij",
    )
    if spatial_sigma <= 0:
        return np.ones_like(xx)
    return np.exp(-(xx**2 + yy**2) / (2.0 * spatial_sigma * spatial_sigma))


def _filter_band_generic(
    src: np.ndarray,
    lum: np.ndarray,
    start: int,
    stop: int,
    spatial_sigma: float,
    intensity_sigma: float,
) -> np.ndarray:
    """
    Weighted window average for rows ``[start, stop)``, one offset at a time.

    For offset ``(dx, dy)`` only the output pixels whose neighbor lies inside
    the image are updated, which reproduces the clipped support window.
    """

    height, width = src.shape[:2]
    radius_y, radius_x = clipped_radii(spatial_sigma, height, width)
    two_b2 = 2.0 * intensity_sigma * intensity_sigma
    two_s2 = 2.0 * spatial_sigma * spatial_sigma

    acc = np.zeros((stop - start, width, 3))
    weight_sum = np.zeros((stop - start, width))

    for dy in range(-radius_y, radius_y + 1):
        y0, y1 = max(start, -dy), min(stop, height - dy)
        if y0 >= y1:
            continue
        for dx in range(-radius_x, radius_x + 1):
            x0, x1 = max(0, -dx), min(width, width - dx)
            if x0 >= x1:
                continue

            d1 = (dx * dx + dy * dy) / two_s2 if spatial_sigma > 0 else 0.0
            diff = lum[y0:y1, x0:x1] - lum[y0 + dy:y1 + dy, x0 + dx:x1 + dx]
            weights = np.exp(-d1 - diff * diff / two_b2)

            neighbor = src[y0 + dy:y1 + dy, x0 + dx:x1 + dx]
            acc[y0 - start:y1 - start, x0:x1] += weights[:, :, np.newaxis] * neighbor
            weight_sum[y0 - start:y1 - start, x0:x1] += weights

    return acc / weight_sum[:, :, np.newaxis]


def _filter_band_spatial(
    src: np.ndarray,
    start: int,
    stop: int,
    spatial_sigma: float,
) -> np.ndarray:
    """
    Spatial-only average for rows ``[start, stop)`` as a normalized correlation.

    Zero padding outside the image drops those taps from both the weighted
    sum and the normalizer, matching the clipped window.
    """

    height, width = src.shape[:2]
    radius_y, radius_x = clipped_radii(spatial_sigma, height, width)
    lo, hi = max(start - radius_y, 0), min(stop + radius_y, height)
    band = src[lo:hi]

    kernel = _spatial_kernel(spatial_sigma, radius_y, radius_x)
    weighted = ndimage.correlate(band, kernel[:, :, np.newaxis], mode="constant", cval=0.0)
    norm = ndimage.correlate(np.ones(band.shape[:2]), kernel, mode="constant", cval=0.0)

    return weighted[start - lo:stop - lo] / norm[start - lo:stop - lo, :, np.newaxis]


def filter_rows(
    src: np.ndarray,
    lum: np.ndarray,
    out: np.ndarray,
    start: int,
    stop: int,
    spatial_sigma: float,
    intensity_sigma: float,
    quantization: Quantization = Quantization.ROUND,
) -> None:
    """
    Filter rows ``[start, stop)`` of a working-form image into ``out``.

    ``src`` and ``lum`` are the working-form image and its luminance; only
    ``out[start:stop]`` is written.
    """

    if intensity_sigma > 0:
        filtered = _filter_band_generic(src, lum, start, stop, spatial_sigma, intensity_sigma)
    else:
        filtered = _filter_band_spatial(src, start, stop, spatial_sigma)
    out[start:stop] = to_stored(filtered, quantization)


def filter_image(
    imagein: np.ndarray,
    imageout: np.ndarray,
    params: FilterParameters,
    snapshot: Optional[SnapshotCallback] = None,
) -> None:
    """
    Run ``params.repetitions`` bilateral passes from ``imagein`` into ``imageout``.

    Every pass reads only ``imagein``. After each pass except the last,
    ``snapshot(rep, imageout)`` is called and ``imageout`` is copied into
    ``imagein`` so the next pass filters the previous result. Both arrays
    are modified in place.
    """

    validate_image(imagein, "input image")
    validate_image(imageout, "output image")
    if imagein.shape != imageout.shape:
        raise ConfigurationError(
            f"Output shape {imageout.shape} does not match input shape {imagein.shape}"
        )
    if np.shares_memory(imagein, imageout):
        raise ConfigurationError("Input and output images must not share memory")

    height = imagein.shape[0]

    for rep in range(params.repetitions):
        src = to_working(imagein)
        lum = luminance(src)
        worker = partial(
            filter_rows,
            src,
            lum,
            imageout,
            spatial_sigma=params.spatial_sigma,
            intensity_sigma=params.intensity_sigma,
            quantization=params.quantization,
        )
        run_bands(worker, height, params.nthreads)
        logger.info("Repetition %d/%d complete", rep + 1, params.repetitions)

        if rep < params.repetitions - 1:
            if snapshot is not None:
                snapshot(rep, imageout)
            np.copyto(imagein, imageout)
