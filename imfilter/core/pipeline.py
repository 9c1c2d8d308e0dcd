"""
Main imfilter processing pipeline.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

import numpy as np

from imfilter.core.config import FilterParameters, Quantization
from imfilter.filtering.bilateral import (
    SnapshotCallback,
    filter_image,
    support_radius,
    validate_image,
)

logger = logging.getLogger(__name__)


class BilateralImageFilter:
    """
    Repeated bilateral smoothing of 8-bit RGB images.

    Each repetition filters the result of the previous one. The caller's
    array is never modified.
    """

    def __init__(self, params: Optional[FilterParameters] = None) -> None:
        self.params = params or FilterParameters()
        self.params.validate()

        logger.info("Initializing bilateral filter")
        logger.info(
            "  Sigmas: spatial=%g intensity=%g (support radius %d)",
            self.params.spatial_sigma,
            self.params.intensity_sigma,
            support_radius(self.params.spatial_sigma),
        )
        logger.info(
            "  Repetitions: %d, threads: %d, quantization: %s",
            self.params.repetitions,
            self.params.nthreads,
            self.params.quantization.value,
        )

        if support_radius(self.params.spatial_sigma) == 0:
            logger.warning(
                "Spatial sigma %g gives a single-pixel window: no smoothing is applied.",
                self.params.spatial_sigma,
            )

    def process(
        self,
        image: np.ndarray,
        snapshot: Optional[SnapshotCallback] = None,
        return_intermediate: bool = False,
    ) -> Union[np.ndarray, Dict[str, Union[np.ndarray, List[np.ndarray]]]]:
        """
        Filter an H×W×3 uint8 image.

        ``snapshot(rep, image)`` is called with the result of every repetition
        except the last. With ``return_intermediate`` a dict holding
        ``input``, ``snapshots`` and ``output`` is returned instead of the
        output array.
        """

        validate_image(image)

        logger.info("Filtering image: %dx%d", image.shape[1], image.shape[0])

        imagein = np.array(image, dtype=np.uint8, copy=True)
        imageout = np.empty_like(imagein)

        snapshots: List[np.ndarray] = []

        def _collect(rep: int, current: np.ndarray) -> None:
            if return_intermediate:
                snapshots.append(current.copy())
            if snapshot is not None:
                snapshot(rep, current)

        filter_image(imagein, imageout, self.params, snapshot=_collect)

        if return_intermediate:
            return {"input": image, "snapshots": snapshots, "output": imageout}

        return imageout


def bilateral_filter(
    image: np.ndarray,
    spatial_sigma: float = 1.0,
    intensity_sigma: float = 0.1,
    repetitions: int = 1,
    nthreads: int = 1,
    quantization: Quantization = Quantization.ROUND,
) -> np.ndarray:
    """
    Convenience wrapper for one-off filtering.
    """

    params = FilterParameters(
        spatial_sigma=spatial_sigma,
        intensity_sigma=intensity_sigma,
        repetitions=repetitions,
        nthreads=nthreads,
        quantization=quantization,
    )

    smoother = BilateralImageFilter(params)
    return smoother.process(image)
