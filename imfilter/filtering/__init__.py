"""Bilateral filtering kernels and row-band scheduling."""

from imfilter.filtering.bilateral import (
    clipped_radii,
    filter_image,
    filter_pixel,
    filter_rows,
    support_radius,
    support_window,
)
from imfilter.filtering.scheduler import partition_rows, run_bands

__all__ = [
    "clipped_radii",
    "filter_image",
    "filter_pixel",
    "filter_rows",
    "support_radius",
    "support_window",
    "partition_rows",
    "run_bands",
]
