"""
Row partitioning and barrier-synchronized dispatch of band workers.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)

Band = Tuple[int, int]


def partition_rows(height: int, nworkers: int) -> List[Band]:
    """
    Split ``[0, height)`` into contiguous, disjoint, non-empty row bands.

    At most ``nworkers`` bands are returned; leftover rows go to the first
    bands so band sizes differ by at most one.
    """

    if height <= 0:
        return []

    nbands = max(1, min(nworkers, height))
    base, extra = divmod(height, nbands)

    bands: List[Band] = []
    start = 0
    for index in range(nbands):
        stop = start + base + (1 if index < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


def run_bands(
    worker: Callable[[int, int], None],
    height: int,
    nthreads: int,
) -> None:
    """
    Run ``worker(start, stop)`` over every row band and wait for all of them.

    Returns only once every band is finished, so callers may touch the
    output afterwards. The first worker exception is re-raised.
    """

    bands = partition_rows(height, nthreads)

    if len(bands) <= 1:
        for start, stop in bands:
            worker(start, stop)
        return

    logger.debug("Dispatching %d row bands to %d threads", len(bands), nthreads)
    with ThreadPoolExecutor(max_workers=len(bands)) as executor:
        futures = [executor.submit(worker, start, stop) for start, stop in bands]
        for future in futures:
            future.result()
