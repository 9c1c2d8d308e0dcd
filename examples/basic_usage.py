"""
Basic usage examples for imfilter.
"""

from __future__ import annotations

import numpy as np

from imfilter import BilateralImageFilter, FilterParameters, bilateral_filter


def _noisy_step(height: int = 128, width: int = 128) -> np.ndarray:
    img = np.zeros((height, width, 3), dtype=np.float64)
    img[:, width // 2:] = 200.0
    img += np.random.normal(0.0, 12.0, size=img.shape)
    return np.clip(img, 0, 255).astype(np.uint8)


def example_simple() -> np.ndarray:
    """Run the filter with default parameters."""

    img = _noisy_step()
    smoother = BilateralImageFilter()
    out = smoother.process(img)
    print(f"Simple example std on flat side: {img[:, :32].std():0.2f} -> {out[:, :32].std():0.2f}")
    return out


def example_repetitions() -> dict:
    """Chain three passes on four threads and keep the intermediate results."""

    img = _noisy_step()
    params = FilterParameters(spatial_sigma=1.5, intensity_sigma=0.1, repetitions=3, nthreads=4)
    results = BilateralImageFilter(params).process(img, return_intermediate=True)
    print(f"Repetition example produced {len(results['snapshots'])} snapshots")
    return results


def example_convenience_function() -> np.ndarray:
    """Filter using the one-call wrapper."""

    img = _noisy_step(64, 64)
    out = bilateral_filter(img, spatial_sigma=2.0, intensity_sigma=0.15)
    print(f"Convenience example output range: [{out.min()}, {out.max()}]")
    return out


if __name__ == "__main__":
    print("Running imfilter basic examples...")
    example_simple()
    example_repetitions()
    example_convenience_function()
