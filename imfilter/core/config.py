"""
Configuration primitives for imfilter.

Defines enums for quantization and compute backend, plus frozen dataclasses
collecting the filter parameters and the settings of one command-line run.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from imfilter.core.errors import ConfigurationError


class Quantization(Enum):
    """How filtered [0, 1] values are mapped back to 8-bit channels."""

    ROUND = "round"        # Round half up, saturated
    TRUNCATE = "truncate"  # Drop the fractional part, saturated


class Backend(Enum):
    """Compute backend for the filtering pass."""

    NUMPY = "numpy"
    TORCH = "torch"


@dataclass(frozen=True)
class FilterParameters:
    """
    Parameters of a bilateral filtering pass.

    ``spatial_sigma`` also fixes the support window radius at
    ``floor(3 * spatial_sigma)`` pixels.
    """

    spatial_sigma: float = 1.0
    intensity_sigma: float = 0.1
    repetitions: int = 1
    nthreads: int = 1
    quantization: Quantization = Quantization.ROUND

    def validate(self) -> None:
        """Validate parameter ranges."""

        if not self.spatial_sigma >= 0:
            raise ConfigurationError(f"Spatial sigma {self.spatial_sigma} must be >= 0")

        if not self.intensity_sigma >= 0:
            raise ConfigurationError(f"Intensity sigma {self.intensity_sigma} must be >= 0")

        if self.repetitions < 1:
            raise ConfigurationError(f"Repetitions {self.repetitions} must be >= 1")

        if self.nthreads < 1:
            raise ConfigurationError(f"Thread count {self.nthreads} must be >= 1")

        if not isinstance(self.quantization, Quantization):
            raise ConfigurationError(f"Unknown quantization {self.quantization!r}")


@dataclass(frozen=True)
class RunConfig:
    """Settings for one file-to-file filtering run."""

    input_path: Path
    output_path: Path
    params: FilterParameters = field(default_factory=FilterParameters)
    snapshot_dir: Path = Path(".")
    backend: Backend = Backend.NUMPY

    def validate(self) -> None:
        """Validate the run before any image I/O happens."""

        if not Path(self.output_path).suffix:
            raise ConfigurationError(
                f"Output path {self.output_path} needs a file extension to pick an encoder"
            )
        self.params.validate()
        if self.params.repetitions > 1 and not Path(self.snapshot_dir).is_dir():
            raise ConfigurationError(f"Snapshot directory {self.snapshot_dir} does not exist")

    def snapshot_path(self, rep: int) -> Path:
        """Location of the intermediate result written after repetition ``rep``."""

        return self.snapshot_dir / f"rep{rep}.png"
