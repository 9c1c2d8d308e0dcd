"""
Command-line front end: ``imfilter --in photo.png --out smooth.png --s 2 --b 0.1``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Tuple

from imfilter.core.config import Backend, FilterParameters, Quantization, RunConfig
from imfilter.core.errors import ConfigurationError, ImageIOError
from imfilter.core.pipeline import BilateralImageFilter
from imfilter.io.image import ImageBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Option:
    """One recognized command-line flag."""

    flag: str
    dest: str
    type: Callable[[str], Any]
    default: Any = None
    required: bool = False
    help: str = ""
    choices: Optional[Tuple[str, ...]] = None


OPTIONS: Tuple[Option, ...] = (
    Option("--in", "input_path", Path, required=True, help="path to the input image"),
    Option("--out", "output_path", Path, required=True, help="path to the output image"),
    Option("--s", "spatial_sigma", float, 1.0, help="spatial standard deviation in pixels"),
    Option("--b", "intensity_sigma", float, 0.1, help="intensity standard deviation in [0, 1] units"),
    Option("--nthreads", "nthreads", int, 1, help="number of worker threads"),
    Option("--reps", "repetitions", int, 1, help="number of filter repetitions"),
    Option(
        "--quantization",
        "quantization",
        str,
        Quantization.ROUND.value,
        help="how filtered values map back to 8 bits",
        choices=tuple(q.value for q in Quantization),
    ),
    Option(
        "--snapshot-dir",
        "snapshot_dir",
        Path,
        Path("."),
        help="directory for the rep<N>.png intermediate results",
    ),
    Option(
        "--backend",
        "backend",
        str,
        Backend.NUMPY.value,
        help="compute backend",
        choices=tuple(b.value for b in Backend),
    ),
)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser from ``OPTIONS``."""

    parser = argparse.ArgumentParser(
        prog="imfilter",
        description="Apply an edge-preserving bilateral filter to an image.",
    )
    for option in OPTIONS:
        parser.add_argument(
            option.flag,
            dest=option.dest,
            type=option.type,
            default=option.default,
            required=option.required,
            choices=option.choices,
            help=option.help,
        )
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Turn parsed arguments into a validated run configuration."""

    params = FilterParameters(
        spatial_sigma=args.spatial_sigma,
        intensity_sigma=args.intensity_sigma,
        repetitions=args.repetitions,
        nthreads=args.nthreads,
        quantization=Quantization(args.quantization),
    )
    config = RunConfig(
        input_path=args.input_path,
        output_path=args.output_path,
        params=params,
        snapshot_dir=args.snapshot_dir,
        backend=Backend(args.backend),
    )
    config.validate()
    return config


def parse_args(argv: Optional[Sequence[str]] = None) -> RunConfig:
    """Parse ``argv`` into a validated :class:`RunConfig`."""

    return config_from_args(build_parser().parse_args(argv))


def _make_filter(config: RunConfig):
    if config.backend == Backend.TORCH:
        try:
            from imfilter.torch import TorchBilateralFilter
        except ImportError as exc:
            raise ConfigurationError("The torch backend requires PyTorch to be installed") from exc
        return TorchBilateralFilter(config.params)
    return BilateralImageFilter(config.params)


def run(config: RunConfig) -> float:
    """
    Load, filter and save one image. Returns the filtering time in milliseconds.
    """

    smoother = _make_filter(config)
    source = ImageBuffer.load(config.input_path)

    def _write_snapshot(rep: int, pixels) -> None:
        path = config.snapshot_path(rep)
        logger.debug("Writing snapshot %s", path)
        ImageBuffer(pixels).save(path)

    tic = time.perf_counter()
    filtered = smoother.process(source.pixels, snapshot=_write_snapshot)
    elapsed_ms = (time.perf_counter() - tic) * 1000.0

    ImageBuffer(filtered).save(config.output_path)
    logger.info("Wrote %s", config.output_path)
    return elapsed_ms


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
        elapsed_ms = run(config)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except ImageIOError as exc:
        logger.error("%s", exc)
        return 1

    print(f"Time elapsed: {elapsed_ms:.0f}ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
