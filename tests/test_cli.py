"""
Tests for the imfilter command line.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from pathlib import Path

import numpy as np
import pytest

from imfilter import Backend, BilateralImageFilter, FilterParameters, ImageBuffer, Quantization
from imfilter.cli import main, parse_args


@pytest.fixture
def input_image(tmp_path: Path) -> Path:
    rng = np.random.default_rng(7)
    path = tmp_path / "input.png"
    ImageBuffer(rng.integers(0, 256, size=(6, 8, 3), dtype=np.uint8)).save(path)
    return path


def test_parse_args_builds_config(tmp_path: Path) -> None:
    config = parse_args(
        [
            "--in", "a.png",
            "--out", "b.jpg",
            "--s", "2.5",
            "--b", "0.2",
            "--nthreads", "4",
            "--reps", "3",
            "--quantization", "truncate",
            "--snapshot-dir", str(tmp_path),
        ]
    )
    assert config.input_path == Path("a.png")
    assert config.output_path == Path("b.jpg")
    assert config.params == FilterParameters(
        spatial_sigma=2.5,
        intensity_sigma=0.2,
        repetitions=3,
        nthreads=4,
        quantization=Quantization.TRUNCATE,
    )
    assert config.snapshot_dir == tmp_path
    assert config.backend == Backend.NUMPY

    with pytest.raises(FrozenInstanceError):
        config.output_path = Path("c.png")  # type: ignore[misc]


def test_help_exits_successfully(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])
    assert excinfo.value.code == 0
    assert "--nthreads" in capsys.readouterr().out


def test_unknown_flag_is_rejected(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--in", "a.png", "--out", "b.png", "--kernelWidth", "3"])
    assert excinfo.value.code == 2
    assert "--kernelWidth" in capsys.readouterr().err


def test_missing_output_is_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--in", "a.png"])
    assert excinfo.value.code == 2


def test_end_to_end_with_snapshots(tmp_path: Path, input_image: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    output = tmp_path / "output.png"

    status = main(
        ["--in", str(input_image), "--out", str(output), "--s", "1", "--b", "0.2", "--reps", "3"]
    )

    assert status == 0
    assert output.exists()
    assert (tmp_path / "rep0.png").exists()
    assert (tmp_path / "rep1.png").exists()
    assert not (tmp_path / "rep2.png").exists()
    assert "Time elapsed:" in capsys.readouterr().out

    last_snapshot = ImageBuffer.load(tmp_path / "rep1.png").pixels
    one_more = BilateralImageFilter(FilterParameters(spatial_sigma=1.0, intensity_sigma=0.2)).process(
        last_snapshot
    )
    np.testing.assert_array_equal(ImageBuffer.load(output).pixels, one_more)


def test_snapshot_dir_option(tmp_path: Path, input_image: Path) -> None:
    snapshots = tmp_path / "snaps"
    snapshots.mkdir()
    status = main(
        [
            "--in", str(input_image),
            "--out", str(tmp_path / "out.png"),
            "--reps", "2",
            "--nthreads", "3",
            "--snapshot-dir", str(snapshots),
        ]
    )
    assert status == 0
    assert [p.name for p in snapshots.iterdir()] == ["rep0.png"]


def test_negative_sigma_is_a_configuration_error(tmp_path: Path, input_image: Path) -> None:
    output = tmp_path / "out.png"
    status = main(["--in", str(input_image), "--out", str(output), "--s", "-1"])
    assert status == 2
    assert not output.exists()


def test_zero_repetitions_is_a_configuration_error(tmp_path: Path, input_image: Path) -> None:
    status = main(["--in", str(input_image), "--out", str(tmp_path / "out.png"), "--reps", "0"])
    assert status == 2


def test_missing_input_is_an_io_error(tmp_path: Path) -> None:
    output = tmp_path / "out.png"
    status = main(["--in", str(tmp_path / "missing.png"), "--out", str(output)])
    assert status == 1
    assert not output.exists()


def test_missing_snapshot_dir_fails_before_filtering(tmp_path: Path, input_image: Path) -> None:
    output = tmp_path / "out.png"
    status = main(
        [
            "--in", str(input_image),
            "--out", str(output),
            "--reps", "2",
            "--snapshot-dir", str(tmp_path / "missing"),
        ]
    )
    assert status == 2
    assert not output.exists()
