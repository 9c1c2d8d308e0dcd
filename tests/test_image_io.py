"""Tests for the image buffer and its file I/O."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from imfilter import ConfigurationError, ImageBuffer, ImageIOError


def test_blank_buffer_dimensions() -> None:
    buf = ImageBuffer.blank(width=5, height=3)
    assert buf.width == 5
    assert buf.height == 3
    assert buf.pixels.shape == (3, 5, 3)
    assert buf.get_pixel(4, 2) == (0, 0, 0)


def test_pixel_access_uses_x_then_y() -> None:
    buf = ImageBuffer.blank(4, 2)
    buf.set_pixel(3, 1, (10, 20, 30))
    assert buf.get_pixel(3, 1) == (10, 20, 30)
    np.testing.assert_array_equal(buf.pixels[1, 3], [10, 20, 30])


def test_set_pixel_saturates() -> None:
    buf = ImageBuffer.blank(1, 1)
    buf.set_pixel(0, 0, (-5, 300, 128))
    assert buf.get_pixel(0, 0) == (0, 255, 128)


def test_out_of_bounds_access() -> None:
    buf = ImageBuffer.blank(2, 2)
    with pytest.raises(IndexError):
        buf.get_pixel(2, 0)
    with pytest.raises(IndexError):
        buf.set_pixel(0, -1, (1, 2, 3))


def test_rejects_invalid_arrays() -> None:
    with pytest.raises(ConfigurationError):
        ImageBuffer(np.zeros((2, 2, 4), dtype=np.uint8))
    with pytest.raises(ConfigurationError):
        ImageBuffer(np.zeros((2, 2, 3), dtype=np.float64))


def test_copy_from_is_deep() -> None:
    src = ImageBuffer.blank(3, 3)
    src.set_pixel(1, 1, (9, 9, 9))
    dst = ImageBuffer.empty_like(src)
    dst.copy_from(src)
    src.set_pixel(1, 1, (1, 1, 1))
    assert dst.get_pixel(1, 1) == (9, 9, 9)
    assert not np.shares_memory(src.pixels, dst.pixels)

    with pytest.raises(ValueError):
        dst.copy_from(ImageBuffer.blank(2, 3))


def test_png_save_load_roundtrip(tmp_path: Path) -> None:
    pixels = np.random.randint(0, 256, size=(6, 7, 3), dtype=np.uint8)
    path = tmp_path / "image.png"
    ImageBuffer(pixels).save(path)

    loaded = ImageBuffer.load(path)
    np.testing.assert_array_equal(loaded.pixels, pixels)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["image.png"]


def test_save_overwrites_existing_file(tmp_path: Path) -> None:
    path = tmp_path / "image.png"
    ImageBuffer.blank(2, 2).save(path)
    white = ImageBuffer(np.full((2, 2, 3), 255, dtype=np.uint8))
    white.save(path)
    assert ImageBuffer.load(path).get_pixel(0, 0) == (255, 255, 255)


def test_load_converts_to_rgb(tmp_path: Path) -> None:
    path = tmp_path / "gray.png"
    Image.fromarray(np.full((3, 4), 77, dtype=np.uint8)).save(path)
    buf = ImageBuffer.load(path)
    assert buf.pixels.shape == (3, 4, 3)
    assert buf.get_pixel(0, 0) == (77, 77, 77)


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ImageIOError):
        ImageBuffer.load(tmp_path / "missing.png")


def test_load_garbage_file(tmp_path: Path) -> None:
    path = tmp_path / "garbage.png"
    path.write_bytes(b"not an image")
    with pytest.raises(ImageIOError):
        ImageBuffer.load(path)


def test_save_into_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ImageIOError):
        ImageBuffer.blank(2, 2).save(tmp_path / "nope" / "out.png")


def test_save_unknown_extension_leaves_nothing(tmp_path: Path) -> None:
    with pytest.raises(ImageIOError):
        ImageBuffer.blank(2, 2).save(tmp_path / "out.notaformat")
    assert list(tmp_path.iterdir()) == []
