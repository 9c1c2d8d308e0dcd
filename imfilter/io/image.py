"""
RGB image buffer with Pillow-backed load and atomic save.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from imfilter.core.errors import ImageIOError
from imfilter.filtering.bilateral import validate_image

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class ImageBuffer:
    """
    Width × height grid of 8-bit RGB pixels, row-major, origin top-left.

    The pixels live in ``self.pixels``, a uint8 array of shape (H, W, 3).
    """

    def __init__(self, pixels: np.ndarray) -> None:
        validate_image(pixels, "pixel array")
        self.pixels = pixels

    @classmethod
    def blank(cls, width: int, height: int) -> "ImageBuffer":
        """Create a black image."""

        return cls(np.zeros((height, width, 3), dtype=np.uint8))

    @classmethod
    def empty_like(cls, other: "ImageBuffer") -> "ImageBuffer":
        """Create a black image with the dimensions of ``other``."""

        return cls.blank(other.width, other.height)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        self._check_bounds(x, y)
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def set_pixel(self, x: int, y: int, rgb: Sequence[int]) -> None:
        self._check_bounds(x, y)
        self.pixels[y, x] = np.clip(np.asarray(rgb), 0, 255)

    def copy(self) -> "ImageBuffer":
        return ImageBuffer(self.pixels.copy())

    def copy_from(self, other: "ImageBuffer") -> None:
        """Deep-copy the pixels of ``other`` into this buffer."""

        if other.pixels.shape != self.pixels.shape:
            raise ValueError(
                f"Cannot copy {other.width}x{other.height} image into "
                f"{self.width}x{self.height} buffer"
            )
        np.copyto(self.pixels, other.pixels)

    @classmethod
    def load(cls, path: PathLike) -> "ImageBuffer":
        """
        Decode an image file and convert it to RGB.

        Raises
        ------
        ImageIOError
            If the file is missing or cannot be decoded.
        """

        try:
            with Image.open(path) as img:
                pixels = np.array(img.convert("RGB"), dtype=np.uint8)
        except (OSError, UnidentifiedImageError) as exc:
            raise ImageIOError(f"Cannot load image {path}: {exc}") from exc

        logger.debug("Loaded %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
        return cls(pixels)

    def save(self, path: PathLike) -> None:
        """
        Encode the image to ``path``, choosing the format from its extension.

        The image is written to a temporary file next to ``path`` and then
        renamed over it, so ``path`` never holds a partial file.
        """

        path = Path(path)
        image_format = Image.registered_extensions().get(path.suffix.lower())
        if image_format is None:
            raise ImageIOError(f"Cannot save image {path}: unknown file extension {path.suffix!r}")
        if not path.parent.is_dir():
            raise ImageIOError(f"Cannot save image {path}: directory {path.parent} does not exist")

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=path.suffix, dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as handle:
                Image.fromarray(self.pixels).save(handle, format=image_format)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except (OSError, ValueError) as exc:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise ImageIOError(f"Cannot save image {path}: {exc}") from exc

        logger.debug("Saved %s (%dx%d)", path, self.width, self.height)
