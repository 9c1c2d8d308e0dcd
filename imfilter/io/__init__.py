"""Image buffers and file I/O."""

from imfilter.io.image import ImageBuffer

__all__ = ["ImageBuffer"]
