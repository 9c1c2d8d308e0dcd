"""
Exception hierarchy for imfilter.
"""


class ImfilterError(Exception):
    """Base class for all imfilter errors."""


class ConfigurationError(ImfilterError, ValueError):
    """Invalid filter parameters, run configuration or image layout."""


class ImageIOError(ImfilterError, OSError):
    """An image could not be loaded or saved."""
