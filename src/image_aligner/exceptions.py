"""Exception types raised by the image aligner."""

__all__ = ['ImageProcessingError', 'InvalidArgumentError']


class InvalidArgumentError(ValueError):
    """Raised when an argument violates a documented precondition."""


class ImageProcessingError(Exception):
    """Raised when an image operation cannot produce a meaningful result.

    Covers out-of-bounds clip requests and text skew that cannot be
    determined from the spectrum.
    """
