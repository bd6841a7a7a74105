"""Pixel buffer holding 4-channel (alpha, red, green, blue) images."""

import logging
from pathlib import Path
from typing import NamedTuple, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from image_aligner.constants import TRANSPARENT
from image_aligner.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

__all__ = ['PixelBuffer', 'Rectangle', 'split_color', 'merge_color']

Color = Tuple[int, int, int, int]

# Channel indices in the (alpha, red, green, blue) layout
ALPHA, RED, GREEN, BLUE = 0, 1, 2, 3


class Rectangle(NamedTuple):
    """Inclusive pixel rectangle given by its top-left and bottom-right corners."""

    x_top_left: int
    y_top_left: int
    x_bottom_right: int
    y_bottom_right: int

    @property
    def width(self) -> int:
        return self.x_bottom_right - self.x_top_left + 1

    @property
    def height(self) -> int:
        return self.y_bottom_right - self.y_top_left + 1


def split_color(rgb: int) -> list[int]:
    """
    Split a packed 0xAARRGGBB integer into its channels.

    Args:
        rgb: Packed colour (signed or unsigned 32-bit)

    Returns:
        [alpha, red, green, blue], each in [0, 255]
    """
    rgb &= 0xFFFFFFFF
    return [(rgb >> shift) & 0xFF for shift in (24, 16, 8, 0)]


def merge_color(channels: Sequence[int]) -> int:
    """
    Pack [alpha, red, green, blue] into a single 0xAARRGGBB integer.

    Channels are reduced modulo 256, as a byte cast would.
    """
    rgb = 0
    for value in channels:
        rgb = (rgb << 8) | (int(value) & 0xFF)
    return rgb


class PixelBuffer:
    """
    2-D grid of (alpha, red, green, blue) pixels.

    Pixels are addressed by (col, row). The backing store is a uint8 numpy
    array of shape (height, width, 4); `pixels` exposes it directly for
    vectorised transforms.
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidArgumentError(
                f"Expected (height, width, 4) pixel array, got shape {pixels.shape}"
            )
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidArgumentError("Pixel buffer must have at least one pixel")
        if pixels.dtype != np.uint8:
            if pixels.min() < 0 or pixels.max() > 255:
                raise InvalidArgumentError("Channel values must lie in [0, 255]")
            pixels = pixels.astype(np.uint8)
        self.pixels = np.ascontiguousarray(pixels)

    @classmethod
    def blank(cls, width: int, height: int, color: Color = TRANSPARENT) -> "PixelBuffer":
        """Create a buffer filled with a single colour."""
        if width <= 0 or height <= 0:
            raise InvalidArgumentError(f"Invalid image size {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = np.asarray(color, dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_gray(cls, intensity: np.ndarray) -> "PixelBuffer":
        """Create an opaque gray image from a 2-D array of intensities in [0, 255]."""
        intensity = np.asarray(intensity)
        if intensity.ndim != 2:
            raise InvalidArgumentError(
                f"Expected 2D intensity array, got {intensity.ndim}D array"
            )
        values = np.clip(np.rint(intensity), 0, 255).astype(np.uint8)
        pixels = np.empty(values.shape + (4,), dtype=np.uint8)
        pixels[..., ALPHA] = 255
        pixels[..., RED] = values
        pixels[..., GREEN] = values
        pixels[..., BLUE] = values
        return cls(pixels)

    @classmethod
    def from_pil(cls, img: Image.Image) -> "PixelBuffer":
        """Convert a Pillow image of any mode."""
        rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
        return cls(rgba[..., [3, 0, 1, 2]])

    @classmethod
    def open(cls, image_path: Union[str, Path]) -> "PixelBuffer":
        """Load an image file through Pillow."""
        path = Path(image_path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")
        logger.debug(f"Loading image: {image_path}")
        with Image.open(path) as img:
            return cls.from_pil(img)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels[..., [1, 2, 3, 0]])

    def save(self, image_path: Union[str, Path]) -> None:
        """Write the image through Pillow; formats without alpha get RGB."""
        path = Path(image_path)
        img = self.to_pil()
        if path.suffix.lower() in (".jpg", ".jpeg"):
            img = img.convert("RGB")
        img.save(path)
        logger.debug(f"Saved image: {image_path}")

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width)"""
        return self.pixels.shape[0], self.pixels.shape[1]

    @property
    def green(self) -> np.ndarray:
        """Green channel, used as the intensity of grayscale images."""
        return self.pixels[..., GREEN]

    def _check_bounds(self, col: int, row: int) -> None:
        if not (0 <= col < self.width and 0 <= row < self.height):
            raise IndexError(
                f"Pixel ({col}, {row}) outside {self.width}x{self.height} image"
            )

    def get(self, col: int, row: int) -> Color:
        self._check_bounds(col, row)
        a, r, g, b = self.pixels[row, col]
        return int(a), int(r), int(g), int(b)

    def set(self, col: int, row: int, color: Sequence[int]) -> None:
        self._check_bounds(col, row)
        self.pixels[row, col] = color

    def get_rgb(self, col: int, row: int) -> int:
        return merge_color(self.get(col, row))

    def set_rgb(self, col: int, row: int, rgb: int) -> None:
        self.set(col, row, split_color(rgb))

    def intensity(self, col: int, row: int) -> int:
        """Green channel value at (col, row)."""
        return self.get(col, row)[GREEN]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and np.array_equal(
            self.pixels, other.pixels
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"
