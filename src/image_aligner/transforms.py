"""Pixel-level image transforms.

These are the collaborators the alignment pipeline relies on (grayscale,
clip, block paint, rotate) together with the simpler filters of the
library. Every operation returns a new PixelBuffer; the source image is
never modified.
"""

import logging
import math
from typing import Sequence

import numpy as np
from scipy import ndimage

from image_aligner.constants import (
    LUMA_WEIGHTS,
    POSTERIZE_HIGH_VALUE,
    POSTERIZE_LOW_CUTOFF,
    POSTERIZE_LOW_VALUE,
    POSTERIZE_MID_CUTOFF,
    POSTERIZE_MID_VALUE,
    WHITE,
)
from image_aligner.exceptions import ImageProcessingError, InvalidArgumentError
from image_aligner.pixel_buffer import ALPHA, BLUE, GREEN, RED, PixelBuffer, Rectangle

logger = logging.getLogger(__name__)

__all__ = ['ImageTransformer']

# 8-neighbourhood offsets (drow, dcol), the centre pixel excluded
_NEIGHBOUR_OFFSETS = [
    (dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)
]


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


class ImageTransformer:
    """Applies transforms to a single image without modifying it."""

    def __init__(self, image: PixelBuffer):
        self.image = image
        self.width = image.width
        self.height = image.height

    def grayscale(self) -> PixelBuffer:
        """
        Convert to gray using luminance weights.

        Returns:
            Opaque image with R = G = B = round(0.299 r + 0.587 g + 0.114 b)
        """
        rgb = self.image.pixels[..., [RED, GREEN, BLUE]].astype(np.float64)
        luma = _round_half_up(rgb @ np.asarray(LUMA_WEIGHTS))
        return PixelBuffer.from_gray(luma)

    def red(self) -> PixelBuffer:
        """Keep only alpha and red."""
        pixels = self.image.pixels.copy()
        pixels[..., GREEN] = 0
        pixels[..., BLUE] = 0
        return PixelBuffer(pixels)

    def mirror(self) -> PixelBuffer:
        return PixelBuffer(self.image.pixels[:, ::-1].copy())

    def negative(self) -> PixelBuffer:
        """Every channel c, alpha included, becomes 255 - c."""
        return PixelBuffer(255 - self.image.pixels)

    def posterize(self) -> PixelBuffer:
        """
        Reduce each colour channel to three levels.

        [0, 64] becomes 32, (64, 128] becomes 96 and anything brighter 222.
        Alpha is left unchanged.
        """
        pixels = self.image.pixels.copy()
        colors = pixels[..., RED:]
        pixels[..., RED:] = np.where(
            colors <= POSTERIZE_LOW_CUTOFF,
            POSTERIZE_LOW_VALUE,
            np.where(colors <= POSTERIZE_MID_CUTOFF, POSTERIZE_MID_VALUE, POSTERIZE_HIGH_VALUE),
        )
        return PixelBuffer(pixels)

    def clip(self, clipping_box: Rectangle) -> PixelBuffer:
        """
        Keep the region inside an inclusive rectangle.

        Args:
            clipping_box: Region to retain

        Returns:
            Clipped image of size clipping_box.width x clipping_box.height

        Raises:
            ImageProcessingError: If the rectangle does not fit completely
                within the image or is inverted
        """
        x0, y0, x1, y1 = clipping_box
        if not (0 <= x0 <= x1 < self.width and 0 <= y0 <= y1 < self.height):
            raise ImageProcessingError(
                f"Clipping box {tuple(clipping_box)} does not fit within "
                f"{self.width}x{self.height} image"
            )
        return PixelBuffer(self.image.pixels[y0:y1 + 1, x0:x1 + 1].copy())

    def denoise(self) -> PixelBuffer:
        """
        Replace each channel by the median of the pixel's in-bounds neighbours.

        The pixel itself is excluded. With an even number of neighbours the
        two middle values are averaged with integer division.
        """
        h, w = self.height, self.width
        padded = np.pad(
            self.image.pixels.astype(np.float64),
            ((1, 1), (1, 1), (0, 0)),
            mode="constant",
            constant_values=np.nan,
        )
        neighbours = np.stack(
            [padded[1 + dr:1 + dr + h, 1 + dc:1 + dc + w] for dr, dc in _NEIGHBOUR_OFFSETS],
            axis=-1,
        )
        # NaN (out of bounds) sorts last
        neighbours.sort(axis=-1)
        count = np.sum(~np.isnan(neighbours), axis=-1)
        safe = np.maximum(count, 1)
        lower = np.take_along_axis(neighbours, ((safe - 1) // 2)[..., None], axis=-1)[..., 0]
        upper = np.take_along_axis(neighbours, (safe // 2)[..., None], axis=-1)[..., 0]
        median = np.floor((lower + upper) / 2)

        # A 1x1 image has no neighbours
        median = np.where(count == 0, self.image.pixels, median)
        return PixelBuffer(median.astype(np.uint8))

    def weather(self) -> PixelBuffer:
        """Replace each channel by the minimum over the 3x3 neighbourhood."""
        weathered = ndimage.minimum_filter(
            self.image.pixels, size=(3, 3, 1), mode="nearest"
        )
        return PixelBuffer(weathered)

    def block_paint(self, block_size: int) -> PixelBuffer:
        """
        Replace each block_size x block_size tile by its per-channel mean.

        Tiles start at the top-left corner. When the image is not a multiple
        of block_size the right columns and bottom rows use the smaller
        partial tiles that fit. Means use integer (floor) division.

        Args:
            block_size: Side of the square tile, >= 1

        Returns:
            Block-painted image with the same dimensions
        """
        if block_size < 1:
            raise InvalidArgumentError(f"block_size must be at least 1, got {block_size}")

        row_starts = np.arange(0, self.height, block_size)
        col_starts = np.arange(0, self.width, block_size)
        row_sizes = np.diff(np.append(row_starts, self.height))
        col_sizes = np.diff(np.append(col_starts, self.width))

        pixels = self.image.pixels.astype(np.int64)
        sums = np.add.reduceat(np.add.reduceat(pixels, row_starts, axis=0), col_starts, axis=1)
        counts = np.outer(row_sizes, col_sizes)[..., None]
        means = sums // counts

        painted = np.repeat(np.repeat(means, row_sizes, axis=0), col_sizes, axis=1)
        logger.debug(
            f"Block painted {self.width}x{self.height} image with {block_size}px blocks "
            f"({len(row_starts)}x{len(col_starts)} tiles)"
        )
        return PixelBuffer(painted.astype(np.uint8))

    def rotate(self, degrees: float) -> PixelBuffer:
        """
        Rotate about the image centre onto a canvas large enough to hold it.

        Each destination pixel is mapped back into the source with the
        inverse rotation and the nearest source pixel (coordinates truncated
        toward zero) is copied. Destination pixels that fall outside the
        source become opaque white.

        Args:
            degrees: Rotation angle in degrees

        Returns:
            Rotated image of size round(|sin|h + |cos|w) x round(|sin|w + |cos|h)
        """
        radians = degrees * math.pi / 180
        sin, cos = math.sin(radians), math.cos(radians)
        new_width = abs(sin) * self.height + abs(cos) * self.width
        new_height = abs(sin) * self.width + abs(cos) * self.height
        out_width = max(int(math.floor(new_width + 0.5)), 1)
        out_height = max(int(math.floor(new_height + 0.5)), 1)

        rows, cols = np.mgrid[0:out_height, 0:out_width].astype(np.float64)
        dx = cols - new_width / 2
        dy = rows - new_height / 2
        source_x = np.trunc(dx * cos + dy * sin + self.width // 2).astype(np.int64)
        source_y = np.trunc(-dx * sin + dy * cos + self.height // 2).astype(np.int64)
        inside = (
            (source_x >= 0) & (source_y >= 0)
            & (source_x < self.width) & (source_y < self.height)
        )

        rotated = np.empty((out_height, out_width, 4), dtype=np.uint8)
        rotated[...] = np.asarray(WHITE, dtype=np.uint8)
        rotated[inside] = self.image.pixels[source_y[inside], source_x[inside]]

        logger.debug(
            f"Rotated {self.width}x{self.height} image by {degrees:.3f} degrees "
            f"into {out_width}x{out_height}"
        )
        return PixelBuffer(rotated)

    def green_screen(
        self, screen_color: Sequence[int], background: PixelBuffer
    ) -> PixelBuffer:
        """
        Replace the largest screen-coloured region with a background image.

        The largest 8-connected region exactly matching screen_color is
        found, its bounding rectangle is computed, and every pixel inside
        the rectangle that matches screen_color is replaced with the
        background pixel at the same offset from the rectangle's top-left
        corner. A background smaller than the rectangle is tiled.

        Args:
            screen_color: (alpha, red, green, blue) of the screen
            background: Image to show through the screen

        Returns:
            Composited image

        Raises:
            ImageProcessingError: If no pixel matches screen_color
        """
        color = np.asarray(screen_color, dtype=np.uint8)
        matches = np.all(self.image.pixels == color, axis=-1)
        if not matches.any():
            raise ImageProcessingError(f"No pixel matches screen colour {tuple(screen_color)}")

        labels, num_regions = ndimage.label(matches, structure=np.ones((3, 3), dtype=int))
        sizes = np.bincount(labels.ravel())
        sizes[0] = 0
        largest = int(np.argmax(sizes))
        region_rows, region_cols = np.nonzero(labels == largest)
        box = Rectangle(
            int(region_cols.min()), int(region_rows.min()),
            int(region_cols.max()), int(region_rows.max()),
        )
        logger.debug(
            f"Screen: {num_regions} regions, largest has {sizes[largest]} pixels "
            f"bounded by {tuple(box)}"
        )

        output = self.image.pixels.copy()
        window = output[box.y_top_left:box.y_bottom_right + 1, box.x_top_left:box.x_bottom_right + 1]
        window_matches = matches[box.y_top_left:box.y_bottom_right + 1, box.x_top_left:box.x_bottom_right + 1]
        tile_rows = np.arange(box.height) % background.height
        tile_cols = np.arange(box.width) % background.width
        tiled = background.pixels[np.ix_(tile_rows, tile_cols)]
        window[window_matches] = tiled[window_matches]
        return PixelBuffer(output)

    def dft(self, method: str = "direct"):
        """Spatial DFT of the grayscale version of this image."""
        from image_aligner.dft import DFTProcessor

        return DFTProcessor(method=method).compute_dft(self.image)

    def align_text_image(self) -> PixelBuffer:
        """Rotate a skewed image of text so its lines are horizontal."""
        from image_aligner.alignment import TextAligner

        return TextAligner().align(self.image).image
