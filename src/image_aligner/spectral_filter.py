"""Threshold filter isolating the brightest DFT amplitude pixels."""

import logging
import math
from typing import Optional

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass

from image_aligner.constants import PEAK_BACKGROUND, START_THRESHOLD, WHITE, WHITE_FRACTION
from image_aligner.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

__all__ = ['SpectralFilter']


@dataclass
class SpectralFilter:
    """
    Marks a target fraction of an amplitude image's pixels as white peaks.

    Conceptually the filter re-scans the image with a threshold that starts
    at start_threshold and drops by one per pass. Every pixel whose green
    channel exceeds the current threshold becomes white and stays white;
    scanning stops once at least round(area * white_fraction) pixels are
    white, or after the pass with threshold 0, so zero-intensity pixels are
    never peaks. Since the set of white pixels after a pass is exactly the
    set above that pass's threshold, the stopping threshold is read off a
    single histogram instead of re-scanning the image.
    """

    white_fraction: float = Field(default=WHITE_FRACTION, gt=0.0, lt=1.0)
    start_threshold: int = Field(default=START_THRESHOLD, ge=0, le=255)

    def target_count(self, area: int) -> int:
        """Number of white pixels required, rounded half up."""
        return int(math.floor(area * self.white_fraction + 0.5))

    def find_threshold(self, amplitude_image: PixelBuffer) -> Optional[int]:
        """
        Threshold at which the decreasing re-scan would stop.

        Args:
            amplitude_image: Log-scaled amplitude image

        Returns:
            Largest threshold in [0, start_threshold] leaving at least the
            target number of pixels above it (0 if none does), or None when
            the target is zero and no pass would run
        """
        green = amplitude_image.green
        target = self.target_count(green.size)
        if target == 0:
            return None

        histogram = np.bincount(green.ravel(), minlength=256)
        # above[t] = number of pixels with green > t
        above = green.size - np.cumsum(histogram)

        threshold = self.start_threshold
        while threshold > 0 and above[threshold] < target:
            threshold -= 1
        if above[threshold] < target:
            logger.warning(
                f"Only {above[threshold]} non-zero pixels, fewer than the {target} peaks targeted"
            )
        logger.debug(f"Filter threshold {threshold}: {above[threshold]} pixels above, target {target}")
        return threshold

    def apply(self, amplitude_image: PixelBuffer) -> PixelBuffer:
        """
        Binarize an amplitude image into white peaks and a sentinel background.

        Args:
            amplitude_image: Log-scaled amplitude image

        Returns:
            Image of the same size where peaks are (255, 255, 255, 255) and
            every other pixel is the (alpha, red, green, blue) sentinel
            (255, 255, 0, 0)
        """
        threshold = self.find_threshold(amplitude_image)

        output = np.empty(amplitude_image.pixels.shape, dtype=np.uint8)
        output[...] = np.asarray(PEAK_BACKGROUND, dtype=np.uint8)
        if threshold is None:
            logger.warning(
                f"Image of {amplitude_image.width}x{amplitude_image.height} pixels is too "
                "small to mark any peak"
            )
            return PixelBuffer(output)

        peaks = amplitude_image.green.astype(np.int16) > threshold
        output[peaks] = np.asarray(WHITE, dtype=np.uint8)
        logger.debug(f"Spectral filter marked {int(peaks.sum())} peak pixels")
        return PixelBuffer(output)
