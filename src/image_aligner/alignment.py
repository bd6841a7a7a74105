"""Text Aligner - DFT-based skew correction for images of text."""

import logging
import math
from typing import NamedTuple, Sequence

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass

from image_aligner.constants import MAX_ALIGN_SIZE, PEAK_ACCURACY, START_THRESHOLD, WHITE_FRACTION
from image_aligner.dft import DFTProcessor, DFTOutput
from image_aligner.exceptions import ImageProcessingError
from image_aligner.peak_locator import QuadrantPoints, spiral_search
from image_aligner.pixel_buffer import PixelBuffer, Rectangle
from image_aligner.slope_estimator import SkewEstimate, estimate_skew
from image_aligner.spectral_filter import SpectralFilter
from image_aligner.transforms import ImageTransformer

logger = logging.getLogger(__name__)

__all__ = ['TextAligner', 'AlignmentResult', 'rotation_degrees']


class AlignmentResult(NamedTuple):
    """Result of aligning one image, with every intermediate stage."""

    image: PixelBuffer  # Rotated copy of the input
    rotation_degrees: float
    skew: SkewEstimate
    normalized: PixelBuffer  # Square, at most max_size pixels wide
    dft_output: DFTOutput
    amplitude_image: PixelBuffer
    filtered_image: PixelBuffer
    quadrants: QuadrantPoints


def rotation_degrees(estimate: SkewEstimate) -> float:
    """
    Rotation (degrees) that levels text with the given spectral slope.

    The spectral peaks of text lie on a line perpendicular to the text
    lines, so the skew angle is atan(1 / slope). A positive estimate maps
    to 360 - angle, a negative one to -angle.

    Raises:
        ImageProcessingError: If the slope is undefined or zero, i.e. the
            text is not tilted or is tilted by exactly 90 degrees
    """
    slope = estimate.slope
    if not math.isfinite(slope) or slope == 0.0:
        raise ImageProcessingError(
            f"Text is not tilted or is tilted 90 degrees (spectral slope {slope})"
        )

    angle = math.atan(1.0 / slope)
    if estimate.positive:
        return 180.0 * (2.0 * math.pi - angle) / math.pi
    return 180.0 * (-angle) / math.pi


@dataclass
class TextAligner:
    """
    Straightens skewed images of text.

    The image is reduced to a small square, transformed with the spatial
    DFT, and its log amplitude thresholded so only the brightest spectral
    peaks remain. The peaks nearest the spectrum centre are split into
    quadrants, a least-squares line is fit through the denser diagonal pair,
    and the original image is rotated by the angle that line implies.

    Text is expected near the centre of the image and tilted by less than
    90 degrees either way.
    """

    max_size: int = Field(default=MAX_ALIGN_SIZE, ge=2)
    accuracy: int = Field(default=PEAK_ACCURACY, gt=0)
    white_fraction: float = Field(default=WHITE_FRACTION, gt=0.0, lt=1.0)
    start_threshold: int = Field(default=START_THRESHOLD, ge=0, le=255)
    dft_method: str = Field(default="direct")

    def __post_init__(self):
        """Initialize sub-processors."""
        self.dft_processor = DFTProcessor(method=self.dft_method)
        self.spectral_filter = SpectralFilter(
            white_fraction=self.white_fraction, start_threshold=self.start_threshold
        )

    def compress_and_square(self, image: PixelBuffer) -> PixelBuffer:
        """
        Reduce an image to a centred square no wider than max_size.

        When both sides exceed max_size the image is block painted with
        blocks of (shorter side // max_size) pixels and sampled every block
        from the centred square, giving exactly max_size x max_size.
        Otherwise the centred square of the shorter side is clipped out.

        Raises:
            ImageProcessingError: If the square does not fit in the image
        """
        width, height = image.width, image.height
        smaller = min(width, height)
        transformer = ImageTransformer(image)

        if width > self.max_size and height > self.max_size:
            block = smaller // self.max_size
            steps = block * np.arange(self.max_size)
            cols = width // 2 - smaller // 2 + steps
            rows = height // 2 - smaller // 2 + steps
            if cols[0] < 0 or rows[0] < 0 or cols[-1] >= width or rows[-1] >= height:
                raise ImageProcessingError(
                    f"Sampling grid does not fit within {width}x{height} image"
                )
            painted = transformer.block_paint(block)
            square = PixelBuffer(painted.pixels[np.ix_(rows, cols)])
            logger.debug(
                f"Compressed {width}x{height} image to {self.max_size}x{self.max_size} "
                f"with {block}px blocks"
            )
        elif width < height:
            top = height // 2 - width // 2
            square = transformer.clip(Rectangle(0, top, width - 1, top + width - 1))
        else:
            left = width // 2 - height // 2
            square = transformer.clip(Rectangle(left, 0, left + height - 1, height - 1))

        return square

    def align(self, image: PixelBuffer) -> AlignmentResult:
        """
        Align an image of text so its lines run horizontally.

        Args:
            image: Image containing skewed text near its centre

        Returns:
            AlignmentResult holding the rotated image and each stage's output

        Raises:
            ImageProcessingError: If the image cannot be squared or the skew
                cannot be determined
        """
        logger.info(f"Aligning {image.width}x{image.height} image")

        normalized = self.compress_and_square(image)
        dft_output = self.dft_processor.compute_dft(normalized)
        amplitude_image = dft_output.amplitude_to_image()
        filtered = self.spectral_filter.apply(amplitude_image)
        quadrants = spiral_search(filtered, self.accuracy)
        skew = estimate_skew(quadrants)
        degrees = rotation_degrees(skew)

        rotated = ImageTransformer(image).rotate(degrees)
        logger.info(
            f"Alignment complete: slope={skew.slope:.4f}, rotation={degrees:.2f} degrees, "
            f"peaks={quadrants.found}"
        )

        return AlignmentResult(
            image=rotated,
            rotation_degrees=degrees,
            skew=skew,
            normalized=normalized,
            dft_output=dft_output,
            amplitude_image=amplitude_image,
            filtered_image=filtered,
            quadrants=quadrants,
        )

    def batch_align(self, images: Sequence[PixelBuffer]) -> list[AlignmentResult]:
        """
        Align multiple images in batch.

        Args:
            images: Images to align

        Returns:
            List of AlignmentResult objects, in input order
        """
        logger.info(f"Batch aligning {len(images)} images")
        return [self.align(image) for image in images]
