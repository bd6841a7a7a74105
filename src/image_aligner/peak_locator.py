"""Centre-outward search for spectral peak pixels."""

import logging
from typing import Iterator, NamedTuple, Optional, Tuple

from image_aligner.constants import PEAK_ACCURACY, PEAK_GREEN
from image_aligner.exceptions import InvalidArgumentError
from image_aligner.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

__all__ = ['QuadrantPoints', 'spiral_search', 'ring_coordinates', 'quadrant_of']

Point = Tuple[int, int]


class QuadrantPoints(NamedTuple):
    """
    Peak pixels split by quadrant around the image centre.

    Points are stored as (col, -row) so that "up" is positive y.
    q1 is right-upper, q2 left-upper, q3 left-lower and q4 right-lower.
    """

    q1: list[Point]
    q2: list[Point]
    q3: list[Point]
    q4: list[Point]
    found: int  # Peak pixels visited, including those on a centre line

    @property
    def sizes(self) -> Tuple[int, int, int, int]:
        return len(self.q1), len(self.q2), len(self.q3), len(self.q4)


def quadrant_of(col: int, row: int, length: int) -> Optional[int]:
    """
    Quadrant (1-4) of a pixel in a square image of side length.

    Pixels on the centre column or centre row (length // 2) belong to no
    quadrant and give None.
    """
    center = length // 2
    if col > center and row < center:
        return 1
    if col < center and row < center:
        return 2
    if col < center and row > center:
        return 3
    if col > center and row > center:
        return 4
    return None


def ring_coordinates(length: int, radius: int) -> Iterator[Point]:
    """
    Walk the perimeter of one square ring around the centre, clockwise.

    With h = radius // 2 and c = length // 2 the ring is the border of the
    square spanning [c - h, c + h] in both directions. The walk goes along
    the top edge to the right, down the right edge, along the bottom edge
    to the left and up the left edge, visiting each border pixel once. The
    ring of radius 1 is empty.

    Yields:
        (col, row) pairs
    """
    center = length // 2
    half = radius // 2
    low, high = center - half, center + half

    for col in range(low, high):
        yield col, low
    for row in range(low, high):
        yield high, row
    for col in range(high, low, -1):
        yield col, high
    for row in range(high, low, -1):
        yield low, row


def spiral_search(filtered_image: PixelBuffer, accuracy: int = PEAK_ACCURACY) -> QuadrantPoints:
    """
    Collect the peak pixels nearest the image centre.

    Rings of radius 1, 3, 5, ... (below the image side) are walked outward
    from the centre. Each pixel whose green channel is exactly 255 counts
    as found and, unless it lies on a centre line, is added to its quadrant.
    The search stops as soon as accuracy pixels have been found or the rings
    leave the image.

    Args:
        filtered_image: Square output of SpectralFilter.apply
        accuracy: Number of peak pixels to collect

    Returns:
        QuadrantPoints with the collected points

    Raises:
        InvalidArgumentError: If the image is not square or accuracy < 1
    """
    if filtered_image.width != filtered_image.height:
        raise InvalidArgumentError(
            f"Peak search needs a square image, got {filtered_image.width}x{filtered_image.height}"
        )
    if accuracy < 1:
        raise InvalidArgumentError(f"accuracy must be positive, got {accuracy}")

    length = filtered_image.width
    green = filtered_image.green
    quadrants: dict[int, list[Point]] = {1: [], 2: [], 3: [], 4: []}
    found = 0

    radius = 1
    while radius < length and found < accuracy:
        for col, row in ring_coordinates(length, radius):
            if green[row, col] != PEAK_GREEN:
                continue
            quadrant = quadrant_of(col, row, length)
            if quadrant is not None:
                quadrants[quadrant].append((col, -row))
            found += 1
            if found == accuracy:
                break
        radius += 2

    result = QuadrantPoints(quadrants[1], quadrants[2], quadrants[3], quadrants[4], found)
    logger.debug(f"Spiral search found {found} peak pixels, quadrant sizes {result.sizes}")
    return result
