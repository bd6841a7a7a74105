"""Tests for the DFT-based text aligner."""

import math

import numpy as np
import pytest

from image_aligner.alignment import AlignmentResult, TextAligner, rotation_degrees
from image_aligner.exceptions import ImageProcessingError
from image_aligner.pixel_buffer import PixelBuffer
from image_aligner.peak_locator import QuadrantPoints
from image_aligner.slope_estimator import SkewEstimate, estimate_skew
from image_aligner.transforms import ImageTransformer


def _diagonal_line(size: int, ascending: bool, line: int, background: int) -> PixelBuffer:
    """Square image with a one-pixel 45 degree line through the centre."""
    values = np.full((size, size), background)
    for i in range(size):
        col = size - 1 - i if ascending else i
        values[i, col] = line
    return PixelBuffer.from_gray(values)


def _random_image(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4)).astype(np.uint8)
    pixels[..., 0] = 255
    return PixelBuffer(pixels)


def test_text_aligner_initialization():
    """Test TextAligner defaults and validation."""
    aligner = TextAligner()
    assert aligner.max_size == 150
    assert aligner.accuracy == 1000
    assert aligner.dft_processor.method == "direct"
    assert aligner.spectral_filter.start_threshold == 190

    with pytest.raises(ValueError):
        TextAligner(max_size=1)
    with pytest.raises(ValueError):
        TextAligner(accuracy=0)
    with pytest.raises(ValueError):
        TextAligner(dft_method="unknown")


def test_rotation_degrees():
    """Test the slope to rotation mapping."""
    assert rotation_degrees(SkewEstimate(1.0, True, (1, 1))) == pytest.approx(315.0)
    assert rotation_degrees(SkewEstimate(-1.0, False, (1, 1))) == pytest.approx(45.0)
    assert rotation_degrees(SkewEstimate(1.0, False, (1, 1))) == pytest.approx(-45.0)
    expected = 180 * (2 * math.pi - math.atan(1 / 3.0)) / math.pi
    assert rotation_degrees(SkewEstimate(3.0, True, (1, 1))) == pytest.approx(expected)


@pytest.mark.parametrize("slope", [0.0, math.nan, math.inf])
def test_rotation_degrees_undefined(slope):
    """Test that an untilted or undefined skew is reported, not guessed."""
    with pytest.raises(ImageProcessingError, match="not tilted"):
        rotation_degrees(SkewEstimate(slope, True, (0, 0)))


def test_rotation_refused_for_vertical_quadrant():
    """Test that a vertical quadrant in the dominant pair stops the alignment."""
    quadrants = QuadrantPoints(
        q1=[(6, -4), (7, -3), (8, -2)],
        q2=[],
        q3=[(2, -6), (2, -7)],
        q4=[],
        found=5,
    )
    with pytest.raises(ImageProcessingError, match="not tilted"):
        rotation_degrees(estimate_skew(quadrants))


def test_compress_and_square_downsamples_large_images():
    """Test block painting and centred sampling of large images."""
    image = _random_image(600, 450)
    aligner = TextAligner()
    square = aligner.compress_and_square(image)

    assert (square.width, square.height) == (150, 150)
    painted = ImageTransformer(image).block_paint(3)
    rows = 3 * np.arange(150)
    cols = 75 + 3 * np.arange(150)
    assert np.array_equal(square.pixels, painted.pixels[np.ix_(rows, cols)])


def test_compress_and_square_block_of_one():
    """Test images slightly larger than the cap are centre-sampled."""
    image = _random_image(300, 200)
    square = TextAligner().compress_and_square(image)
    assert np.array_equal(square.pixels, image.pixels[0:150, 50:200])


@pytest.mark.parametrize(
    "width,height,rows,cols",
    [
        (100, 120, slice(10, 110), slice(0, 100)),
        (120, 100, slice(0, 100), slice(10, 110)),
        (300, 100, slice(0, 100), slice(100, 200)),
        (100, 100, slice(0, 100), slice(0, 100)),
    ],
)
def test_compress_and_square_crops(width, height, rows, cols):
    """Test centre crops when at least one side is within the cap."""
    image = _random_image(width, height)
    square = TextAligner().compress_and_square(image)
    assert np.array_equal(square.pixels, image.pixels[rows, cols])


@pytest.mark.parametrize(
    "ascending,slope,positive,degrees",
    [
        (False, 1.0, True, 315.0),
        (True, -1.0, False, 45.0),
    ],
)
def test_diagonal_line_slope(ascending, slope, positive, degrees):
    """Test that a 45 degree white line gives a unit spectral slope."""
    image = _diagonal_line(150, ascending, line=255, background=0)
    result = TextAligner().align(image)

    assert isinstance(result, AlignmentResult)
    assert result.skew.slope == pytest.approx(slope, abs=1e-6)
    assert result.skew.positive is positive
    assert result.rotation_degrees == pytest.approx(degrees, abs=1e-6)
    assert result.quadrants.found > 0
    assert result.normalized.width == 150
    assert result.dft_output.amplitude.shape == (150, 150)


@pytest.mark.parametrize("ascending", [False, True])
def test_diagonal_line_becomes_horizontal(ascending):
    """Test that the corrected image shows the line within 1 degree of horizontal."""
    image = _diagonal_line(150, ascending, line=0, background=255)
    result = TextAligner().align(image)

    rows, cols = np.nonzero(result.image.green < 128)
    assert cols.max() - cols.min() > 150
    line_slope = np.polyfit(cols, rows, 1)[0]
    assert abs(math.degrees(math.atan(line_slope))) < 1.0


def test_intermediate_images():
    """Test the amplitude and filtered images exposed by the result."""
    result = TextAligner().align(_diagonal_line(150, False, line=255, background=0))

    assert result.amplitude_image.green.max() == 255
    white = np.all(result.filtered_image.pixels == 255, axis=-1)
    assert white.sum() >= 50
    assert np.all(result.filtered_image.pixels[~white] == np.array([255, 255, 0, 0]))


@pytest.mark.parametrize("value", [0, 255])
def test_blank_image_fails(value):
    """Test that a featureless image is reported instead of rotated."""
    image = PixelBuffer.from_gray(np.full((150, 150), value))
    with pytest.raises(ImageProcessingError, match="not tilted"):
        TextAligner().align(image)


def test_batch_align():
    """Test aligning several images in order."""
    images = [
        _diagonal_line(150, False, line=255, background=0),
        _diagonal_line(150, True, line=255, background=0),
    ]
    results = TextAligner().batch_align(images)

    assert len(results) == 2
    assert results[0].rotation_degrees == pytest.approx(315.0, abs=1e-6)
    assert results[1].rotation_degrees == pytest.approx(45.0, abs=1e-6)


def test_transformer_align_text_image():
    """Test the ImageTransformer entry point."""
    image = _diagonal_line(150, False, line=255, background=0)
    aligned = ImageTransformer(image).align_text_image()
    assert aligned == TextAligner().align(image).image


def test_fft_method_agrees():
    """Test that the FFT strategy leads to the same correction."""
    image = _diagonal_line(150, True, line=255, background=0)
    direct = TextAligner().align(image)
    fft = TextAligner(dft_method="fft").align(image)
    assert fft.rotation_degrees == pytest.approx(direct.rotation_degrees, abs=1e-6)
