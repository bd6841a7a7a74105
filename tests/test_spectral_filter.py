"""Tests for the spectral peak filter."""

import numpy as np
import pytest

from image_aligner.constants import PEAK_BACKGROUND, WHITE
from image_aligner.pixel_buffer import PixelBuffer
from image_aligner.spectral_filter import SpectralFilter


def _rescan_filter(green: np.ndarray, white_fraction: float, start_threshold: int) -> np.ndarray:
    """Literal re-scan with a decreasing threshold, one full pass per value."""
    height, width = green.shape
    target = int(np.floor(green.size * white_fraction + 0.5))
    output = np.empty((height, width, 4), dtype=np.uint8)
    output[...] = PEAK_BACKGROUND
    count = 0
    threshold = start_threshold
    while count < target and threshold >= 0:
        for row in range(height):
            for col in range(width):
                if green[row, col] > threshold:
                    if tuple(output[row, col]) != WHITE:
                        count += 1
                    output[row, col] = WHITE
                else:
                    output[row, col] = PEAK_BACKGROUND
        threshold -= 1
    return output


def test_spectral_filter_initialization():
    """Test SpectralFilter defaults and validation."""
    spectral_filter = SpectralFilter()
    assert spectral_filter.white_fraction == pytest.approx(0.0022222)
    assert spectral_filter.start_threshold == 190

    with pytest.raises(ValueError):
        SpectralFilter(white_fraction=0.0)
    with pytest.raises(ValueError):
        SpectralFilter(start_threshold=256)


def test_target_count():
    """Test rounding of the white pixel target."""
    spectral_filter = SpectralFilter()
    assert spectral_filter.target_count(150 * 150) == 50
    assert spectral_filter.target_count(100) == 0


@pytest.mark.parametrize("seed,high", [(0, 256), (1, 120), (2, 40)])
def test_matches_rescan(seed, high):
    """Test that the histogram shortcut gives the re-scan output."""
    rng = np.random.default_rng(seed)
    green = rng.integers(0, high, size=(40, 40))
    image = PixelBuffer.from_gray(green)
    spectral_filter = SpectralFilter(white_fraction=0.01)

    expected = _rescan_filter(green, 0.01, 190)
    assert np.array_equal(spectral_filter.apply(image).pixels, expected)


def test_output_colours_and_count():
    """Test the white/sentinel pattern and that the target is reached."""
    rng = np.random.default_rng(4)
    image = PixelBuffer.from_gray(rng.integers(0, 180, size=(150, 150)))
    filtered = SpectralFilter().apply(image)

    pixels = filtered.pixels.reshape(-1, 4)
    is_white = np.all(pixels == WHITE, axis=1)
    is_background = np.all(pixels == PEAK_BACKGROUND, axis=1)
    assert np.all(is_white | is_background)
    assert is_white.sum() >= 50


def test_stops_at_first_sufficient_threshold():
    """Test that the threshold is lowered only until the target is met."""
    green = np.zeros((150, 150))
    green[0, :60] = 200
    green[1, :30] = 150
    image = PixelBuffer.from_gray(green)
    spectral_filter = SpectralFilter()

    assert spectral_filter.find_threshold(image) == 190
    assert np.sum(spectral_filter.apply(image).green == 255) == 60

    green[0, :60] = 0
    green[0, :40] = 200
    image = PixelBuffer.from_gray(green)
    assert spectral_filter.find_threshold(image) == 149
    assert np.sum(spectral_filter.apply(image).green == 255) == 70


def test_black_image_has_no_peaks():
    """Test that zero-intensity pixels are never marked."""
    image = PixelBuffer.from_gray(np.zeros((150, 150)))
    spectral_filter = SpectralFilter()

    assert spectral_filter.find_threshold(image) == 0
    filtered = spectral_filter.apply(image)
    assert not np.any(filtered.green == 255)


def test_small_image_has_no_target():
    """Test images too small for a single peak pixel."""
    image = PixelBuffer.from_gray(np.full((10, 10), 255))
    spectral_filter = SpectralFilter()

    assert spectral_filter.find_threshold(image) is None
    filtered = spectral_filter.apply(image)
    assert np.all(filtered.pixels == np.asarray(PEAK_BACKGROUND, dtype=np.uint8))
