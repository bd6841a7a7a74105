"""2D Discrete Fourier Transform module for text skew analysis."""

import logging
import math
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass as pydantic_dataclass

from image_aligner.exceptions import InvalidArgumentError
from image_aligner.pixel_buffer import PixelBuffer
from image_aligner.transforms import ImageTransformer

logger = logging.getLogger(__name__)

__all__ = ['DFTProcessor', 'DFTOutput', 'DFT_METHODS']

DFT_METHODS = ("naive", "direct", "fft")


def degenerate_phase(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    """
    Phase as atan(imag / real), 0 wherever either sum is exactly 0.

    This is the principal value only; it does not resolve the quadrant the
    way atan2 would.
    """
    phase = np.zeros_like(real, dtype=np.float64)
    defined = (real != 0) & (imag != 0)
    np.arctan(np.divide(imag, real, out=np.zeros_like(phase), where=defined), out=phase, where=defined)
    return phase


@dataclass(eq=False)
class DFTOutput:
    """
    Amplitude and phase matrices produced by the spatial DFT.

    Both matrices have one row per image row and one column per image column.
    """

    amplitude: np.ndarray
    phase: np.ndarray

    def __post_init__(self):
        self.amplitude = np.asarray(self.amplitude, dtype=np.float64)
        self.phase = np.asarray(self.phase, dtype=np.float64)
        if self.amplitude.ndim != 2 or self.phase.ndim != 2:
            raise InvalidArgumentError(
                f"amplitude and phase must be 2D matrices, got {self.amplitude.ndim}D "
                f"and {self.phase.ndim}D"
            )
        if self.amplitude.shape != self.phase.shape:
            raise InvalidArgumentError(
                "amplitude and phase matrices should have the same dimensions, "
                f"got {self.amplitude.shape} and {self.phase.shape}"
            )

    @property
    def rows(self) -> int:
        return self.amplitude.shape[0]

    @property
    def columns(self) -> int:
        return self.amplitude.shape[1]

    def amplitude_to_image(self) -> PixelBuffer:
        """
        Render the amplitude as a log-compressed gray image.

        Each channel is round(c * ln(1 + amplitude)) with c = 255 / ln(1 + max),
        so the largest amplitude maps to exactly 255. Values are clipped to
        [0, 255]; an all-zero amplitude matrix gives a black image.

        Returns:
            Opaque image with R = G = B and the same dimensions as the matrix
        """
        max_amplitude = max(float(self.amplitude.max()), 0.0)
        log_max = math.log1p(max_amplitude)
        if log_max == 0.0:
            logger.warning("Amplitude spectrum is all zero, rendering black image")
            return PixelBuffer.from_gray(np.zeros(self.amplitude.shape))

        scale = 255.0 / log_max
        values = np.floor(scale * np.log1p(self.amplitude) + 0.5)
        values = np.clip(values, 0, 255)
        logger.debug(f"Amplitude image: max amplitude {max_amplitude:.2f}, scale {scale:.4f}")
        return PixelBuffer.from_gray(values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DFTOutput):
            return NotImplemented
        return np.array_equal(self.amplitude, other.amplitude) and np.array_equal(
            self.phase, other.phase
        )

    __hash__ = None


@pydantic_dataclass
class DFTProcessor:
    """
    Computes the spatial 2D DFT of a grayscale image.

    For every frequency cell (u, v) the transform accumulates, over every
    sample (x, y),

        theta = 2 pi (u x / height + v y / width)
        real += intensity(x, y) cos(theta)
        imag += intensity(x, y) sin(theta)

    with no normalization. Three evaluation strategies give the same sums:
    "naive" runs the quadruple loop literally (reference only, O(n^4)),
    "direct" evaluates the identical sums as products with cosine/sine
    basis matrices (O(n^3), the default) and "fft" uses numpy's FFT.
    """

    method: str = Field(default="direct")

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        """Ensure the evaluation strategy is known."""
        if v not in DFT_METHODS:
            raise ValueError(f"method must be one of {DFT_METHODS}, got {v!r}")
        return v

    def intensities(self, image: Union[PixelBuffer, np.ndarray]) -> np.ndarray:
        """
        Grayscale intensities of the image as a float64 (height, width) array.

        Raises:
            InvalidArgumentError: If an array input is empty or not 2D
        """
        if isinstance(image, PixelBuffer):
            return ImageTransformer(image).grayscale().green.astype(np.float64)

        image = np.asarray(image)
        if image.size == 0:
            raise InvalidArgumentError("Image array is empty")
        if image.ndim != 2:
            raise InvalidArgumentError(
                f"Expected 2D array, got {image.ndim}D array with shape {image.shape}"
            )
        return image.astype(np.float64)

    def compute_dft(self, image: Union[PixelBuffer, np.ndarray]) -> DFTOutput:
        """
        Compute the 2D DFT and split it into amplitude and phase.

        Args:
            image: PixelBuffer (converted to grayscale) or 2D intensity array

        Returns:
            DFTOutput with (height, width) amplitude and phase matrices
        """
        samples = self.intensities(image)
        logger.debug(f"Computing {self.method} DFT for image shape: {samples.shape}")

        if self.method == "naive":
            real, imag = self._naive_sums(samples)
        elif self.method == "direct":
            real, imag = self._direct_sums(samples)
        else:
            real, imag = self._fft_sums(samples)

        amplitude = np.sqrt(real**2 + imag**2)
        phase = degenerate_phase(real, imag)
        return DFTOutput(amplitude=amplitude, phase=phase)

    def _naive_sums(self, samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        height, width = samples.shape
        real = np.zeros((height, width))
        imag = np.zeros((height, width))
        values = samples.tolist()

        for u in range(height):
            for v in range(width):
                real_sum = 0.0
                imag_sum = 0.0
                for x in range(height):
                    row = values[x]
                    for y in range(width):
                        theta = 2.0 * math.pi * (u * x / height + v * y / width)
                        real_sum += row[y] * math.cos(theta)
                        imag_sum += row[y] * math.sin(theta)
                real[u, v] = real_sum
                imag[u, v] = imag_sum
        return real, imag

    @staticmethod
    def _basis(n: int) -> Tuple[np.ndarray, np.ndarray]:
        """Cosine and sine of 2 pi k j / n, with k j reduced modulo n first."""
        k = np.arange(n)
        angles = 2.0 * np.pi * (np.outer(k, k) % n) / n
        return np.cos(angles), np.sin(angles)

    def _direct_sums(self, samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        height, width = samples.shape
        cos_h, sin_h = self._basis(height)
        cos_w, sin_w = self._basis(width)

        # cos(a + b) = cos a cos b - sin a sin b, sin(a + b) = sin a cos b + cos a sin b
        real = cos_h @ samples @ cos_w - sin_h @ samples @ sin_w
        imag = sin_h @ samples @ cos_w + cos_h @ samples @ sin_w
        return real, imag

    def _fft_sums(self, samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        # numpy uses exp(-i theta); the sums above use exp(+i theta)
        spectrum = np.fft.fft2(samples)
        return spectrum.real, -spectrum.imag
