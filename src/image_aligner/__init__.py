"""Image Aligner - Pixel transforms and DFT-based text skew correction"""

__version__ = "0.1.0"

from .alignment import AlignmentResult, TextAligner
from .dft import DFTOutput, DFTProcessor
from .exceptions import ImageProcessingError, InvalidArgumentError
from .pixel_buffer import PixelBuffer, Rectangle
from .transforms import ImageTransformer

__all__ = [
    "AlignmentResult",
    "DFTOutput",
    "DFTProcessor",
    "ImageProcessingError",
    "ImageTransformer",
    "InvalidArgumentError",
    "PixelBuffer",
    "Rectangle",
    "TextAligner",
]
