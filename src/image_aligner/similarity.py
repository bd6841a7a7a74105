"""Operations involving more than one image."""

import logging

import numpy as np

from image_aligner.pixel_buffer import PixelBuffer
from image_aligner.transforms import ImageTransformer

logger = logging.getLogger(__name__)

__all__ = ['cosine_similarity']


def cosine_similarity(img1: PixelBuffer, img2: PixelBuffer) -> float:
    """
    Cosine similarity between the grayscale versions of two images.

    Only the region both images cover (from the top-left corner) is
    compared.

    Args:
        img1: First image
        img2: Second image

    Returns:
        Similarity in [0, 1]; 1.0 if both images are black, 0.0 if exactly
        one of them is
    """
    gray1 = ImageTransformer(img1).grayscale().green
    gray2 = ImageTransformer(img2).grayscale().green

    h = min(gray1.shape[0], gray2.shape[0])
    w = min(gray1.shape[1], gray2.shape[1])
    a = gray1[:h, :w].astype(np.float64).ravel()
    b = gray2[:h, :w].astype(np.float64).ravel()

    norm_a = np.sqrt(np.dot(a, a))
    norm_b = np.sqrt(np.dot(b, b))
    if norm_a == 0 and norm_b == 0:
        return 1.0
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    logger.debug(f"Cosine similarity over {w}x{h} overlap: {similarity:.6f}")
    return similarity
