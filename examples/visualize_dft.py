"""Visual DFT tool - show each stage of the text alignment pipeline for one image."""

import argparse
import logging
import sys
from pathlib import Path

from image_aligner.alignment import TextAligner
from image_aligner.alignment_visualization import create_alignment_diagnostics_plot
from image_aligner.exceptions import ImageProcessingError
from image_aligner.pixel_buffer import PixelBuffer

# Configure logging
logging.basicConfig(level=logging.WARNING)


def main():
    """Main visualization function."""
    parser = argparse.ArgumentParser(
        description="Visualize the DFT, peak filter and quadrant fit used to align text"
    )
    parser.add_argument("image_path", type=str, help="Path to the image file")
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Path to save the diagnostics plot",
    )
    parser.add_argument(
        "--no-display",
        action="store_true",
        help="Don't display plot interactively (save only)",
    )
    args = parser.parse_args()

    image_path = Path(args.image_path)
    try:
        image = PixelBuffer.open(image_path)
        result = TextAligner().align(image)
    except (FileNotFoundError, ImageProcessingError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Analyzing image: {image_path}")
    print(f"  Rotation: {result.rotation_degrees:.2f} degrees")
    print(f"  Spectral slope: {result.skew.slope:.4f}")
    print(f"  Peak pixels found: {result.quadrants.found} (quadrants {result.quadrants.sizes})")

    output_path = Path(args.output) if args.output else None
    create_alignment_diagnostics_plot(
        result,
        title=image_path.name,
        output_path=output_path,
        show_plot=not args.no_display,
    )


if __name__ == "__main__":
    main()
