"""Command-line tool to straighten skewed scans of text."""

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from image_aligner.alignment import TextAligner
from image_aligner.exceptions import ImageProcessingError
from image_aligner.pixel_buffer import PixelBuffer

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Rotate images of text so their lines run horizontally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python align_text.py scan.png
  python align_text.py page1.png page2.png --output-dir aligned/
  python align_text.py scan.jpg --max-size 100 --method fft
        """,
    )
    parser.add_argument(
        "image_paths",
        type=str,
        nargs="+",
        help="Paths to input image files",
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default=None,
        help="Directory for aligned images (default: next to each input)",
    )
    parser.add_argument(
        "--max-size",
        type=int,
        default=150,
        help="Side of the square analysed by the DFT (default: 150)",
    )
    parser.add_argument(
        "--accuracy",
        type=int,
        default=1000,
        help="Number of spectral peak pixels used for the slope fit (default: 1000)",
    )
    parser.add_argument(
        "--method",
        choices=["naive", "direct", "fft"],
        default="direct",
        help="DFT evaluation strategy (default: direct)",
    )
    args = parser.parse_args()

    aligner = TextAligner(
        max_size=args.max_size, accuracy=args.accuracy, dft_method=args.method
    )
    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    failures = 0
    for image_path in tqdm([Path(p) for p in args.image_paths], desc="Aligning images"):
        try:
            image = PixelBuffer.open(image_path)
            result = aligner.align(image)
        except (FileNotFoundError, ImageProcessingError) as e:
            logger.error(f"{image_path}: {e}")
            failures += 1
            continue

        target_dir = output_dir or image_path.parent
        output_path = target_dir / f"{image_path.stem}_aligned.png"
        result.image.save(output_path)
        print(
            f"{image_path.name:30s} | rotation {result.rotation_degrees:8.2f} deg | "
            f"slope {result.skew.slope:8.4f} | -> {output_path}"
        )

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
