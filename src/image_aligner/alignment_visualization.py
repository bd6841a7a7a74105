"""Visualization functions for text alignment diagnostics."""

import logging
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from image_aligner.alignment import AlignmentResult

logger = logging.getLogger(__name__)

QUADRANT_COLORS = ("tab:red", "tab:blue", "tab:orange", "tab:cyan")


def _rgb(image) -> np.ndarray:
    """(alpha, red, green, blue) pixels as an RGB array for imshow."""
    return image.pixels[..., 1:]


def create_alignment_diagnostics_plot(
    result: AlignmentResult,
    title: str = "Text alignment",
    output_path: Optional[Path] = None,
    show_plot: bool = True,
) -> plt.Figure:
    """
    Create diagnostic plots for one alignment run.

    Args:
        result: AlignmentResult from TextAligner.align
        title: Figure title
        output_path: Optional path to save plot
        show_plot: Whether to display plot interactively

    Returns:
        The matplotlib figure
    """
    fig = plt.figure(figsize=(16, 10))
    gs = fig.add_gridspec(2, 3, hspace=0.3, wspace=0.3)

    skew = result.skew
    fig.suptitle(
        f"{title}: rotation {result.rotation_degrees:.2f} degrees "
        f"(slope {skew.slope:.4f}, {'q1+q3' if skew.positive else 'q2+q4'})",
        fontsize=16,
        fontweight="bold",
    )

    # 1. Normalized input
    ax1 = fig.add_subplot(gs[0, 0])
    ax1.imshow(_rgb(result.normalized))
    ax1.set_title(
        f"Normalized input ({result.normalized.width}x{result.normalized.height})",
        fontweight="bold",
    )
    ax1.axis("off")

    # 2. Log amplitude, DC component shifted to the centre for reading
    ax2 = fig.add_subplot(gs[0, 1])
    ax2.imshow(np.fft.fftshift(np.log1p(result.dft_output.amplitude)), cmap="hot")
    ax2.set_title("Log amplitude (centred DC)", fontweight="bold")
    ax2.set_xlabel("Frequency (v)")
    ax2.set_ylabel("Frequency (u)")

    # 3. Amplitude image as searched
    ax3 = fig.add_subplot(gs[0, 2])
    ax3.imshow(result.amplitude_image.green, cmap="gray", vmin=0, vmax=255)
    ax3.set_title("Amplitude image", fontweight="bold")
    ax3.axis("off")

    # 4. Filtered peaks with quadrant assignment
    ax4 = fig.add_subplot(gs[1, 0:2])
    ax4.imshow(result.filtered_image.green, cmap="gray", vmin=0, vmax=255)
    quadrant_sets = (result.quadrants.q1, result.quadrants.q2, result.quadrants.q3, result.quadrants.q4)
    for index, (points, color) in enumerate(zip(quadrant_sets, QUADRANT_COLORS), 1):
        if not points:
            continue
        cols = [p[0] for p in points]
        rows = [-p[1] for p in points]
        ax4.scatter(cols, rows, s=6, c=color, label=f"q{index} ({len(points)})")
    ax4.set_title(
        f"Filtered peaks: {result.quadrants.found} found",
        fontweight="bold",
    )
    if any(quadrant_sets):
        ax4.legend(loc="upper right")

    # 5. Output
    ax5 = fig.add_subplot(gs[1, 2])
    ax5.imshow(_rgb(result.image))
    ax5.set_title("Aligned output", fontweight="bold")
    ax5.axis("off")

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        logger.info(f"Saved diagnostics plot to {output_path}")

    if show_plot:
        # Only show if backend supports it
        backend = plt.get_backend()
        if backend.lower() != "agg":
            plt.show()
        else:
            logger.debug(f"Skipping plt.show() - non-interactive backend: {backend}")

    return fig
