"""Least-squares skew slope from quadrant peak sets."""

import logging
import math
from typing import NamedTuple, Sequence, Tuple

import numpy as np

from image_aligner.peak_locator import QuadrantPoints

logger = logging.getLogger(__name__)

__all__ = ['SkewEstimate', 'slope_of_best_fit', 'estimate_skew']


class SkewEstimate(NamedTuple):
    """Combined slope of the dominant diagonal quadrant pair."""

    slope: float  # NaN when no quadrant of the pair has a defined slope
    positive: bool  # True when q1 + q3 dominated, False for q2 + q4
    weights: Tuple[int, int]  # Point counts that weighted the two slopes


def slope_of_best_fit(points: Sequence[Tuple[float, float]]) -> float:
    """
    Ordinary least-squares slope through the centroid of a point set.

    slope = sum((x - x_mean) (y - y_mean)) / sum((x - x_mean)^2)

    Args:
        points: (x, y) pairs

    Returns:
        Slope, or NaN if the set is empty or all points share the same x
    """
    if len(points) == 0:
        return math.nan

    coords = np.asarray(points, dtype=np.float64)
    dx = coords[:, 0] - coords[:, 0].mean()
    dy = coords[:, 1] - coords[:, 1].mean()
    denominator = float(np.dot(dx, dx))
    if denominator == 0.0:
        return math.nan
    return float(np.dot(dx, dy)) / denominator


def estimate_skew(quadrants: QuadrantPoints) -> SkewEstimate:
    """
    Combine the slopes of the diagonal quadrant pair holding more peaks.

    If q1 has more points than q2 the pair is (q1, q3) and the estimate is
    positive, otherwise (q2, q4). The two slopes are averaged weighted by
    their point counts. An empty quadrant contributes nothing, but a
    non-empty quadrant whose slope is undefined (all points share one x)
    makes the whole estimate undefined.

    Args:
        quadrants: Output of spiral_search

    Returns:
        SkewEstimate; its slope is NaN when the pair holds no points or
        either non-empty quadrant is vertical
    """
    if len(quadrants.q1) > len(quadrants.q2):
        pair = (quadrants.q1, quadrants.q3)
        positive = True
    else:
        pair = (quadrants.q2, quadrants.q4)
        positive = False

    weighted_sum = 0.0
    total_weight = 0
    for points in pair:
        if not points:
            continue
        slope = slope_of_best_fit(points)
        if math.isnan(slope):
            logger.warning(f"Quadrant with {len(points)} vertical points, skew is undefined")
            weighted_sum = math.nan
            break
        weighted_sum += slope * len(points)
        total_weight += len(points)

    final_slope = weighted_sum / total_weight if total_weight else math.nan
    estimate = SkewEstimate(
        slope=final_slope, positive=positive, weights=(len(pair[0]), len(pair[1]))
    )
    logger.debug(
        f"Skew estimate: slope={final_slope:.6f}, positive={positive}, weights={estimate.weights}"
    )
    return estimate
