"""
Order statistics used by the ensemble aggregator.

Percentiles use linear interpolation between closest ranks with
h = (n - 1) * q, the same convention as numpy's default "linear" method.
Confidence radii are empirical: the k-th smallest distance with
k = ceil(p * n), so at least a fraction p of the sample lies inside.
"""

import math
from typing import Sequence


def mean(values: Sequence[float]) -> float:
    if not values:
        raise ValueError("mean of an empty sample")
    return math.fsum(values) / len(values)


def percentile(values: Sequence[float], q: float) -> float:
    """
    Linear order-statistic interpolation.

    Args:
        values: Sample, in any order
        q: Quantile in [0, 1]

    Returns:
        Interpolated quantile value
    """
    if not values:
        raise ValueError("percentile of an empty sample")
    if not 0.0 <= q <= 1.0:
        raise ValueError(f"quantile must be in [0, 1], got {q}")

    ordered = sorted(values)
    h = (len(ordered) - 1) * q
    lower = math.floor(h)
    upper = min(lower + 1, len(ordered) - 1)
    return ordered[lower] + (h - lower) * (ordered[upper] - ordered[lower])


def empirical_radius(distances: Sequence[float], probability: float) -> tuple[float, float]:
    """
    Smallest sample radius covering at least ``probability`` of the points.

    Points lying exactly on the returned radius are counted inside, so
    ties can push the achieved coverage above the requested probability.

    Returns:
        (radius, achieved_coverage)
    """
    if not distances:
        raise ValueError("radius of an empty sample")
    if not 0.0 < probability <= 1.0:
        raise ValueError(f"probability must be in (0, 1], got {probability}")

    ordered = sorted(distances)
    n = len(ordered)
    # Guard against p * n landing a hair above an integer in floating point
    k = max(1, min(n, math.ceil(round(probability * n, 9))))
    radius = ordered[k - 1]
    inside = sum(1 for d in ordered if d <= radius)
    return radius, inside / n


def root_mean_square(values: Sequence[float]) -> float:
    if not values:
        raise ValueError("rms of an empty sample")
    return math.sqrt(math.fsum(v * v for v in values) / len(values))


def mean_square(values: Sequence[float]) -> float:
    if not values:
        raise ValueError("mean square of an empty sample")
    return math.fsum(v * v for v in values) / len(values)
