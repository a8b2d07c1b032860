"""Descriptive statistics for cycle lengths.

Thin wrappers over :mod:`statistics` that never raise on short input:
every function returns ``0.0`` where the value is undefined (empty input,
a single sample for spread measures, a zero mean for CV) so that callers
never see ``StatisticsError`` or NaN.
"""

from __future__ import annotations

import math
import statistics
from typing import Sequence


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    ``round()`` uses banker's rounding (``round(28.5) == 28``); day counts
    shown to users must round 28.5 up to 29.
    """
    return math.floor(value + 0.5)


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(statistics.fmean(values))


def population_stdev(values: Sequence[float], center: float | None = None) -> float:
    """Population standard deviation of ``values``.

    Args:
        values: Samples.
        center: Point to measure deviation from.  Defaults to the mean;
                the predictor passes its rounded average instead.

    Returns:
        Standard deviation in the units of ``values``; 0.0 for fewer
        than two samples.
    """
    if len(values) < 2:
        return 0.0
    if center is None:
        return float(statistics.pstdev(values))
    variance = sum((v - center) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def median(values: Sequence[float]) -> float:
    """Median; the mean of the two middle values for even counts."""
    if not values:
        return 0.0
    return float(statistics.median(values))


def median_absolute_deviation(values: Sequence[float]) -> float:
    """Median of absolute deviations from the median (unscaled MAD)."""
    if not values:
        return 0.0
    mid = median(values)
    return median([abs(v - mid) for v in values])


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation as a percentage of the mean."""
    avg = mean(values)
    if avg == 0:
        return 0.0
    return population_stdev(values) / avg * 100
