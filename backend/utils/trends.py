from __future__ import annotations

import math
from collections.abc import Sequence


STABLE_TREND = "stable"
NO_BASELINE_TREND = "no baseline available"


def percent_change(first: float, last: float) -> float | None:
    """Relative change from ``first`` to ``last`` in percent, or None without a positive baseline."""
    if first <= 0:
        return None
    change = (last - first) / first * 100.0
    return change if math.isfinite(change) else None


def classify_trend(series: Sequence[float], stable_threshold_pct: float = 5.0) -> str | None:
    """Classify the change between the first and last value of an ordered series.

    Returns None for fewer than two values, ``"stable"`` when the absolute change
    is under the threshold, otherwise ``"increasing (+X.X%)"`` / ``"decreasing (-X.X%)"``.
    A zero or negative first value has no meaningful baseline and yields
    ``"no baseline available"``.
    """
    if len(series) < 2:
        return None
    change = percent_change(float(series[0]), float(series[-1]))
    if change is None:
        return NO_BASELINE_TREND
    if abs(change) < stable_threshold_pct:
        return STABLE_TREND
    if change > 0:
        return f"increasing ({change:+.1f}%)"
    return f"decreasing ({change:+.1f}%)"
