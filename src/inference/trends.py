# ABOUTME: Classifies a historical metric series as improving, stable, or declining.
# ABOUTME: Combines rolling-average, regression-slope, and recent-comparison votes by majority.

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from src.common.config import TrendConfig
from src.common.schemas import Trend


def classify_trend(
    history: Sequence[float],
    current: Optional[float] = None,
    config: Optional[TrendConfig] = None,
) -> Trend:
    """
    Majority vote of three independent views of the same series.

    Returns "stable" when the series is shorter than config.min_points or when no
    label commands a plurality.
    """

    config = config or TrendConfig()
    values = _as_array(history)
    if values.size < config.min_points:
        return "stable"

    votes = [
        rolling_average_vote(values, config),
        regression_vote(values, config),
        recent_comparison_vote(values, current, config),
    ]
    return majority_vote(votes)


def majority_vote(votes: Sequence[Trend]) -> Trend:
    improving = sum(1 for v in votes if v == "improving")
    declining = sum(1 for v in votes if v == "declining")
    stable = sum(1 for v in votes if v == "stable")

    if improving > declining and improving > stable:
        return "improving"
    if declining > improving and declining > stable:
        return "declining"
    return "stable"


def rolling_average_vote(history: Sequence[float], config: Optional[TrendConfig] = None) -> Trend:
    """Compare the latest trailing rolling average with the one at the midpoint of the rolling series."""

    config = config or TrendConfig()
    values = _as_array(history)
    if values.size < config.rolling_window:
        return "stable"

    rolling = rolling_averages(values, config.rolling_window)
    if len(rolling) < 2:
        return "stable"

    recent = rolling[-1]
    older = rolling[len(rolling) // 2]
    change = (recent - older) / max(older, config.min_denominator)
    return _label(change, config.rolling_threshold)


def regression_vote(history: Sequence[float], config: Optional[TrendConfig] = None) -> Trend:
    config = config or TrendConfig()
    values = _as_array(history)
    if values.size < config.regression_min_points:
        return "stable"

    normalized = regression_slope(values) / max(float(values.mean()), config.min_denominator)
    return _label(normalized, config.slope_threshold)


def recent_comparison_vote(
    history: Sequence[float],
    current: Optional[float] = None,
    config: Optional[TrendConfig] = None,
) -> Trend:
    config = config or TrendConfig()
    values = _as_array(history)
    if values.size < config.comparison_min_points:
        return "stable"

    if current is None:
        current = float(values[-1])
    floor = config.min_denominator
    full_avg = float(values.mean())
    recent_avg = float(values[-config.recent_window :].mean())

    vs_recent = (current - recent_avg) / max(recent_avg, floor)
    vs_full = (current - full_avg) / max(full_avg, floor)
    weighted = config.recent_weight * vs_recent + (1.0 - config.recent_weight) * vs_full
    return _label(weighted, config.comparison_threshold)


def rolling_averages(values: Sequence[float], window: int) -> List[float]:
    """Trailing rolling means; only full windows are returned."""

    series = pd.Series(_as_array(values))
    return series.rolling(window).mean().dropna().tolist()


def regression_slope(values: Sequence[float]) -> float:
    """Ordinary least-squares slope of value against position; 0.0 for fewer than two points."""

    y = _as_array(values)
    n = y.size
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    x_centered = x - x.mean()
    return float(np.dot(x_centered, y - y.mean()) / np.dot(x_centered, x_centered))


def _label(change: float, threshold: float) -> Trend:
    if change > threshold:
        return "improving"
    if change < -threshold:
        return "declining"
    return "stable"


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)
