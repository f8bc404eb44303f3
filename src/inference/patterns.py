# ABOUTME: Detects accelerating, steady, or plateauing improvement from metric derivatives.
# ABOUTME: Aggregates per-area patterns into a consistent-improvement flag and rate.

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from src.common.config import PatternConfig
from src.common.schemas import DailyMetrics, ImprovementPatterns, Pattern

from .trends import regression_slope


def classify_pattern(series: Sequence[float], config: Optional[PatternConfig] = None) -> Pattern:
    config = config or PatternConfig()
    values = np.asarray(list(series), dtype=float)
    if values.size < config.min_points:
        return "steady"

    first = np.diff(values)
    second = np.diff(first)
    recent_second = float(second[-config.second_derivative_window :].mean())
    recent_first = float(first[-config.first_derivative_window :].mean())

    if recent_second > config.acceleration_threshold and recent_first > 0:
        return "accelerating"
    if abs(recent_first) < config.plateau_threshold:
        return "plateauing"
    return "steady"


def inverted_resolution_times(minutes: Sequence[float]) -> List[float]:
    """Map resolution minutes to 1/(t+1) so faster fixes read as higher values."""
    return [1.0 / (float(t) + 1.0) for t in minutes]


def detect_improvement_patterns(
    history: Sequence[DailyMetrics], config: Optional[PatternConfig] = None
) -> ImprovementPatterns:
    """
    Classify prompt, debugging, and collaboration progressions over a developer's history.

    With fewer than config.min_history rows every area reads "steady" and no
    improvement is claimed.
    """

    config = config or PatternConfig()
    if len(history) < config.min_history:
        return ImprovementPatterns(
            has_consistent_improvement=False,
            improvement_rate=0.0,
            prompt_maturity="steady",
            debugging="steady",
            ai_collaboration="steady",
        )

    ordered = sorted(history, key=lambda m: m.date)
    efficiency = [m.prompt_efficiency_score for m in ordered]
    resolution = inverted_resolution_times([m.error_resolution_time for m in ordered])
    refinement = [m.human_refinement_ratio for m in ordered]

    prompt_pattern = classify_pattern(efficiency, config)
    debugging_pattern = classify_pattern(resolution, config)
    collaboration_pattern = classify_pattern(refinement, config)

    progressing = sum(
        1
        for pattern in (prompt_pattern, debugging_pattern, collaboration_pattern)
        if pattern in ("accelerating", "steady")
    )
    improvement_rate = max(0.0, regression_slope(efficiency + refinement + resolution) * 100.0)

    return ImprovementPatterns(
        has_consistent_improvement=progressing >= config.consistent_areas,
        improvement_rate=improvement_rate,
        prompt_maturity=prompt_pattern,
        debugging=debugging_pattern,
        ai_collaboration=collaboration_pattern,
    )
