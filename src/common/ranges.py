# ABOUTME: Holds the approximate range buckets used to describe values without exact numbers.
# ABOUTME: Shared by explanations, the heuristic validator, and the measurement standardizer.

from math import inf
from typing import Dict, List, Sequence, Tuple

# (min, max, label), max exclusive.
APPROXIMATION_RANGES: Dict[str, List[Tuple[float, float, str]]] = {
    "score": [
        (0, 20, "Needs Attention"),
        (20, 40, "Developing"),
        (40, 60, "Moderate"),
        (60, 80, "Good"),
        (80, 100, "High"),
    ],
    "time": [
        (0, 5, "Very Quick"),
        (5, 15, "Quick"),
        (15, 30, "Moderate"),
        (30, 60, "Slow"),
        (60, inf, "Very Slow"),
    ],
    "dependency": [
        (0, 0.3, "Low"),
        (0.3, 0.7, "Balanced"),
        (0.7, 1, "High"),
    ],
}

# Bucket edges and labels per standardized measurement type.
MEASUREMENT_BUCKETS: Dict[str, Tuple[Sequence[float], Sequence[str]]] = {
    "prompt_efficiency": ([0, 0.2, 0.4, 0.6, 0.8, 1.0], ["Needs Work", "Developing", "Moderate", "Good", "Excellent"]),
    "error_resolution": ([0, 5, 15, 30, 60, inf], ["Very Quick", "Quick", "Moderate", "Slow", "Very Slow"]),
    "ai_dependency": ([0, 0.3, 0.7, 1.0], ["Low", "Balanced", "High"]),
    "refinement_ratio": ([0, 0.2, 0.5, 0.8, 1.0], ["Minimal", "Light", "Moderate", "Heavy"]),
    "session_activity": ([0, 2, 5, 10, 20, inf], ["Very Low", "Low", "Moderate", "High", "Very High"]),
}


def approximate_range_label(value: float, kind: str) -> str:
    """Label the range containing value; values past the last edge get the last label."""

    if kind not in APPROXIMATION_RANGES:
        raise ValueError(f"Unsupported range kind '{kind}'. Expected one of: {', '.join(APPROXIMATION_RANGES)}.")
    ranges = APPROXIMATION_RANGES[kind]
    if value < ranges[0][0]:
        return ranges[0][2]
    for low, high, label in ranges:
        if low <= value < high:
            return label
    return ranges[-1][2]


def bucket_label(value: float, measurement: str) -> str:
    if measurement not in MEASUREMENT_BUCKETS:
        raise ValueError(f"Unsupported measurement '{measurement}'.")
    edges, labels = MEASUREMENT_BUCKETS[measurement]
    if value < edges[0]:
        return labels[0]
    for i in range(len(edges) - 1):
        if edges[i] <= value < edges[i + 1]:
            return labels[i]
    return labels[-1]
