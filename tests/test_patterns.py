# ABOUTME: Tests derivative-based improvement pattern detection.
# ABOUTME: Covers per-series classification and the aggregate over developer history.

from datetime import date, timedelta

from src.common.schemas import DailyMetrics
from src.inference.patterns import classify_pattern, detect_improvement_patterns, inverted_resolution_times


def _history(n: int, efficiency, refinement, resolution):
    start = date(2024, 1, 1)
    return [
        DailyMetrics(
            developer_id="dev",
            date=start + timedelta(days=i),
            ai_assistance_level="medium",
            human_refinement_ratio=refinement(i),
            prompt_efficiency_score=efficiency(i),
            debugging_style="mixed",
            error_resolution_time=resolution(i),
            ai_dependency_ratio=0.4,
            session_count=2,
            active_time=90.0,
        )
        for i in range(n)
    ]


def test_short_series_is_steady():
    assert classify_pattern([0.1, 0.5, 0.9]) == "steady"


def test_quadratic_growth_is_accelerating():
    assert classify_pattern([0.01 * i * i for i in range(8)]) == "accelerating"


def test_flat_series_is_plateauing():
    assert classify_pattern([0.5] * 8) == "plateauing"


def test_linear_series_is_steady():
    assert classify_pattern([0.1 * i for i in range(8)]) == "steady"
    assert classify_pattern([1.0 - 0.1 * i for i in range(8)]) == "steady"


def test_inverted_resolution_times():
    assert inverted_resolution_times([0.0, 1.0, 9.0]) == [1.0, 0.5, 0.1]


def test_insufficient_history_defaults_to_steady():
    patterns = detect_improvement_patterns(
        _history(9, lambda i: 0.1 * i, lambda i: 0.1 * i, lambda i: 30.0)
    )
    assert patterns.has_consistent_improvement is False
    assert patterns.improvement_rate == 0.0
    assert (patterns.prompt_maturity, patterns.debugging, patterns.ai_collaboration) == ("steady",) * 3


def test_steady_progress_is_consistent_improvement():
    history = _history(
        12,
        efficiency=lambda i: 0.3 + 0.05 * i,
        refinement=lambda i: 0.2 + 0.05 * i,
        resolution=lambda i: 30.0 - 2.0 * i,
    )
    patterns = detect_improvement_patterns(history)
    assert patterns.prompt_maturity == "steady"
    assert patterns.ai_collaboration == "steady"
    assert patterns.debugging == "steady"
    assert patterns.has_consistent_improvement is True
    assert patterns.improvement_rate >= 0.0


def test_flat_history_plateaus_everywhere():
    patterns = detect_improvement_patterns(_history(12, lambda i: 0.6, lambda i: 0.4, lambda i: 12.0))
    assert (patterns.prompt_maturity, patterns.debugging, patterns.ai_collaboration) == ("plateauing",) * 3
    assert patterns.has_consistent_improvement is False
    assert patterns.improvement_rate == 0.0


def test_history_order_does_not_matter():
    history = _history(12, lambda i: 0.01 * i * i, lambda i: 0.5, lambda i: 20.0)
    assert detect_improvement_patterns(history) == detect_improvement_patterns(list(reversed(history)))
