# ABOUTME: Tests the three-vote trend classifier and its individual votes.
# ABOUTME: Checks insufficient-data defaults, tie handling, and zero-mean series.

import math

import pytest

from src.common.config import TrendConfig
from src.inference import trends
from src.inference.trends import (
    classify_trend,
    majority_vote,
    recent_comparison_vote,
    regression_slope,
    regression_vote,
    rolling_average_vote,
    rolling_averages,
)


def test_short_series_is_stable():
    assert classify_trend([]) == "stable"
    assert classify_trend([0.2, 0.9]) == "stable"


def test_three_points_cannot_trigger_any_vote():
    assert classify_trend([0.1, 0.5, 0.9]) == "stable"


def test_rising_series_wins_two_of_three_votes():
    history = list(range(1, 15))
    assert rolling_average_vote(history) == "improving"
    assert regression_vote(history) == "improving"
    assert recent_comparison_vote(history, current=9.5) == "stable"
    assert classify_trend(history, current=9.5) == "improving"


def test_falling_series_is_declining():
    assert classify_trend(list(range(14, 0, -1))) == "declining"


def test_flat_series_is_stable():
    assert classify_trend([0.5] * 10) == "stable"


def test_single_regression_vote_is_not_a_majority():
    # Five points: only the regression view has enough data.
    assert regression_vote([1, 2, 3, 4, 5]) == "improving"
    assert classify_trend([1, 2, 3, 4, 5]) == "stable"


def test_zero_mean_series_stays_finite():
    history = [0.0] * 6 + [0.5]
    assert classify_trend(history) == "improving"


def test_majority_vote_tie_is_stable():
    assert majority_vote(["improving", "declining", "stable"]) == "stable"
    assert majority_vote(["improving", "improving", "declining"]) == "improving"
    assert majority_vote(["declining", "declining", "stable"]) == "declining"


def test_three_way_split_resolves_to_stable(monkeypatch):
    monkeypatch.setattr(trends, "rolling_average_vote", lambda values, config: "improving")
    monkeypatch.setattr(trends, "regression_vote", lambda values, config: "declining")
    monkeypatch.setattr(trends, "recent_comparison_vote", lambda values, current, config: "stable")
    assert classify_trend([0.1, 0.2, 0.3, 0.4]) == "stable"


def test_current_defaults_to_last_value():
    history = [0.5] * 7 + [0.9]
    assert recent_comparison_vote(history) == recent_comparison_vote(history, current=0.9)


def test_rolling_averages_use_full_windows_only():
    assert rolling_averages(list(range(1, 9)), 7) == pytest.approx([4.0, 5.0])


def test_regression_slope():
    assert regression_slope([2, 4, 6]) == pytest.approx(2.0)
    assert regression_slope([5]) == 0.0
    assert not math.isnan(regression_slope([0.0, 0.0, 0.0]))


def test_thresholds_come_from_config():
    history = [1.0, 1.01, 1.02, 1.03, 1.04]
    assert regression_vote(history) == "stable"
    assert regression_vote(history, TrendConfig(slope_threshold=0.001)) == "improving"
