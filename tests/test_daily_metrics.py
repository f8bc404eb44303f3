# ABOUTME: Tests folding a developer-day of raw events into DailyMetrics.
# ABOUTME: Uses synthetic event streams to exercise each derived metric and its edge cases.

from datetime import date

import numpy as np
import pytest

from src.aggregation.daily_metrics import (
    aggregate_daily_metrics,
    classify_assistance_level,
    events_to_frame,
    human_refinement_ratio,
    next_within,
    prompt_efficiency_score,
)
from src.common.schemas import RawEvent

DAY = date(2024, 3, 4)
BASE_TS = 1_709_550_000_000


def _ev(offset_ms: int, event_type: str, session: str = "s1", **metadata) -> RawEvent:
    return RawEvent(
        id=f"{event_type}-{session}-{offset_ms}",
        developer_id="dev-1",
        timestamp=BASE_TS + offset_ms,
        event_type=event_type,
        session_id=session,
        metadata=metadata,
    )


def test_ai_heavy_day_is_high_assistance_with_quick_acceptance():
    events = []
    for i in range(10):
        start = i * 60_000
        events.append(_ev(start, "ai_invocation"))
        events.append(_ev(start + 3_000, "paste"))

    metrics = aggregate_daily_metrics("dev-1", DAY, events)

    assert metrics.ai_assistance_level == "high"
    assert metrics.prompt_efficiency_score == pytest.approx(0.975)
    assert metrics.human_refinement_ratio == pytest.approx(0.0)
    assert metrics.ai_dependency_ratio == pytest.approx(1.0)
    assert metrics.session_count == 1


def test_error_resolved_after_ten_minutes():
    events = [
        _ev(0, "error_marker", error_appeared=True, error_resolved=False),
        _ev(600_000, "error_marker", error_appeared=False, error_resolved=True),
    ]
    metrics = aggregate_daily_metrics("dev-1", DAY, events)
    assert metrics.error_resolution_time == pytest.approx(10.0)
    assert metrics.active_time == pytest.approx(10.0)


def test_no_pastes_means_full_refinement_and_neutral_efficiency():
    events = [_ev(0, "keystroke_burst"), _ev(30_000, "keystroke_burst")]
    metrics = aggregate_daily_metrics("dev-1", DAY, events)
    assert metrics.human_refinement_ratio == 1.0
    assert metrics.prompt_efficiency_score == 0.5
    assert metrics.ai_assistance_level == "low"
    assert metrics.ai_dependency_ratio == 0.0


def test_active_time_has_one_minute_floor():
    metrics = aggregate_daily_metrics("dev-1", DAY, [_ev(0, "file_switch")])
    assert metrics.active_time == 1.0
    assert metrics.debugging_style == "mixed"
    assert metrics.error_resolution_time == 0.0


def test_refinement_counts_follow_up_keystrokes_in_same_session_only():
    events = [
        _ev(0, "paste", "s1"),
        _ev(60_000, "keystroke_burst", "s1"),
        _ev(0, "paste", "s2"),
        _ev(60_000, "keystroke_burst", "s3"),
        _ev(400_000, "paste", "s1"),
        _ev(400_000 + 301_000, "keystroke_burst", "s1"),  # outside the five minute window
    ]
    metrics = aggregate_daily_metrics("dev-1", DAY, events)
    assert metrics.human_refinement_ratio == pytest.approx(1 / 3)
    assert metrics.session_count == 3


def test_prompt_efficiency_ignores_pastes_outside_window():
    events = [
        _ev(0, "ai_invocation"),
        _ev(60_000, "paste"),  # 0.5 contribution
        _ev(200_000, "ai_invocation"),
        _ev(200_000 + 130_000, "paste"),  # too late, unmatched
    ]
    df = events_to_frame(events)
    assert prompt_efficiency_score(df, 120_000) == pytest.approx(0.5)


def test_debugging_styles():
    hypothesis = [_ev(i, "debug_action", action_type=a) for i, a in enumerate(["debug", "test", "test", "run"])]
    trial = [_ev(i, "debug_action", action_type=a) for i, a in enumerate(["run"] * 8 + ["debug"])]
    mixed = [_ev(i, "debug_action", action_type=a) for i, a in enumerate(["run", "run", "debug", "test"])]

    assert aggregate_daily_metrics("dev-1", DAY, hypothesis).debugging_style == "hypothesis-driven"
    assert aggregate_daily_metrics("dev-1", DAY, trial).debugging_style == "trial-and-error"
    assert aggregate_daily_metrics("dev-1", DAY, mixed).debugging_style == "mixed"


def test_assistance_level_thresholds():
    assert classify_assistance_level(0, 0, 0) == "low"
    assert classify_assistance_level(4, 3, 3) == "high"
    assert classify_assistance_level(2, 0, 8) == "medium"
    assert classify_assistance_level(1, 1, 18) == "low"


def test_caller_order_is_irrelevant():
    events = [_ev(0, "ai_invocation"), _ev(30_000, "paste"), _ev(90_000, "keystroke_burst")]
    forward = aggregate_daily_metrics("dev-1", DAY, events)
    backward = aggregate_daily_metrics("dev-1", DAY, list(reversed(events)))
    assert forward == backward


def test_empty_batch_is_rejected():
    with pytest.raises(ValueError):
        aggregate_daily_metrics("dev-1", DAY, [])


def test_next_within_requires_strictly_later_follower():
    delays = next_within(np.array([0, 100, 1000]), np.array([0, 150]), window_ms=100)
    assert np.isnan(delays[0])  # follower at 150 is past the window
    assert delays[1] == 50
    assert np.isnan(delays[2])


def test_refinement_ratio_is_bounded():
    events = [_ev(0, "paste")] + [_ev(i * 1000, "keystroke_burst") for i in range(1, 20)]
    assert 0.0 <= human_refinement_ratio(events_to_frame(events), 300_000) <= 1.0
