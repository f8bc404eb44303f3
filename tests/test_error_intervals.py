# ABOUTME: Tests the per-session error marker state machine and interval matching.
# ABOUTME: Covers both reopen policies and unmatched resolve markers.

import pytest

from src.aggregation.error_intervals import (
    NO_OPEN_ERROR,
    ErrorIntervalMatcher,
    ErrorState,
    match_error_intervals,
    mean_resolution_minutes,
    on_appeared,
    on_resolved,
)
from src.common.schemas import RawEvent


def _marker(ts: int, session: str = "s1", appeared: bool = False, resolved: bool = False) -> RawEvent:
    return RawEvent(
        id=f"e{ts}-{session}",
        developer_id="dev",
        timestamp=ts,
        event_type="error_marker",
        session_id=session,
        metadata={"error_appeared": appeared, "error_resolved": resolved},
    )


def test_appeared_opens_and_resolved_closes():
    state = on_appeared(NO_OPEN_ERROR, 100)
    assert state.is_open and state.open_since == 100

    state, closed = on_resolved(state, 700)
    assert state == NO_OPEN_ERROR
    assert closed == (100, 700)


def test_resolved_without_open_error_is_ignored():
    state, closed = on_resolved(NO_OPEN_ERROR, 500)
    assert state == NO_OPEN_ERROR
    assert closed is None


def test_reopen_policy_replace_restarts_interval():
    state = on_appeared(ErrorState(open_since=100), 400, reopen_policy="replace")
    assert state.open_since == 400


def test_reopen_policy_keep_first_ignores_later_marker():
    state = on_appeared(ErrorState(open_since=100), 400, reopen_policy="keep_first")
    assert state.open_since == 100


def test_single_interval_of_ten_minutes():
    events = [_marker(0, appeared=True), _marker(600_000, resolved=True)]
    intervals = match_error_intervals(events)
    assert len(intervals) == 1
    assert mean_resolution_minutes(intervals) == pytest.approx(10.0)


def test_intervals_are_matched_per_session():
    events = [
        _marker(0, "a", appeared=True),
        _marker(60_000, "b", resolved=True),  # nothing open in b
        _marker(120_000, "a", resolved=True),
        _marker(180_000, "b", appeared=True),
        _marker(480_000, "b", resolved=True),
    ]
    intervals = match_error_intervals(events)
    assert sorted(i.duration_ms for i in intervals) == [120_000, 300_000]
    assert mean_resolution_minutes(intervals) == pytest.approx(3.5)


def test_double_appeared_depends_on_policy():
    events = [
        _marker(0, appeared=True),
        _marker(300_000, appeared=True),
        _marker(600_000, resolved=True),
    ]
    replaced = match_error_intervals(events, reopen_policy="replace")
    kept = match_error_intervals(events, reopen_policy="keep_first")
    assert mean_resolution_minutes(replaced) == pytest.approx(5.0)
    assert mean_resolution_minutes(kept) == pytest.approx(10.0)


def test_marker_with_both_flags_counts_as_appeared():
    matcher = ErrorIntervalMatcher()
    matcher.feed(_marker(0, appeared=True, resolved=True))
    assert matcher.open_sessions() == ["s1"]
    assert matcher.intervals == []


def test_input_order_does_not_matter():
    events = [_marker(600_000, resolved=True), _marker(0, appeared=True)]
    assert mean_resolution_minutes(match_error_intervals(events)) == pytest.approx(10.0)


def test_no_intervals_means_zero_minutes():
    assert mean_resolution_minutes([]) == 0.0


def test_unknown_reopen_policy_rejected():
    with pytest.raises(ValueError):
        ErrorIntervalMatcher(reopen_policy="latest")
