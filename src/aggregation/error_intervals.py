# ABOUTME: Models error_marker pairing as an explicit per-session state machine.
# ABOUTME: Turns appeared/resolved markers into closed error intervals in milliseconds.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from src.common.config import REOPEN_POLICIES
from src.common.schemas import RawEvent


@dataclass(frozen=True)
class ErrorState:
    """Per-session state: no open error (open_since is None) or an error open since a timestamp."""

    open_since: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.open_since is not None


NO_OPEN_ERROR = ErrorState()


@dataclass(frozen=True)
class ErrorInterval:
    session_id: str
    appeared: int
    resolved: int

    @property
    def duration_ms(self) -> int:
        return self.resolved - self.appeared


def on_appeared(state: ErrorState, timestamp: int, reopen_policy: str = "replace") -> ErrorState:
    if not state.is_open:
        return ErrorState(open_since=timestamp)
    if reopen_policy == "keep_first":
        return state
    return ErrorState(open_since=timestamp)


def on_resolved(state: ErrorState, timestamp: int) -> Tuple[ErrorState, Optional[Tuple[int, int]]]:
    """Close the open interval; a resolve with nothing open leaves the state untouched."""
    if not state.is_open:
        return state, None
    return NO_OPEN_ERROR, (state.open_since, timestamp)


class ErrorIntervalMatcher:
    """
    Feeds time-ordered error_marker events through one state machine per session.

    A marker flagged both appeared and resolved is treated as appeared.
    """

    def __init__(self, reopen_policy: str = "replace"):
        if reopen_policy not in REOPEN_POLICIES:
            raise ValueError(f"Unsupported reopen_policy '{reopen_policy}'.")
        self.reopen_policy = reopen_policy
        self.states: Dict[str, ErrorState] = {}
        self.intervals: List[ErrorInterval] = []

    def feed(self, event: RawEvent) -> None:
        state = self.states.get(event.session_id, NO_OPEN_ERROR)
        if event.metadata.get("error_appeared"):
            self.states[event.session_id] = on_appeared(state, event.timestamp, self.reopen_policy)
        elif event.metadata.get("error_resolved"):
            new_state, closed = on_resolved(state, event.timestamp)
            self.states[event.session_id] = new_state
            if closed is not None:
                self.intervals.append(ErrorInterval(event.session_id, closed[0], closed[1]))

    def open_sessions(self) -> List[str]:
        return sorted(sid for sid, state in self.states.items() if state.is_open)


def match_error_intervals(events: Iterable[RawEvent], reopen_policy: str = "replace") -> List[ErrorInterval]:
    markers = [e for e in events if e.event_type == "error_marker"]
    markers.sort(key=lambda e: e.timestamp)
    matcher = ErrorIntervalMatcher(reopen_policy)
    for event in markers:
        matcher.feed(event)
    return matcher.intervals


def mean_resolution_minutes(intervals: List[ErrorInterval]) -> float:
    if not intervals:
        return 0.0
    total_ms = sum(interval.duration_ms for interval in intervals)
    return total_ms / len(intervals) / 60000.0
