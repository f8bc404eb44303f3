# ABOUTME: Folds one developer-day of raw interaction events into a DailyMetrics record.
# ABOUTME: Computes assistance level, refinement, prompt efficiency, debugging style, and error timing.

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from src.common.config import AggregationConfig
from src.common.schemas import AssistanceLevel, DailyMetrics, DebuggingStyle, RawEvent

from .error_intervals import match_error_intervals, mean_resolution_minutes

FRAME_COLUMNS = ["id", "timestamp", "event_type", "session_id", "action_type"]


def events_to_frame(events: Iterable[RawEvent]) -> pd.DataFrame:
    """Flatten raw events into a timestamp-ordered frame (stable for equal timestamps)."""

    rows = [
        {
            "id": event.id,
            "timestamp": int(event.timestamp),
            "event_type": event.event_type,
            "session_id": event.session_id,
            "action_type": event.metadata.get("action_type"),
        }
        for event in events
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["timestamp"] = df["timestamp"].astype("int64")
    return df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)


def aggregate_daily_metrics(
    developer_id: str,
    day: date,
    events: Sequence[RawEvent],
    config: Optional[AggregationConfig] = None,
) -> DailyMetrics:
    """
    Compute the daily metrics for one developer from that day's validated events.

    Steps:
    - Count sessions and the first-to-last event span (a coarse active-time proxy).
    - Classify AI assistance from invocation/paste/keystroke shares.
    - Match pastes to follow-up keystrokes and invocations to accepting pastes, per session.
    - Classify the debugging style and pair error markers into resolution intervals.
    """

    config = config or AggregationConfig()
    if not events:
        raise ValueError(f"No events supplied for developer '{developer_id}' on {day}.")

    df = events_to_frame(events)
    counts = df["event_type"].value_counts()
    ai_count = int(counts.get("ai_invocation", 0))
    paste_count = int(counts.get("paste", 0))
    keystroke_count = int(counts.get("keystroke_burst", 0))

    span_ms = int(df["timestamp"].iloc[-1] - df["timestamp"].iloc[0])
    active_time = max(1.0, span_ms / 60000.0)

    intervals = match_error_intervals(events, reopen_policy=config.reopen_policy)

    return DailyMetrics(
        developer_id=developer_id,
        date=day,
        ai_assistance_level=classify_assistance_level(ai_count, paste_count, keystroke_count, config),
        human_refinement_ratio=human_refinement_ratio(df, config.refinement_window_ms),
        prompt_efficiency_score=prompt_efficiency_score(
            df, config.acceptance_window_ms, neutral=config.neutral_efficiency
        ),
        debugging_style=classify_debugging_style(df, config),
        error_resolution_time=mean_resolution_minutes(intervals),
        ai_dependency_ratio=ai_dependency_ratio(ai_count, paste_count, keystroke_count),
        session_count=int(df["session_id"].nunique()),
        active_time=active_time,
    )


def classify_assistance_level(
    ai_count: int, paste_count: int, keystroke_count: int, config: Optional[AggregationConfig] = None
) -> AssistanceLevel:
    config = config or AggregationConfig()
    total = ai_count + paste_count + keystroke_count
    if total == 0:
        return "low"

    ai_ratio = ai_count / total
    paste_ratio = paste_count / total
    if ai_ratio > config.high_ai_ratio and paste_ratio > config.high_paste_ratio:
        return "high"
    if ai_ratio > config.medium_ratio or paste_ratio > config.medium_ratio:
        return "medium"
    return "low"


def human_refinement_ratio(df: pd.DataFrame, window_ms: int) -> float:
    """Share of pastes followed by a keystroke burst in the same session within the window."""

    paste_total = int((df["event_type"] == "paste").sum())
    if paste_total == 0:
        return 1.0
    delays = _session_delays(df, "paste", "keystroke_burst", window_ms)
    refined = int(np.count_nonzero(~np.isnan(delays)))
    return float(min(1.0, refined / paste_total))


def prompt_efficiency_score(df: pd.DataFrame, window_ms: int, neutral: float = 0.5) -> float:
    """Mean of 1 - delay/window over invocations accepted by a paste inside the window."""

    delays = _session_delays(df, "ai_invocation", "paste", window_ms)
    matched = delays[~np.isnan(delays)]
    if matched.size == 0:
        return float(neutral)
    efficiency = np.maximum(0.0, 1.0 - matched / float(window_ms))
    return float(efficiency.mean())


def classify_debugging_style(df: pd.DataFrame, config: Optional[AggregationConfig] = None) -> DebuggingStyle:
    config = config or AggregationConfig()
    debug_actions = df[df["event_type"] == "debug_action"]
    total = len(debug_actions)
    if total == 0:
        return "mixed"

    actions = debug_actions["action_type"].value_counts()
    systematic = int(actions.get("debug", 0)) + int(actions.get("test", 0))
    runs = int(actions.get("run", 0))
    if systematic / total > config.hypothesis_threshold:
        return "hypothesis-driven"
    if runs / total > config.trial_and_error_threshold:
        return "trial-and-error"
    return "mixed"


def ai_dependency_ratio(ai_count: int, paste_count: int, keystroke_count: int) -> float:
    total = ai_count + paste_count + keystroke_count
    if total == 0:
        return 0.0
    return (ai_count + paste_count) / total


def next_within(anchors: np.ndarray, followers: np.ndarray, window_ms: int) -> np.ndarray:
    """
    Delay from each anchor to the first strictly later follower, NaN when none lands in the window.
    """

    anchors = np.asarray(anchors, dtype="int64")
    delays = np.full(anchors.shape, np.nan)
    followers = np.sort(np.asarray(followers, dtype="int64"))
    if anchors.size == 0 or followers.size == 0:
        return delays

    idx = np.searchsorted(followers, anchors, side="right")
    has_next = idx < followers.size
    gap = followers[np.minimum(idx, followers.size - 1)] - anchors
    hit = has_next & (gap <= window_ms)
    delays[hit] = gap[hit]
    return delays


def _session_delays(df: pd.DataFrame, anchor_type: str, follower_type: str, window_ms: int) -> np.ndarray:
    anchors = df[df["event_type"] == anchor_type]
    followers = df[df["event_type"] == follower_type]
    followers_by_session: Dict[str, np.ndarray] = {
        session_id: group["timestamp"].to_numpy()
        for session_id, group in followers.groupby("session_id", sort=False)
    }

    parts: List[np.ndarray] = []
    for session_id, group in anchors.groupby("session_id", sort=False):
        session_followers = followers_by_session.get(session_id, np.empty(0, dtype="int64"))
        parts.append(next_within(group["timestamp"].to_numpy(), session_followers, window_ms))
    if not parts:
        return np.empty(0)
    return np.concatenate(parts)
