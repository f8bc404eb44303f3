# ABOUTME: Groups the event aggregation pipeline that produces daily metrics.
# ABOUTME: Re-exports the aggregator and the error-interval state machine.

from .daily_metrics import aggregate_daily_metrics, events_to_frame
from .error_intervals import ErrorIntervalMatcher, ErrorState, match_error_intervals

__all__ = [
    "aggregate_daily_metrics",
    "events_to_frame",
    "ErrorIntervalMatcher",
    "ErrorState",
    "match_error_intervals",
]
