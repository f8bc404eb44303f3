# ABOUTME: Makes the shared common package importable across aggregation, inference, and jobs.
# ABOUTME: Re-exports schema types, engine configuration, and the metrics store for convenience.

from .schemas import DailyMetrics, RawEvent, SkillAssessment
from .config import EngineConfig, load_engine_config
from .store import MetricsStore

__all__ = [
    "DailyMetrics",
    "RawEvent",
    "SkillAssessment",
    "EngineConfig",
    "load_engine_config",
    "MetricsStore",
]
