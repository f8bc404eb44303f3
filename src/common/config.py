# ABOUTME: Declares the immutable engine configuration passed into every component.
# ABOUTME: Loads thresholds, windows, and score weights from YAML into frozen dataclasses.

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

REOPEN_POLICIES = ("replace", "keep_first")


@dataclass(frozen=True)
class AggregationConfig:
    """Windows and thresholds for folding a day of events into metrics."""

    refinement_window_ms: int = 5 * 60 * 1000
    acceptance_window_ms: int = 2 * 60 * 1000
    high_ai_ratio: float = 0.3
    high_paste_ratio: float = 0.2
    medium_ratio: float = 0.1
    hypothesis_threshold: float = 0.6
    trial_and_error_threshold: float = 0.7
    neutral_efficiency: float = 0.5
    # What a second "appeared" marker does while an error is already open.
    reopen_policy: str = "replace"


@dataclass(frozen=True)
class TrendConfig:
    min_points: int = 3
    rolling_window: int = 7
    rolling_threshold: float = 0.05
    regression_min_points: int = 5
    slope_threshold: float = 0.01
    comparison_min_points: int = 7
    recent_window: int = 7
    recent_weight: float = 0.7
    comparison_threshold: float = 0.1
    min_denominator: float = 0.01


@dataclass(frozen=True)
class PatternConfig:
    min_points: int = 5
    second_derivative_window: int = 3
    first_derivative_window: int = 5
    acceleration_threshold: float = 0.01
    plateau_threshold: float = 0.005
    min_history: int = 10
    consistent_areas: int = 2


@dataclass(frozen=True)
class ScoringConfig:
    """Point weights of the composite skill scores (each sub-score sums to 100)."""

    prompt_efficiency_weight: float = 40.0
    refinement_weight: float = 30.0
    refinement_reward_threshold: float = 0.8
    assistance_bonus: Mapping[str, float] = field(
        default_factory=lambda: {"medium": 30.0, "low": 20.0, "high": 15.0}
    )
    style_bonus: Mapping[str, float] = field(
        default_factory=lambda: {"hypothesis-driven": 40.0, "mixed": 25.0, "trial-and-error": 10.0}
    )
    resolution_weight: float = 35.0
    resolution_best_minutes: float = 10.0
    resolution_worst_minutes: float = 60.0
    independence_weight: float = 25.0
    collaboration_refinement_weight: float = 40.0
    collaboration_efficiency_weight: float = 35.0
    over_dependency_ratio: float = 0.8
    over_dependency_bonus: float = 10.0
    under_dependency_ratio: float = 0.2
    under_dependency_bonus: float = 15.0
    balanced_bonus: float = 25.0
    high_dependency_ratio: float = 0.7
    medium_dependency_ratio: float = 0.3


@dataclass(frozen=True)
class ValidationConfig:
    """Expected domains and coefficient-of-variation ceilings per metric field."""

    ranges: Mapping[str, Any] = field(
        default_factory=lambda: {
            "prompt_efficiency_score": (0.0, 1.0),
            "human_refinement_ratio": (0.0, 1.0),
            "error_resolution_time": (0.0, 300.0),
            "ai_dependency_ratio": (0.0, 1.0),
            "session_count": (0.0, 50.0),
            "active_time": (0.0, 1440.0),
        }
    )
    expected_variance: Mapping[str, float] = field(
        default_factory=lambda: {
            "prompt_efficiency_score": 0.3,
            "human_refinement_ratio": 0.4,
            "error_resolution_time": 0.5,
            "ai_dependency_ratio": 0.3,
            "session_count": 0.6,
            "active_time": 0.5,
        }
    )
    identical_min_samples: int = 5
    min_explanation_length: int = 20


@dataclass(frozen=True)
class StandardizationConfig:
    jitter_fraction: float = 0.05
    score_jitter_points: float = 2.0
    # Absolute jitter amplitude floors for time (minutes) and count fields.
    min_time_jitter_minutes: float = 0.5
    min_count_jitter: float = 0.75
    max_error_resolution_minutes: float = 300.0
    max_active_minutes: float = 1440.0
    high_confidence_change: float = 0.05
    medium_confidence_change: float = 0.15


@dataclass(frozen=True)
class EngineConfig:
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)
    pattern: PatternConfig = field(default_factory=PatternConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    standardization: StandardizationConfig = field(default_factory=StandardizationConfig)
    history_window_days: int = 30


_SECTIONS = {
    "aggregation": AggregationConfig,
    "trend": TrendConfig,
    "pattern": PatternConfig,
    "scoring": ScoringConfig,
    "validation": ValidationConfig,
    "standardization": StandardizationConfig,
}


def engine_config_from_dict(raw: Optional[Mapping[str, Any]]) -> EngineConfig:
    """
    Build an EngineConfig from a nested mapping, keeping defaults for omitted keys.

    Unknown sections or keys raise ValueError so typos in YAML never pass silently.
    """

    raw = dict(raw or {})
    config = EngineConfig()
    overrides: Dict[str, Any] = {}

    for name, section in raw.items():
        if name == "history_window_days":
            overrides[name] = int(section)
            continue
        if name not in _SECTIONS:
            raise ValueError(f"Unknown config section '{name}'. Expected one of: {', '.join(sorted(_SECTIONS))}.")
        section_cls = _SECTIONS[name]
        allowed = {f.name for f in fields(section_cls)}
        unknown = set(section or {}) - allowed
        if unknown:
            raise ValueError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}.")
        values = dict(section or {})
        if name == "validation" and "ranges" in values:
            values["ranges"] = {key: tuple(bounds) for key, bounds in values["ranges"].items()}
        current = getattr(config, name)
        # Mapping-valued keys merge into the defaults instead of replacing them.
        for key, value in values.items():
            if isinstance(value, Mapping):
                values[key] = {**getattr(current, key), **value}
        overrides[name] = replace(current, **values)

    config = replace(config, **overrides)
    _check(config)
    return config


def load_engine_config(config_path: Optional[Path]) -> EngineConfig:
    """Programmatic entrypoint mirrored by the --config CLI option."""

    if config_path is None:
        return EngineConfig()
    with open(config_path) as f:
        cfg = yaml.safe_load(f)
    return engine_config_from_dict(cfg)


def _check(config: EngineConfig) -> None:
    if config.aggregation.reopen_policy not in REOPEN_POLICIES:
        raise ValueError(
            f"Unsupported reopen_policy '{config.aggregation.reopen_policy}'. "
            f"Expected one of: {', '.join(REOPEN_POLICIES)}."
        )
    if config.history_window_days < 1:
        raise ValueError("history_window_days must be at least 1.")
    if config.scoring.resolution_worst_minutes <= config.scoring.resolution_best_minutes:
        raise ValueError("resolution_worst_minutes must exceed resolution_best_minutes.")
    if not 0.0 <= config.trend.recent_weight <= 1.0:
        raise ValueError("trend.recent_weight must lie in [0, 1].")
