# ABOUTME: Diagnoses daily metrics, skill assessments, and raw events for range and consistency problems.
# ABOUTME: Never blocks the pipeline; findings are returned as issues, warnings, and recommendations.

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from src.common.config import ValidationConfig
from src.common.ranges import approximate_range_label
from src.common.schemas import (
    ASSISTANCE_LEVELS,
    DEBUGGING_STYLES,
    TRENDS,
    ConsistencyReport,
    DailyMetrics,
    RawEvent,
    SkillAssessment,
    ValidationResult,
)

METRIC_LABELS = {
    "prompt_efficiency_score": "Prompt Efficiency",
    "human_refinement_ratio": "Human Refinement Ratio",
    "error_resolution_time": "Error Resolution Time",
    "ai_dependency_ratio": "AI Dependency Ratio",
    "session_count": "Session Count",
    "active_time": "Active Time",
}


class EventLimits:
    MAX_BURST_MS = 5 * 60 * 1000
    MAX_CHARACTERS = 10_000
    MAX_PASTE_LENGTH = 100_000
    MAX_AI_TO_PASTE_MS = 60 * 60 * 1000
    MAX_RESOLVE_MS = 2 * 60 * 60 * 1000
    MIN_EPOCH_MS = 1_000_000_000_000
    MAX_EPOCH_MS = 9_999_999_999_999


class CrossMetricLimits:
    HIGH_DEPENDENCY = 0.7
    LOW_DEPENDENCY = 0.3
    HEAVY_REFINEMENT = 0.9
    HEAVY_DEPENDENCY = 0.8
    LONG_SESSION_MINUTES = 480
    SHORT_SESSION_MINUTES = 5
    MANY_SESSIONS = 10
    SLOW_SYSTEMATIC_MINUTES = 120


class HeuristicValidator:
    """Checks that heuristic measurements stay plausible and approximately consistent."""

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()

    def validate_daily_metrics(self, metrics: Sequence[DailyMetrics]) -> ConsistencyReport:
        if not metrics:
            return ConsistencyReport(
                overall_consistency=0.0,
                validation_results={},
                recommendations=["No metrics available for validation"],
            )

        results: Dict[str, ValidationResult] = {}
        for name in METRIC_LABELS:
            values = [float(getattr(m, name)) for m in metrics]
            results[name] = self.validate_metric_consistency(values, name)
        results["cross_metric"] = self.validate_cross_metric_consistency(metrics)

        valid = sum(1 for result in results.values() if result.is_valid)
        recommendations: List[str] = []
        for name, result in results.items():
            if not result.is_valid:
                recommendations.append(f"{name}: {', '.join(result.issues)}")
            if result.warnings:
                recommendations.append(f"{name} warnings: {', '.join(result.warnings)}")

        return ConsistencyReport(
            overall_consistency=valid / len(results),
            validation_results=results,
            recommendations=recommendations,
        )

    def validate_metric_consistency(self, values: Sequence[float], name: str) -> ValidationResult:
        """Range, coefficient-of-variation, and identical-value checks for one metric field."""

        label = METRIC_LABELS.get(name, name)
        if not values:
            return ValidationResult(is_valid=False, issues=[f"No {label} values to validate"])

        low, high = self.config.ranges[name]
        max_cv = self.config.expected_variance[name]
        arr = np.asarray(values, dtype=float)
        issues: List[str] = []
        warnings: List[str] = []

        out_of_range = int(np.count_nonzero((arr < low) | (arr > high)))
        if out_of_range:
            issues.append(f"{out_of_range} {label} values out of expected range ({low:g}-{high:g})")

        mean = float(arr.mean())
        cv = float(arr.std()) / max(mean, 0.01)
        if cv > max_cv:
            warnings.append(f"{label} shows high variance ({cv:.2f} > {max_cv})")

        if arr.size > self.config.identical_min_samples and np.unique(arr).size == 1:
            warnings.append(f"{label} has identical values across all measurements")

        return ValidationResult(
            is_valid=not issues,
            issues=issues,
            warnings=warnings,
            normalized_value=(min(max(mean, low), high) - low) / (high - low),
        )

    def validate_cross_metric_consistency(self, metrics: Sequence[DailyMetrics]) -> ValidationResult:
        limits = CrossMetricLimits
        warnings: List[str] = []
        for m in metrics:
            dependency = m.ai_dependency_ratio
            if dependency > limits.HIGH_DEPENDENCY and m.ai_assistance_level == "low":
                warnings.append(f"High AI dependency ({dependency:.2f}) but low assistance level on {m.date}")
            if dependency < limits.LOW_DEPENDENCY and m.ai_assistance_level == "high":
                warnings.append(f"Low AI dependency ({dependency:.2f}) but high assistance level on {m.date}")
            if m.human_refinement_ratio > limits.HEAVY_REFINEMENT and dependency > limits.HEAVY_DEPENDENCY:
                warnings.append(f"Very high refinement ratio with high AI dependency on {m.date}")

            per_session = m.active_time / max(m.session_count, 1)
            if per_session > limits.LONG_SESSION_MINUTES:
                warnings.append(f"Unusually long average session time ({per_session:.0f} min) on {m.date}")
            if per_session < limits.SHORT_SESSION_MINUTES and m.session_count > limits.MANY_SESSIONS:
                warnings.append(f"Very short sessions with high session count on {m.date}")

            if m.error_resolution_time > limits.SLOW_SYSTEMATIC_MINUTES and m.debugging_style == "hypothesis-driven":
                warnings.append(f"Long error resolution time with systematic debugging style on {m.date}")

        return ValidationResult(is_valid=True, issues=[], warnings=warnings)

    def validate_skill_assessment(self, assessment: SkillAssessment) -> ValidationResult:
        issues: List[str] = []
        warnings: List[str] = []
        prompt = assessment.prompt_maturity
        debugging = assessment.debugging_skill
        collaboration = assessment.ai_collaboration

        for label, score in (
            ("Prompt maturity score", prompt.score),
            ("Debugging skill score", debugging.score),
            ("AI collaboration score", collaboration.score),
            ("Refinement skill score", collaboration.refinement_skill),
        ):
            if not 0 <= score <= 100:
                issues.append(f"{label} out of valid range (0-100)")

        if prompt.trend not in TRENDS:
            issues.append("Invalid prompt maturity trend value")
        if debugging.trend not in TRENDS:
            issues.append("Invalid debugging skill trend value")
        if collaboration.dependency_level not in ASSISTANCE_LEVELS:
            issues.append("Invalid AI collaboration dependency level")
        if debugging.style not in DEBUGGING_STYLES:
            issues.append("Invalid debugging skill style")

        min_length = self.config.min_explanation_length
        for label, text in (
            ("Prompt maturity", prompt.explanation),
            ("Debugging skill", debugging.explanation),
            ("AI collaboration", collaboration.explanation),
        ):
            if not text or len(text) < min_length:
                warnings.append(f"{label} explanation is too brief")

        return ValidationResult(is_valid=not issues, issues=issues, warnings=warnings)

    def validate_event_measurements(self, events: Sequence[RawEvent]) -> ValidationResult:
        """Flag physically implausible sizes and timings in raw event metadata."""

        limits = EventLimits
        issues: List[str] = []
        warnings: List[str] = []

        def values(event_type: str, key: str) -> List[float]:
            return [
                float(e.metadata[key])
                for e in events
                if e.event_type == event_type and e.metadata.get(key) is not None
            ]

        if any(d < 0 or d > limits.MAX_BURST_MS for d in values("keystroke_burst", "burst_duration")):
            issues.append("Keystroke burst durations contain unrealistic values")
        if any(c < 0 or c > limits.MAX_CHARACTERS for c in values("keystroke_burst", "character_count")):
            issues.append("Character counts contain unrealistic values")
        if any(n < 0 or n > limits.MAX_PASTE_LENGTH for n in values("paste", "paste_length")):
            issues.append("Paste lengths contain unrealistic values")
        if any(t < 0 or t > limits.MAX_AI_TO_PASTE_MS for t in values("paste", "time_since_ai_invocation")):
            warnings.append("Some AI invocation timings seem unusually long")
        if any(t < 0 or t > limits.MAX_RESOLVE_MS for t in values("error_marker", "time_to_resolve")):
            warnings.append("Some error resolution times seem unusually long")

        if any(e.timestamp < limits.MIN_EPOCH_MS or e.timestamp > limits.MAX_EPOCH_MS for e in events):
            issues.append("Event timestamps are not in valid Unix millisecond format")

        return ValidationResult(is_valid=not issues, issues=issues, warnings=warnings)

    @staticmethod
    def approximate_range(value: float, kind: str) -> str:
        return approximate_range_label(value, kind)
