# ABOUTME: Applies bounded privacy jitter and re-clamping to every number leaving the engine.
# ABOUTME: Builds measurement reports that pair approximate labels with confidence levels.

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np

from src.common.config import StandardizationConfig, ValidationConfig
from src.common.ranges import bucket_label
from src.common.schemas import (
    ConfidenceLevel,
    DailyMetrics,
    MeasurementReport,
    RawEvent,
    SkillAssessment,
    StandardizedMeasurement,
)
from src.inference.explanations import restate_score

from .validator import HeuristicValidator

RATIO_FIELDS = ("prompt_efficiency_score", "human_refinement_ratio", "ai_dependency_ratio")
TIME_FIELDS = ("error_resolution_time", "active_time")
COUNT_FIELDS = ("session_count",)

# Metric field -> bucket table used for its approximate label.
FIELD_BUCKETS = {
    "prompt_efficiency_score": "prompt_efficiency",
    "error_resolution_time": "error_resolution",
    "ai_dependency_ratio": "ai_dependency",
    "human_refinement_ratio": "refinement_ratio",
    "session_count": "session_activity",
}

APPROXIMATION_RULES = ("round", "range", "category")


class MeasurementStandardizer:
    """
    Jitters and clamps metrics and scores before they are persisted or shown.

    The random source is injected so production can use a fresh default_rng while
    tests pass a seeded generator. Each field draws independently on every call.
    """

    def __init__(
        self,
        config: Optional[StandardizationConfig] = None,
        validation: Optional[ValidationConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or StandardizationConfig()
        self.validation = validation or ValidationConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.validator = HeuristicValidator(self.validation)

    def standardize_daily_metrics(self, metrics: DailyMetrics) -> DailyMetrics:
        return replace(
            metrics,
            prompt_efficiency_score=self.jitter_value(metrics.prompt_efficiency_score, "prompt_efficiency_score"),
            human_refinement_ratio=self.jitter_value(metrics.human_refinement_ratio, "human_refinement_ratio"),
            ai_dependency_ratio=self.jitter_value(metrics.ai_dependency_ratio, "ai_dependency_ratio"),
            error_resolution_time=self.jitter_value(metrics.error_resolution_time, "error_resolution_time"),
            session_count=int(self.jitter_value(metrics.session_count, "session_count")),
            active_time=self.jitter_value(metrics.active_time, "active_time"),
        )

    def standardize_daily_metrics_batch(self, metrics: Sequence[DailyMetrics]) -> List[DailyMetrics]:
        return [self.standardize_daily_metrics(m) for m in metrics]

    def standardize_skill_assessment(self, assessment: SkillAssessment) -> SkillAssessment:
        """Jitter every score; explanation headlines are restated to quote the jittered score."""

        prompt_score = self.jitter_score(assessment.prompt_maturity.score)
        debugging_score = self.jitter_score(assessment.debugging_skill.score)
        collaboration_score = self.jitter_score(assessment.ai_collaboration.score)
        return replace(
            assessment,
            prompt_maturity=replace(
                assessment.prompt_maturity,
                score=prompt_score,
                explanation=restate_score(assessment.prompt_maturity.explanation, prompt_score),
            ),
            debugging_skill=replace(
                assessment.debugging_skill,
                score=debugging_score,
                explanation=restate_score(assessment.debugging_skill.explanation, debugging_score),
            ),
            ai_collaboration=replace(
                assessment.ai_collaboration,
                score=collaboration_score,
                refinement_skill=self.jitter_score(assessment.ai_collaboration.refinement_skill),
                explanation=restate_score(assessment.ai_collaboration.explanation, collaboration_score),
            ),
        )

    def jitter_value(self, value: float, field_name: str) -> float:
        """Add one uniform draw scaled to the field's expected variance, then re-clamp."""

        value = float(value)
        scale = self.config.jitter_fraction * self.validation.expected_variance[field_name]
        if field_name not in RATIO_FIELDS:
            # Unbounded fields jitter relative to their own magnitude, never below a fixed floor.
            scale = max(scale * abs(value), self._jitter_floor(field_name))
        jittered = value + self.rng.uniform(-scale, scale)
        return self.clamp_field(jittered, field_name)

    def _jitter_floor(self, field_name: str) -> float:
        if field_name in TIME_FIELDS:
            return self.config.min_time_jitter_minutes
        if field_name in COUNT_FIELDS:
            return self.config.min_count_jitter
        return 0.0

    def jitter_score(self, score: float) -> int:
        points = self.config.score_jitter_points
        jittered = float(score) + self.rng.uniform(-points, points)
        return int(round(min(100.0, max(0.0, jittered))))

    def clamp_field(self, value: float, field_name: str) -> float:
        if field_name in RATIO_FIELDS:
            return min(1.0, max(0.0, value))
        if field_name == "error_resolution_time":
            return min(self.config.max_error_resolution_minutes, max(0.0, value))
        if field_name == "active_time":
            return min(self.config.max_active_minutes, max(1.0, value))
        if field_name == "session_count":
            return float(max(0, int(round(value))))
        raise ValueError(f"Unsupported metric field '{field_name}'.")

    def standardize_measurement(self, value: float, field_name: str) -> StandardizedMeasurement:
        if field_name not in FIELD_BUCKETS:
            raise ValueError(
                f"Unsupported measurement field '{field_name}'. Expected one of: {', '.join(FIELD_BUCKETS)}."
            )
        standardized = self.jitter_value(value, field_name)
        return StandardizedMeasurement(
            original_value=float(value),
            standardized_value=standardized,
            approximate_range=bucket_label(standardized, FIELD_BUCKETS[field_name]),
            confidence_level=self.confidence_level(float(value), standardized),
        )

    def confidence_level(self, original: float, standardized: float) -> ConfidenceLevel:
        change = abs(standardized - original) / max(original, 0.01)
        if change < self.config.high_confidence_change:
            return "high"
        if change < self.config.medium_confidence_change:
            return "medium"
        return "low"

    def generate_measurement_report(
        self,
        developer_id: str,
        metrics: Sequence[DailyMetrics],
        events: Sequence[RawEvent],
    ) -> MeasurementReport:
        """
        Combine metric consistency and event plausibility into one compliance view.

        Events that only raise warnings get half credit; the standardized measurements
        are built from field averages over the supplied metrics.
        """

        metrics_report = self.validator.validate_daily_metrics(metrics)
        events_report = self.validator.validate_event_measurements(events)
        overall = (metrics_report.overall_consistency + (1.0 if events_report.is_valid else 0.5)) / 2.0

        recommendations = list(metrics_report.recommendations)
        recommendations += [f"Event validation: {issue}" for issue in events_report.issues]
        recommendations += [f"Event warning: {warning}" for warning in events_report.warnings]
        if overall < 0.7:
            recommendations.append("Consider reviewing data collection processes for consistency")
        if overall < 0.5:
            recommendations.append("Significant measurement inconsistencies detected - review heuristic algorithms")

        standardized: Dict[str, StandardizedMeasurement] = {}
        if metrics:
            for field_name in FIELD_BUCKETS:
                average = float(np.mean([float(getattr(m, field_name)) for m in metrics]))
                standardized[field_name] = self.standardize_measurement(average, field_name)

        return MeasurementReport(
            developer_id=developer_id,
            report_date=datetime.now(timezone.utc).isoformat(),
            consistency_score=overall,
            validation_results=metrics_report.validation_results,
            standardized_metrics=standardized,
            recommendations=recommendations,
            compliance_status=compliance_status(overall),
        )


def compliance_status(score: float) -> str:
    if score >= 0.8:
        return "compliant"
    if score >= 0.6:
        return "warning"
    return "non-compliant"


def approximate(value: float, rule: str):
    """Coarsen a number for display: nearest 5, a range string, or a category word."""

    if rule == "round":
        return int(round(value / 5.0) * 5)
    if rule == "range":
        if value < 10:
            return "0-10"
        if value < 25:
            return "10-25"
        if value < 50:
            return "25-50"
        if value < 75:
            return "50-75"
        return "75+"
    if rule == "category":
        for edge, label in ((0.2, "Very Low"), (0.4, "Low"), (0.6, "Moderate"), (0.8, "High")):
            if value < edge:
                return label
        return "Very High"
    raise ValueError(f"Unsupported approximation rule '{rule}'. Expected one of: {', '.join(APPROXIMATION_RULES)}.")
