# ABOUTME: Defines canonical data structures shared by aggregation, inference, and standardization.
# ABOUTME: Centralizes raw event, daily metrics, and skill assessment schema definitions.

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Literal, Mapping, Optional

EventType = Literal[
    "keystroke_burst",
    "paste",
    "ai_invocation",
    "debug_action",
    "file_switch",
    "error_marker",
]
AssistanceLevel = Literal["low", "medium", "high"]
DebuggingStyle = Literal["hypothesis-driven", "trial-and-error", "mixed"]
Trend = Literal["improving", "stable", "declining"]
Pattern = Literal["accelerating", "steady", "plateauing"]
ConfidenceLevel = Literal["high", "medium", "low"]

EVENT_TYPES = (
    "keystroke_burst",
    "paste",
    "ai_invocation",
    "debug_action",
    "file_switch",
    "error_marker",
)
ASSISTANCE_LEVELS = ("low", "medium", "high")
DEBUGGING_STYLES = ("hypothesis-driven", "trial-and-error", "mixed")
TRENDS = ("improving", "stable", "declining")
PATTERNS = ("accelerating", "steady", "plateauing")


@dataclass(frozen=True)
class RawEvent:
    """Privacy-scrubbed interaction event captured on the editor side."""

    id: str
    developer_id: str
    timestamp: int  # epoch milliseconds
    event_type: EventType
    session_id: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DailyMetrics:
    """One developer's behavioral metrics for one calendar day."""

    developer_id: str
    date: date
    ai_assistance_level: AssistanceLevel
    human_refinement_ratio: float
    prompt_efficiency_score: float
    debugging_style: DebuggingStyle
    error_resolution_time: float  # minutes
    ai_dependency_ratio: float
    session_count: int
    active_time: float  # minutes


@dataclass(frozen=True)
class PromptMaturity:
    score: int
    trend: Trend
    explanation: str


@dataclass(frozen=True)
class DebuggingSkill:
    score: int
    style: DebuggingStyle
    trend: Trend
    explanation: str


@dataclass(frozen=True)
class AiCollaboration:
    score: int
    dependency_level: AssistanceLevel
    refinement_skill: int
    explanation: str


@dataclass(frozen=True)
class SkillAssessment:
    """Skill scores inferred for one developer on one assessment date."""

    developer_id: str
    assessment_date: date
    prompt_maturity: PromptMaturity
    debugging_skill: DebuggingSkill
    ai_collaboration: AiCollaboration


@dataclass(frozen=True)
class ImprovementPatterns:
    """Shape of improvement across the three tracked skill areas."""

    has_consistent_improvement: bool
    improvement_rate: float
    prompt_maturity: Pattern
    debugging: Pattern
    ai_collaboration: Pattern


@dataclass
class ValidationResult:
    is_valid: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    normalized_value: Optional[float] = None


@dataclass
class ConsistencyReport:
    overall_consistency: float
    validation_results: Dict[str, ValidationResult] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [w for result in self.validation_results.values() for w in result.warnings]

    @property
    def issues(self) -> List[str]:
        return [i for result in self.validation_results.values() for i in result.issues]


@dataclass(frozen=True)
class StandardizedMeasurement:
    original_value: float
    standardized_value: float
    approximate_range: str
    confidence_level: ConfidenceLevel


@dataclass
class MeasurementReport:
    developer_id: str
    report_date: str
    consistency_score: float
    validation_results: Dict[str, ValidationResult]
    standardized_metrics: Dict[str, StandardizedMeasurement]
    recommendations: List[str]
    compliance_status: Literal["compliant", "warning", "non-compliant"]
