# ABOUTME: Groups trend, pattern, and skill-assessment inference over daily metrics.
# ABOUTME: Re-exports the public entrypoints used by the batch job.

from .assessment import generate_skill_assessment
from .patterns import classify_pattern, detect_improvement_patterns
from .trends import classify_trend, majority_vote

__all__ = [
    "generate_skill_assessment",
    "classify_pattern",
    "detect_improvement_patterns",
    "classify_trend",
    "majority_vote",
]
