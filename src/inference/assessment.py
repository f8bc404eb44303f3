# ABOUTME: Turns one day's metrics plus recent history into raw skill scores with trends and explanations.
# ABOUTME: Scores are deterministic here; privacy jitter is applied later by the standardizer.

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from src.common.config import EngineConfig, ScoringConfig
from src.common.schemas import (
    AiCollaboration,
    AssistanceLevel,
    DailyMetrics,
    DebuggingSkill,
    PromptMaturity,
    SkillAssessment,
)

from .explanations import explain_ai_collaboration, explain_debugging_skill, explain_prompt_maturity
from .patterns import detect_improvement_patterns, inverted_resolution_times
from .trends import classify_trend


def generate_skill_assessment(
    developer_id: str,
    assessment_date: date,
    current: DailyMetrics,
    history: Sequence[DailyMetrics],
    config: Optional[EngineConfig] = None,
    paste_count: Optional[int] = None,
) -> SkillAssessment:
    """
    Score prompt maturity, debugging skill, and AI collaboration for one developer-day.

    History rows dated on or after the assessment date are ignored, and the rest are
    ordered by date before trends and patterns are computed. `paste_count` is the
    day's number of paste events when the caller still has them; zero switches the
    refinement clauses to say nothing was pasted.
    """

    config = config or EngineConfig()
    prior = prior_history(history, assessment_date)
    scoring = config.scoring
    patterns = detect_improvement_patterns(prior, config.pattern)

    prompt_trend = classify_trend(
        [m.prompt_efficiency_score for m in prior], current.prompt_efficiency_score, config.trend
    )
    debugging_trend = classify_trend(
        inverted_resolution_times([m.error_resolution_time for m in prior]),
        1.0 / (current.error_resolution_time + 1.0),
        config.trend,
    )
    collaboration_trend = classify_trend(
        [m.human_refinement_ratio for m in prior], current.human_refinement_ratio, config.trend
    )

    prompt_score = prompt_maturity_score(current, scoring)
    debugging_score = debugging_skill_score(current, scoring)
    collaboration_score = ai_collaboration_score(current, scoring)
    dependency = dependency_level(current.ai_dependency_ratio, scoring)

    return SkillAssessment(
        developer_id=developer_id,
        assessment_date=assessment_date,
        prompt_maturity=PromptMaturity(
            score=prompt_score,
            trend=prompt_trend,
            explanation=explain_prompt_maturity(
                current, prompt_score, prompt_trend, patterns, len(prior), paste_count
            ),
        ),
        debugging_skill=DebuggingSkill(
            score=debugging_score,
            style=current.debugging_style,
            trend=debugging_trend,
            explanation=explain_debugging_skill(current, debugging_score, debugging_trend, patterns, len(prior)),
        ),
        ai_collaboration=AiCollaboration(
            score=collaboration_score,
            dependency_level=dependency,
            refinement_skill=int(round(_clamp(current.human_refinement_ratio, 0.0, 1.0) * 100)),
            explanation=explain_ai_collaboration(
                current, collaboration_score, dependency, collaboration_trend, patterns, len(prior), paste_count
            ),
        ),
    )


def prior_history(history: Sequence[DailyMetrics], assessment_date: date) -> List[DailyMetrics]:
    return sorted((m for m in history if m.date < assessment_date), key=lambda m: m.date)


def prompt_maturity_score(metrics: DailyMetrics, scoring: Optional[ScoringConfig] = None) -> int:
    scoring = scoring or ScoringConfig()
    ratio = metrics.human_refinement_ratio
    score = metrics.prompt_efficiency_score * scoring.prompt_efficiency_weight
    # Heavy refinement is rewarded; otherwise little rework reads as well-aimed prompts.
    if ratio > scoring.refinement_reward_threshold:
        score += ratio * scoring.refinement_weight
    else:
        score += (1.0 - ratio) * scoring.refinement_weight
    score += scoring.assistance_bonus.get(metrics.ai_assistance_level, 0.0)
    return _to_score(score)


def debugging_skill_score(metrics: DailyMetrics, scoring: Optional[ScoringConfig] = None) -> int:
    scoring = scoring or ScoringConfig()
    score = scoring.style_bonus.get(metrics.debugging_style, 0.0)

    span = scoring.resolution_worst_minutes - scoring.resolution_best_minutes
    speed = _clamp((scoring.resolution_worst_minutes - metrics.error_resolution_time) / span, 0.0, 1.0)
    score += speed * scoring.resolution_weight

    score += (1.0 - metrics.ai_dependency_ratio) * scoring.independence_weight
    return _to_score(score)


def ai_collaboration_score(metrics: DailyMetrics, scoring: Optional[ScoringConfig] = None) -> int:
    scoring = scoring or ScoringConfig()
    dependency = metrics.ai_dependency_ratio
    score = metrics.human_refinement_ratio * scoring.collaboration_refinement_weight
    score += metrics.prompt_efficiency_score * scoring.collaboration_efficiency_weight

    if dependency > scoring.over_dependency_ratio:
        score += scoring.over_dependency_bonus
    elif dependency < scoring.under_dependency_ratio:
        score += scoring.under_dependency_bonus
    else:
        score += scoring.balanced_bonus
    return _to_score(score)


def dependency_level(ratio: float, scoring: Optional[ScoringConfig] = None) -> AssistanceLevel:
    scoring = scoring or ScoringConfig()
    if ratio > scoring.high_dependency_ratio:
        return "high"
    if ratio > scoring.medium_dependency_ratio:
        return "medium"
    return "low"


def _to_score(value: float) -> int:
    return int(round(_clamp(value, 0.0, 100.0)))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))
