# ABOUTME: Assembles skill explanations from templated clauses keyed by score band, trend, and pattern.
# ABOUTME: Every clause quotes the metric value it describes; output is deterministic.

from __future__ import annotations

import re
from typing import List, Optional

from src.common.ranges import approximate_range_label
from src.common.schemas import AssistanceLevel, DailyMetrics, ImprovementPatterns, Pattern, Trend

_HEADLINE_SCORE = re.compile(r"score \d+/100 \([^)]*\)")
_NO_PASTES = "No AI output was pasted today, so there was nothing to refine."


def explain_prompt_maturity(
    metrics: DailyMetrics,
    score: int,
    trend: Trend,
    patterns: ImprovementPatterns,
    history_days: int,
    paste_count: Optional[int] = None,
) -> str:
    efficiency = metrics.prompt_efficiency_score
    refinement = metrics.human_refinement_ratio
    clauses = [_headline("Prompt maturity", score)]

    if efficiency > 0.7:
        clauses.append(f"AI output was accepted quickly (prompt efficiency {efficiency:.2f}), a sign of well-scoped prompts.")
    elif efficiency > 0.4:
        clauses.append(
            f"Prompt efficiency sits at {efficiency:.2f}; adding context to prompts should shorten time to acceptance."
        )
    else:
        clauses.append(
            f"Prompt efficiency of {efficiency:.2f} suggests prompts often need another round before the output is usable."
        )

    if paste_count == 0:
        clauses.append(_NO_PASTES)
    elif refinement > 0.7:
        clauses.append(f"{refinement:.0%} of pasted AI output was edited afterwards, showing active review.")
    elif refinement > 0.3:
        clauses.append(f"{refinement:.0%} of pasted AI output was refined, a healthy level of review.")
    else:
        clauses.append(f"Only {refinement:.0%} of pasted AI output was refined; review generated code more often.")

    clauses.append(_trend_clause("prompt efficiency", trend, patterns.prompt_maturity, history_days))
    return " ".join(clauses)


def explain_debugging_skill(
    metrics: DailyMetrics,
    score: int,
    trend: Trend,
    patterns: ImprovementPatterns,
    history_days: int,
) -> str:
    minutes = metrics.error_resolution_time
    dependency = metrics.ai_dependency_ratio
    clauses = [_headline("Debugging skill", score)]

    if metrics.debugging_style == "hypothesis-driven":
        clauses.append("Debug and test actions outweighed plain runs (hypothesis-driven style).")
    elif metrics.debugging_style == "trial-and-error":
        clauses.append("Plain runs dominated debug actions (trial-and-error style); stepping through code may pay off.")
    else:
        clauses.append("Runs, debug sessions and tests were mixed (mixed style).")

    if minutes <= 0:
        clauses.append("No error was both raised and resolved in a session today (0.0 min recorded).")
    elif minutes < 15:
        clauses.append(f"Errors were resolved in {minutes:.1f} min on average, which is quick.")
    elif minutes < 45:
        clauses.append(f"Errors took {minutes:.1f} min on average to resolve, a reasonable pace.")
    else:
        clauses.append(f"Errors took {minutes:.1f} min on average to resolve; narrowing hypotheses earlier could help.")

    if dependency < 0.3:
        clauses.append(f"AI accounted for {dependency:.0%} of productive events, so debugging was largely independent.")
    elif dependency < 0.7:
        clauses.append(f"AI accounted for {dependency:.0%} of productive events, balancing assistance and own work.")
    else:
        clauses.append(f"AI accounted for {dependency:.0%} of productive events; practising unassisted debugging is worthwhile.")

    clauses.append(_trend_clause("error resolution speed", trend, patterns.debugging, history_days))
    return " ".join(clauses)


def explain_ai_collaboration(
    metrics: DailyMetrics,
    score: int,
    dependency_level: AssistanceLevel,
    trend: Trend,
    patterns: ImprovementPatterns,
    history_days: int,
    paste_count: Optional[int] = None,
) -> str:
    dependency = metrics.ai_dependency_ratio
    refinement = metrics.human_refinement_ratio
    efficiency = metrics.prompt_efficiency_score
    clauses = [_headline("AI collaboration", score)]

    if dependency_level == "low":
        clauses.append(f"Dependency on AI is low ({dependency:.0%} of productive events), keeping hands-on skills sharp.")
    elif dependency_level == "medium":
        clauses.append(f"AI usage is balanced ({dependency:.0%} of productive events).")
    else:
        clauses.append(f"Dependency on AI is high ({dependency:.0%} of productive events); keep some work unassisted.")

    if paste_count == 0:
        clauses.append(_NO_PASTES)
    elif refinement > 0.7:
        clauses.append(f"{refinement:.0%} of AI pastes were refined by hand, strong collaborative review.")
    elif refinement > 0.3:
        clauses.append(f"{refinement:.0%} of AI pastes were refined by hand.")
    else:
        clauses.append(f"Only {refinement:.0%} of AI pastes were refined by hand; reworking generated code builds judgment.")

    if efficiency > 0.7:
        clauses.append(f"Prompts landed efficiently ({efficiency:.2f}).")
    elif efficiency > 0.4:
        clauses.append(f"Prompt efficiency is moderate ({efficiency:.2f}).")
    else:
        clauses.append(f"Prompt efficiency is low ({efficiency:.2f}).")

    if patterns.has_consistent_improvement:
        clauses.append(
            f"Improvement is consistent across skill areas ({patterns.improvement_rate:.1f}% improvement rate)."
        )
    else:
        clauses.append(_trend_clause("refinement ratio", trend, patterns.ai_collaboration, history_days))
    return " ".join(clauses)


def restate_score(explanation: str, score: int) -> str:
    """Rewrite the headline of an explanation so it quotes `score` and that score's band."""

    return _HEADLINE_SCORE.sub(_score_phrase(score), explanation, count=1)


def _headline(skill: str, score: int) -> str:
    return f"{skill} {_score_phrase(score)}."


def _score_phrase(score: int) -> str:
    return f"score {score}/100 ({approximate_range_label(score, 'score')})"


def _trend_clause(subject: str, trend: Trend, pattern: Pattern, history_days: int) -> str:
    if history_days < 3:
        return f"Only {history_days} earlier day(s) recorded, too few to call a trend in {subject} yet."

    parts: List[str] = []
    if trend == "improving":
        parts.append(f"Over the last {history_days} recorded days {subject} is improving")
        if pattern == "accelerating":
            parts.append("and the gains are accelerating.")
        elif pattern == "plateauing":
            parts.append("but the gains are levelling off.")
        else:
            parts.append("at a steady pace.")
    elif trend == "declining":
        parts.append(f"Over the last {history_days} recorded days {subject} has declined")
        if pattern == "plateauing":
            parts.append("and appears to have plateaued; trying a new approach may break through.")
        else:
            parts.append("; revisiting recent habits may help.")
    else:
        parts.append(f"Over the last {history_days} recorded days {subject} is stable")
        if pattern == "plateauing":
            parts.append("with little movement; a harder challenge could restart growth.")
        elif pattern == "accelerating":
            parts.append("though the latest days show gains picking up.")
        else:
            parts.append("with no clear direction.")

    text = " ".join(parts)
    return text.replace(" ;", ";")
