# ABOUTME: Persists daily metrics and skill assessments as keyed parquet tables with upsert semantics.
# ABOUTME: Reads return typed records; history reads are date-ordered and bounded by a window.

from __future__ import annotations

import os
from dataclasses import asdict
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .schemas import AiCollaboration, DailyMetrics, DebuggingSkill, PromptMaturity, SkillAssessment

DAILY_METRICS_TABLE = "daily_metrics.parquet"
SKILL_ASSESSMENTS_TABLE = "skill_assessments.parquet"

DAILY_METRICS_COLUMNS = [
    "developer_id",
    "date",
    "ai_assistance_level",
    "human_refinement_ratio",
    "prompt_efficiency_score",
    "debugging_style",
    "error_resolution_time",
    "ai_dependency_ratio",
    "session_count",
    "active_time",
]
SKILL_ASSESSMENT_COLUMNS = [
    "developer_id",
    "assessment_date",
    "prompt_maturity_score",
    "prompt_maturity_trend",
    "prompt_maturity_explanation",
    "debugging_skill_score",
    "debugging_skill_style",
    "debugging_skill_trend",
    "debugging_skill_explanation",
    "ai_collaboration_score",
    "ai_collaboration_dependency_level",
    "ai_collaboration_refinement_skill",
    "ai_collaboration_explanation",
]


class MetricsStore:
    """
    Local row store for the engine's two output tables.

    Rows are keyed by (developer_id, date) and (developer_id, assessment_date); writing
    the same key again replaces the row. Dates are stored as ISO strings.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def daily_metrics_path(self) -> Path:
        return self.root / DAILY_METRICS_TABLE

    @property
    def skill_assessments_path(self) -> Path:
        return self.root / SKILL_ASSESSMENTS_TABLE

    def upsert_daily_metrics(self, metrics: DailyMetrics) -> None:
        row = asdict(metrics)
        row["date"] = metrics.date.isoformat()
        self._upsert(self.daily_metrics_path, DAILY_METRICS_COLUMNS, ("developer_id", "date"), row)

    def get_daily_metrics(self, developer_id: str, day: date) -> Optional[DailyMetrics]:
        df = self._read(self.daily_metrics_path, DAILY_METRICS_COLUMNS)
        match = df[(df["developer_id"] == developer_id) & (df["date"] == day.isoformat())]
        if match.empty:
            return None
        return _metrics_from_row(match.iloc[0].to_dict())

    def delete_daily_metrics(self, developer_id: str, day: date) -> bool:
        """Remove one metrics row; returns whether a row was there."""

        df = self._read(self.daily_metrics_path, DAILY_METRICS_COLUMNS)
        same_key = (df["developer_id"] == developer_id) & (df["date"] == day.isoformat())
        if not same_key.any():
            return False
        self._write(self.daily_metrics_path, df[~same_key].reset_index(drop=True))
        return True

    def get_history(self, developer_id: str, before: date, window: int = 30) -> List[DailyMetrics]:
        """Rows dated in [before - window days, before), oldest first."""

        df = self._read(self.daily_metrics_path, DAILY_METRICS_COLUMNS)
        start = (before - timedelta(days=window)).isoformat()
        mask = (df["developer_id"] == developer_id) & (df["date"] >= start) & (df["date"] < before.isoformat())
        rows = df[mask].sort_values("date")
        return [_metrics_from_row(row) for row in rows.to_dict(orient="records")]

    def upsert_skill_assessment(self, assessment: SkillAssessment) -> None:
        self._upsert(
            self.skill_assessments_path,
            SKILL_ASSESSMENT_COLUMNS,
            ("developer_id", "assessment_date"),
            _assessment_to_row(assessment),
        )

    def get_skill_assessment(self, developer_id: str, assessment_date: date) -> Optional[SkillAssessment]:
        df = self._read(self.skill_assessments_path, SKILL_ASSESSMENT_COLUMNS)
        match = df[(df["developer_id"] == developer_id) & (df["assessment_date"] == assessment_date.isoformat())]
        if match.empty:
            return None
        return _assessment_from_row(match.iloc[0].to_dict())

    def latest_skill_assessment(self, developer_id: str) -> Optional[SkillAssessment]:
        df = self._read(self.skill_assessments_path, SKILL_ASSESSMENT_COLUMNS)
        rows = df[df["developer_id"] == developer_id].sort_values("assessment_date")
        if rows.empty:
            return None
        return _assessment_from_row(rows.iloc[-1].to_dict())

    def list_developers(self) -> List[str]:
        df = self._read(self.daily_metrics_path, DAILY_METRICS_COLUMNS)
        return sorted(df["developer_id"].unique().tolist())

    def _read(self, path: Path, columns: Sequence[str]) -> pd.DataFrame:
        if not path.exists():
            return pd.DataFrame(columns=list(columns))
        return pd.read_parquet(path)

    def _upsert(self, path: Path, columns: Sequence[str], key: Sequence[str], row: Dict) -> None:
        existing = self._read(path, columns)
        same_key = pd.Series(True, index=existing.index)
        for column in key:
            same_key &= existing[column] == row[column]
        keep = ~same_key
        new_row = pd.DataFrame([row], columns=list(columns))
        survivors = existing[keep]
        table = new_row if survivors.empty else pd.concat([survivors, new_row], ignore_index=True)
        table = table.sort_values(list(key), kind="mergesort").reset_index(drop=True)
        self._write(path, table)

    def _write(self, path: Path, table: pd.DataFrame) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        table.to_parquet(tmp_path, index=False)
        os.replace(tmp_path, path)


def _metrics_from_row(row: Dict) -> DailyMetrics:
    return DailyMetrics(
        developer_id=str(row["developer_id"]),
        date=date.fromisoformat(str(row["date"])),
        ai_assistance_level=row["ai_assistance_level"],
        human_refinement_ratio=float(row["human_refinement_ratio"]),
        prompt_efficiency_score=float(row["prompt_efficiency_score"]),
        debugging_style=row["debugging_style"],
        error_resolution_time=float(row["error_resolution_time"]),
        ai_dependency_ratio=float(row["ai_dependency_ratio"]),
        session_count=int(row["session_count"]),
        active_time=float(row["active_time"]),
    )


def _assessment_to_row(assessment: SkillAssessment) -> Dict:
    prompt = assessment.prompt_maturity
    debugging = assessment.debugging_skill
    collaboration = assessment.ai_collaboration
    return {
        "developer_id": assessment.developer_id,
        "assessment_date": assessment.assessment_date.isoformat(),
        "prompt_maturity_score": int(prompt.score),
        "prompt_maturity_trend": prompt.trend,
        "prompt_maturity_explanation": prompt.explanation,
        "debugging_skill_score": int(debugging.score),
        "debugging_skill_style": debugging.style,
        "debugging_skill_trend": debugging.trend,
        "debugging_skill_explanation": debugging.explanation,
        "ai_collaboration_score": int(collaboration.score),
        "ai_collaboration_dependency_level": collaboration.dependency_level,
        "ai_collaboration_refinement_skill": int(collaboration.refinement_skill),
        "ai_collaboration_explanation": collaboration.explanation,
    }


def _assessment_from_row(row: Dict) -> SkillAssessment:
    return SkillAssessment(
        developer_id=str(row["developer_id"]),
        assessment_date=date.fromisoformat(str(row["assessment_date"])),
        prompt_maturity=PromptMaturity(
            score=int(row["prompt_maturity_score"]),
            trend=row["prompt_maturity_trend"],
            explanation=row["prompt_maturity_explanation"],
        ),
        debugging_skill=DebuggingSkill(
            score=int(row["debugging_skill_score"]),
            style=row["debugging_skill_style"],
            trend=row["debugging_skill_trend"],
            explanation=row["debugging_skill_explanation"],
        ),
        ai_collaboration=AiCollaboration(
            score=int(row["ai_collaboration_score"]),
            dependency_level=row["ai_collaboration_dependency_level"],
            refinement_skill=int(row["ai_collaboration_refinement_skill"]),
            explanation=row["ai_collaboration_explanation"],
        ),
    )
