# ABOUTME: Tests the parquet-backed metrics store for upsert, history, and assessment reads.
# ABOUTME: Each test writes into a fresh temporary directory.

from dataclasses import replace
from datetime import date, timedelta

import pandas as pd

from src.common.schemas import AiCollaboration, DailyMetrics, DebuggingSkill, PromptMaturity, SkillAssessment
from src.common.store import MetricsStore

DAY = date(2024, 3, 15)


def _metrics(developer_id: str = "dev-1", day: date = DAY, efficiency: float = 0.6) -> DailyMetrics:
    return DailyMetrics(
        developer_id=developer_id,
        date=day,
        ai_assistance_level="medium",
        human_refinement_ratio=0.5,
        prompt_efficiency_score=efficiency,
        debugging_style="mixed",
        error_resolution_time=15.0,
        ai_dependency_ratio=0.4,
        session_count=2,
        active_time=95.0,
    )


def _assessment(day: date = DAY, score: int = 70) -> SkillAssessment:
    return SkillAssessment(
        developer_id="dev-1",
        assessment_date=day,
        prompt_maturity=PromptMaturity(score, "improving", "Prompt maturity explanation."),
        debugging_skill=DebuggingSkill(61, "mixed", "stable", "Debugging explanation."),
        ai_collaboration=AiCollaboration(55, "medium", 50, "Collaboration explanation."),
    )


def test_daily_metrics_round_trip(tmp_path):
    store = MetricsStore(tmp_path)
    store.upsert_daily_metrics(_metrics())
    assert store.get_daily_metrics("dev-1", DAY) == _metrics()
    assert store.get_daily_metrics("dev-1", DAY - timedelta(days=1)) is None


def test_upsert_overwrites_same_key(tmp_path):
    store = MetricsStore(tmp_path)
    store.upsert_daily_metrics(_metrics(efficiency=0.2))
    store.upsert_daily_metrics(_metrics(efficiency=0.9))
    store.upsert_daily_metrics(_metrics(efficiency=0.9))

    table = pd.read_parquet(store.daily_metrics_path)
    assert len(table) == 1
    assert store.get_daily_metrics("dev-1", DAY).prompt_efficiency_score == 0.9
    assert not list(tmp_path.glob("*.tmp"))


def test_history_is_ordered_windowed_and_exclusive(tmp_path):
    store = MetricsStore(tmp_path)
    for offset in (3, 1, 40, 2, 0):
        store.upsert_daily_metrics(_metrics(day=DAY - timedelta(days=offset)))
    store.upsert_daily_metrics(_metrics(developer_id="dev-2", day=DAY - timedelta(days=1)))

    history = store.get_history("dev-1", DAY, window=30)
    assert [m.date for m in history] == [DAY - timedelta(days=d) for d in (3, 2, 1)]
    assert all(m.developer_id == "dev-1" for m in history)


def test_empty_store_reads(tmp_path):
    store = MetricsStore(tmp_path / "fresh")
    assert store.get_history("dev-1", DAY) == []
    assert store.list_developers() == []
    assert store.latest_skill_assessment("dev-1") is None


def test_skill_assessment_upsert_and_latest(tmp_path):
    store = MetricsStore(tmp_path)
    store.upsert_skill_assessment(_assessment(DAY - timedelta(days=1), score=40))
    store.upsert_skill_assessment(_assessment(DAY, score=70))
    store.upsert_skill_assessment(replace(_assessment(DAY), prompt_maturity=PromptMaturity(72, "stable", "Updated.")))

    assert store.get_skill_assessment("dev-1", DAY).prompt_maturity.score == 72
    assert store.latest_skill_assessment("dev-1").assessment_date == DAY
    assert len(pd.read_parquet(store.skill_assessments_path)) == 2
    assert store.get_skill_assessment("dev-1", DAY - timedelta(days=1)) == _assessment(DAY - timedelta(days=1), 40)


def test_list_developers(tmp_path):
    store = MetricsStore(tmp_path)
    store.upsert_daily_metrics(_metrics("dev-b"))
    store.upsert_daily_metrics(_metrics("dev-a"))
    assert store.list_developers() == ["dev-a", "dev-b"]


def test_delete_daily_metrics_removes_only_that_row(tmp_path):
    store = MetricsStore(tmp_path)
    store.upsert_daily_metrics(_metrics())
    store.upsert_daily_metrics(_metrics(day=DAY - timedelta(days=1)))

    assert store.delete_daily_metrics("dev-1", DAY) is True
    assert store.get_daily_metrics("dev-1", DAY) is None
    assert store.get_daily_metrics("dev-1", DAY - timedelta(days=1)) is not None
    assert store.delete_daily_metrics("dev-1", DAY) is False
    assert not list(tmp_path.glob("*.tmp"))
