# ABOUTME: Provides the Typer CLI for the daily batch: aggregate, standardize, assess, and persist per developer.
# ABOUTME: Isolates per-developer failures so one bad developer-day never blocks the rest of the run.

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import typer

from src.aggregation import aggregate_daily_metrics
from src.common.config import EngineConfig, load_engine_config
from src.common.events_io import event_day, load_raw_events
from src.common.schemas import ConsistencyReport, DailyMetrics, RawEvent, SkillAssessment
from src.common.store import MetricsStore
from src.inference import generate_skill_assessment
from src.standardization import HeuristicValidator, MeasurementStandardizer

app = typer.Typer(help="Run the daily developer-metrics aggregation and skill assessment batch.")


@dataclass
class DayOutcome:
    developer_id: str
    date: date
    metrics: DailyMetrics
    assessment: SkillAssessment
    validation: ConsistencyReport


@dataclass
class RunReport:
    date: date
    processed: List[DayOutcome] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    skipped_events: int = 0


@app.command()
def run(
    events_path: Path = typer.Option(..., "--events-path", exists=True, dir_okay=False, help="Raw event file (.parquet, .jsonl, .json)."),
    day: str = typer.Option(..., "--day", help="Calendar day to process, YYYY-MM-DD (UTC)."),
    store_dir: Path = typer.Option(Path("data/store"), "--store-dir", help="Directory holding the parquet tables."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML; defaults apply when omitted."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the privacy jitter (tests and replays only)."),
) -> None:
    """Process every developer with events on the given day."""
    target = _parse_day(day)
    engine_config = _load_config(config)
    typer.echo(f"[daily-run] Loading events from {events_path}")
    events = load_raw_events(events_path)

    report = run_daily_batch(
        events,
        target,
        MetricsStore(store_dir),
        engine_config,
        rng=np.random.default_rng(seed),
    )
    typer.echo(
        f"[daily-run] {target}: processed={len(report.processed)} "
        f"failed={len(report.failures)} skipped_events={report.skipped_events}"
    )
    if report.failures:
        raise typer.Exit(code=1)


@app.command()
def assess(
    developer_id: str = typer.Option(..., "--developer-id", help="Developer to re-assess."),
    day: str = typer.Option(..., "--day", help="Assessment day, YYYY-MM-DD."),
    store_dir: Path = typer.Option(Path("data/store"), "--store-dir", help="Directory holding the parquet tables."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML; defaults apply when omitted."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the privacy jitter."),
) -> None:
    """Re-run the skill assessment for one developer-day from stored metrics."""
    target = _parse_day(day)
    engine_config = _load_config(config)
    store = MetricsStore(store_dir)
    standardizer = MeasurementStandardizer(
        engine_config.standardization, engine_config.validation, rng=np.random.default_rng(seed)
    )

    assessment = assess_developer_day(developer_id, target, store, engine_config, standardizer)
    if assessment is None:
        typer.echo(f"[daily-run] No daily metrics stored for {developer_id} on {target}; nothing to assess")
        raise typer.Exit(code=1)
    store.upsert_skill_assessment(assessment)
    typer.echo(
        f"[daily-run] {developer_id} {target}: prompt={assessment.prompt_maturity.score} "
        f"debugging={assessment.debugging_skill.score} collaboration={assessment.ai_collaboration.score}"
    )


def run_daily_batch(
    events: Sequence[RawEvent],
    day: date,
    store: MetricsStore,
    config: Optional[EngineConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunReport:
    """
    Aggregate and assess every developer with events on `day`.

    Events dated on other days are counted in skipped_events. A failure for one
    developer is recorded in the report and the batch moves on.
    """

    config = config or EngineConfig()
    standardizer = MeasurementStandardizer(config.standardization, config.validation, rng=rng)
    report = RunReport(date=day)

    by_developer: Dict[str, List[RawEvent]] = defaultdict(list)
    for event in events:
        if event_day(event) != day:
            report.skipped_events += 1
            continue
        by_developer[event.developer_id].append(event)

    typer.echo(f"[daily-run] {day}: {len(by_developer)} developers with events")
    for developer_id in sorted(by_developer):
        try:
            outcome = process_developer_day(
                developer_id, day, by_developer[developer_id], store, config, standardizer
            )
        except Exception as exc:
            report.failures[developer_id] = f"{type(exc).__name__}: {exc}"
            typer.echo(f"[daily-run] Failed {developer_id} on {day}: {exc}")
            continue
        report.processed.append(outcome)
        typer.echo(
            f"[daily-run] {developer_id}: prompt={outcome.assessment.prompt_maturity.score} "
            f"debugging={outcome.assessment.debugging_skill.score} "
            f"collaboration={outcome.assessment.ai_collaboration.score} "
            f"consistency={outcome.validation.overall_consistency:.2f}"
        )
    return report


def process_developer_day(
    developer_id: str,
    day: date,
    events: Sequence[RawEvent],
    store: MetricsStore,
    config: EngineConfig,
    standardizer: MeasurementStandardizer,
) -> DayOutcome:
    """
    Compute both standardized records first, then upsert metrics followed by the assessment.

    If the assessment write fails, the metrics row is put back the way it was (or removed
    when the day is new) before the error propagates, so the day is never half written.
    """

    raw_metrics = aggregate_daily_metrics(developer_id, day, events, config.aggregation)
    metrics = standardizer.standardize_daily_metrics(raw_metrics)

    history = store.get_history(developer_id, day, config.history_window_days)
    paste_count = sum(1 for event in events if event.event_type == "paste")
    raw_assessment = generate_skill_assessment(developer_id, day, metrics, history, config, paste_count)
    assessment = standardizer.standardize_skill_assessment(raw_assessment)

    validation = HeuristicValidator(config.validation).validate_daily_metrics([*history, metrics])

    previous = store.get_daily_metrics(developer_id, day)
    store.upsert_daily_metrics(metrics)
    try:
        store.upsert_skill_assessment(assessment)
    except Exception:
        if previous is None:
            store.delete_daily_metrics(developer_id, day)
        else:
            store.upsert_daily_metrics(previous)
        raise
    return DayOutcome(developer_id, day, metrics, assessment, validation)


def assess_developer_day(
    developer_id: str,
    day: date,
    store: MetricsStore,
    config: Optional[EngineConfig] = None,
    standardizer: Optional[MeasurementStandardizer] = None,
) -> Optional[SkillAssessment]:
    """Standardized assessment for a stored developer-day, or None when no metrics row exists."""

    config = config or EngineConfig()
    standardizer = standardizer or MeasurementStandardizer(config.standardization, config.validation)
    current = store.get_daily_metrics(developer_id, day)
    if current is None:
        return None
    history = store.get_history(developer_id, day, config.history_window_days)
    raw = generate_skill_assessment(developer_id, day, current, history, config)
    return standardizer.standardize_skill_assessment(raw)


def _parse_day(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'.", param_hint="--day") from exc


def _load_config(path: Optional[Path]) -> EngineConfig:
    if path is not None and not path.exists():
        raise typer.BadParameter(f"Config file not found: {path}", param_hint="--config")
    try:
        return load_engine_config(path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


if __name__ == "__main__":
    app()
