# ABOUTME: Provides an operator CLI that prints persisted skill assessments and measurement reports.
# ABOUTME: Reads the parquet store written by the daily batch; never writes to it.

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from src.common.config import load_engine_config
from src.common.events_io import event_day, load_raw_events
from src.common.ranges import approximate_range_label
from src.common.store import MetricsStore
from src.standardization import MeasurementStandardizer

console = Console()
app = typer.Typer(help="Inspect developer skill assessments and measurement consistency.")

TREND_COLORS = {"improving": "green", "stable": "white", "declining": "red"}
STATUS_COLORS = {"compliant": "green", "warning": "yellow", "non-compliant": "red"}


def _default_store_dir() -> Path:
    return Path("data/store")


@app.command()
def show(
    developer_id: str = typer.Option(..., "--developer-id", help="Developer identifier."),
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding the parquet tables."),
    day: Optional[str] = typer.Option(None, "--day", help="Assessment day YYYY-MM-DD; defaults to the latest."),
) -> None:
    """
    Print the skill assessment for a developer with its explanations.
    """
    if not store_dir.exists():
        console.print(f"[red]Missing store directory at {store_dir}[/red]")
        raise typer.Exit(code=1)
    store = MetricsStore(store_dir)

    if day is None:
        assessment = store.latest_skill_assessment(developer_id)
    else:
        assessment = store.get_skill_assessment(developer_id, _parse_day(day))
    if assessment is None:
        console.print(f"[yellow]No skill assessment for {developer_id}[/yellow]")
        raise typer.Exit(code=1)

    console.rule(f"[bold blue]Skill Assessment: {developer_id}[/bold blue]")
    console.print(f"[bold]Date:[/] {assessment.assessment_date.isoformat()}")
    console.print()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Skill")
    table.add_column("Score")
    table.add_column("Band")
    table.add_column("Detail")
    prompt = assessment.prompt_maturity
    debugging = assessment.debugging_skill
    collaboration = assessment.ai_collaboration
    table.add_row("Prompt maturity", str(prompt.score), approximate_range_label(prompt.score, "score"), _trend(prompt.trend))
    table.add_row(
        "Debugging",
        str(debugging.score),
        approximate_range_label(debugging.score, "score"),
        f"{debugging.style}, {_trend(debugging.trend)}",
    )
    table.add_row(
        "AI collaboration",
        str(collaboration.score),
        approximate_range_label(collaboration.score, "score"),
        f"dependency {collaboration.dependency_level}, refinement {collaboration.refinement_skill}",
    )
    console.print(table)

    console.print()
    console.print("[bold green]Explanations[/bold green]")
    console.print(f"[bold]Prompt maturity:[/] {prompt.explanation}")
    console.print(f"[bold]Debugging:[/] {debugging.explanation}")
    console.print(f"[bold]AI collaboration:[/] {collaboration.explanation}")


@app.command()
def validate(
    developer_id: str = typer.Option(..., "--developer-id", help="Developer identifier."),
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding the parquet tables."),
    events_path: Optional[Path] = typer.Option(None, "--events-path", help="Optional raw event file to validate alongside metrics."),
    day: Optional[str] = typer.Option(None, "--day", help="Last day of the window, YYYY-MM-DD; defaults to today."),
    window: int = typer.Option(30, "--window", help="Days of stored metrics to validate."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the privacy jitter."),
) -> None:
    """
    Print the measurement consistency report for a developer's recent metrics.
    """
    if not store_dir.exists():
        console.print(f"[red]Missing store directory at {store_dir}[/red]")
        raise typer.Exit(code=1)
    if events_path is not None and not events_path.exists():
        console.print(f"[red]Missing events file at {events_path}[/red]")
        raise typer.Exit(code=1)

    try:
        engine_config = load_engine_config(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    end = _parse_day(day) if day else date.today()
    store = MetricsStore(store_dir)
    # History reads are exclusive of the end day.
    metrics = store.get_history(developer_id, end + timedelta(days=1), window)
    events = []
    if events_path is not None:
        events = [
            e for e in load_raw_events(events_path)
            if e.developer_id == developer_id and 0 <= (end - event_day(e)).days < window
        ]

    standardizer = MeasurementStandardizer(
        engine_config.standardization, engine_config.validation, rng=np.random.default_rng(seed)
    )
    report = standardizer.generate_measurement_report(developer_id, metrics, events)

    color = STATUS_COLORS.get(report.compliance_status, "white")
    console.rule(f"[bold blue]Measurement Report: {developer_id}[/bold blue]")
    console.print(f"[bold]Days validated:[/] {len(metrics)}")
    console.print(f"[bold]Consistency:[/] {report.consistency_score:.2f} [{color}]{report.compliance_status}[/{color}]")
    console.print()

    if report.standardized_metrics:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Measurement")
        table.add_column("Value")
        table.add_column("Range")
        table.add_column("Confidence")
        for name, measurement in report.standardized_metrics.items():
            table.add_row(
                name,
                f"{measurement.standardized_value:.2f}",
                measurement.approximate_range,
                measurement.confidence_level,
            )
        console.print(table)

    if report.recommendations:
        console.print()
        console.print("[bold yellow]Recommendations[/bold yellow]")
        for recommendation in report.recommendations:
            console.print(f"  → {recommendation}")


def _trend(trend: str) -> str:
    color = TREND_COLORS.get(trend, "white")
    return f"[{color}]{trend}[/{color}]"


def _parse_day(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'.", param_hint="--day") from exc


if __name__ == "__main__":
    app()
