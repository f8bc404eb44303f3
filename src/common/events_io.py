# ABOUTME: Loads raw interaction events from parquet, JSON lines, or JSON array files.
# ABOUTME: Maps the capture side's camelCase columns and metadata keys onto snake_case RawEvents.

from __future__ import annotations

import json
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from .schemas import EVENT_TYPES, RawEvent

REQUIRED_COLUMNS = ["id", "developer_id", "timestamp", "event_type", "session_id"]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def load_raw_events(path: Path) -> List[RawEvent]:
    """
    Read an event file into RawEvent records ordered by timestamp.

    Supports .parquet, .jsonl and .json (a top-level array). Metadata may be stored
    as a mapping or as a JSON-encoded string.
    """

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        df = pd.read_parquet(path)
    elif suffix == ".jsonl":
        df = pd.read_json(path, lines=True, dtype=False, convert_dates=False)
    elif suffix == ".json":
        with open(path, encoding="utf-8") as f:
            df = pd.DataFrame(json.load(f))
    else:
        raise ValueError(f"Unsupported event file '{path.name}'. Expected .parquet, .jsonl or .json.")

    df = df.rename(columns={column: snake_case(column) for column in df.columns})
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Event file {path} is missing columns: {', '.join(missing)}.")
    if "metadata" not in df.columns:
        df["metadata"] = None

    return events_from_records(df.to_dict(orient="records"))


def events_from_records(records: Iterable[Mapping[str, Any]]) -> List[RawEvent]:
    events = []
    for record in records:
        event_type = str(record["event_type"])
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event_type '{event_type}' on event {record['id']}.")
        events.append(
            RawEvent(
                id=str(record["id"]),
                developer_id=str(record["developer_id"]),
                timestamp=_epoch_ms(record["timestamp"]),
                event_type=event_type,
                session_id=str(record["session_id"]),
                metadata=normalize_metadata(record.get("metadata")),
            )
        )
    events.sort(key=lambda e: e.timestamp)
    return events


def normalize_metadata(raw: Any) -> Dict[str, Any]:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return {}
    if isinstance(raw, str):
        raw = json.loads(raw) if raw.strip() else {}
    return {snake_case(str(key)): value for key, value in dict(raw).items()}


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def event_day(event: RawEvent) -> date:
    """Calendar day (UTC) an event belongs to."""
    return datetime.fromtimestamp(event.timestamp / 1000.0, tz=timezone.utc).date()


def _epoch_ms(value: Any) -> int:
    if isinstance(value, (pd.Timestamp, datetime)):
        return int(pd.Timestamp(value).value // 1_000_000)
    return int(value)
