"""CSV / JSON import and export of the event set."""

from __future__ import annotations

import csv
import io
import json
from typing import IO, List

import pandas as pd

from lifeflow.logger import get_logger
from lifeflow.models import Event

logger = get_logger(__name__)

EVENT_COLUMNS = [
    "id",
    "timestamp",
    "owner_id",
    "participant_ids",
    "title",
    "event_type",
    "tags",
    "location",
    "is_private",
]

REQUIRED_COLUMNS = ("id", "timestamp", "owner_id")


class EventDataError(ValueError):
    """An uploaded file cannot be turned into events."""


def smart_read_csv(file: IO) -> pd.DataFrame:
    """
    Robust CSV reader for uploaded files:
    - Tries multiple encodings
    - Lets pandas sniff the delimiter (comma, semicolon, tab, ...)
    """
    encodings = ["utf-8", "utf-8-sig", "latin1"]

    last_error = None
    for enc in encodings:
        try:
            file.seek(0)
            return pd.read_csv(
                file,
                encoding=enc,
                sep=None,          # let pandas / csv.Sniffer detect delimiter
                engine="python",   # needed for sep=None
                dtype=str,
            )
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except (csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise EventDataError(f"Could not parse CSV: {e}") from e

    raise EventDataError(
        "Could not read CSV with any of the tried encodings."
    ) from last_error


def _events_from_rows(rows: List[dict]) -> List[Event]:
    events = []
    seen = set()
    for row in rows:
        try:
            event = Event.from_row(row)
        except ValueError as e:
            logger.warning("Skipping row: %s", e)
            continue
        if not event.id or not event.owner_id:
            logger.warning("Skipping row without id or owner: %r", row)
            continue
        if event.id in seen:
            logger.warning("Skipping duplicate event id %r", event.id)
            continue
        seen.add(event.id)
        events.append(event)
    return events


def load_events_from_csv(file: IO) -> List[Event]:
    df = smart_read_csv(file)
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise EventDataError(f"CSV is missing required columns: {', '.join(missing)}")
    events = _events_from_rows([row.to_dict() for _, row in df.iterrows()])
    logger.info("Loaded %d of %d events from CSV", len(events), len(df))
    return events


def load_events_from_json(file: IO) -> List[Event]:
    try:
        data = json.load(file)
    except json.JSONDecodeError as e:
        raise EventDataError(f"Invalid JSON: {e}") from e
    raw = data.get("events") if isinstance(data, dict) else data
    if not isinstance(raw, list):
        raise EventDataError("JSON must be a list of events or an object with an 'events' list.")
    events = _events_from_rows([r for r in raw if isinstance(r, dict)])
    logger.info("Loaded %d of %d events from JSON", len(events), len(raw))
    return events


def events_template_csv_bytes() -> bytes:
    """Empty events CSV with the correct headers."""
    df = pd.DataFrame(columns=EVENT_COLUMNS)
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")


def events_to_frame(events: List[Event]) -> pd.DataFrame:
    return pd.DataFrame([e.to_row() for e in events], columns=EVENT_COLUMNS)


def events_to_csv_bytes(events: List[Event]) -> bytes:
    buf = io.StringIO()
    events_to_frame(events).to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")


def events_to_json_bytes(events: List[Event]) -> bytes:
    data = {"events": [e.to_row() for e in events]}
    return json.dumps(data, indent=2).encode("utf-8")
