import io
import json
from datetime import datetime

import pytest

from lifeflow.storage import (
    EVENT_COLUMNS,
    EventDataError,
    events_template_csv_bytes,
    events_to_csv_bytes,
    events_to_frame,
    events_to_json_bytes,
    load_events_from_csv,
    load_events_from_json,
)

from tests.fixtures import SCENARIO_B, YEAR


def test_csv_export_then_import():
    data = events_to_csv_bytes(YEAR)
    loaded = load_events_from_csv(io.BytesIO(data))

    assert loaded == YEAR


def test_json_export_then_import():
    data = events_to_json_bytes(SCENARIO_B)
    loaded = load_events_from_json(io.BytesIO(data))

    assert loaded == SCENARIO_B


def test_csv_semicolon_delimited():
    data = (
        "id;timestamp;owner_id;participant_ids\n"
        "e1;2024-01-01 09:00;alice;\n"
    ).encode("utf-8")
    [event] = load_events_from_csv(io.BytesIO(data))

    assert event.id == "e1"
    assert event.timestamp == datetime(2024, 1, 1, 9, 0)
    assert event.participant_ids == ()


def test_bad_rows_are_skipped(caplog):
    data = (
        "id,timestamp,owner_id,participant_ids\n"
        "x1,2024-01-01T10:00:00,alice,bob;carol\n"
        "x2,not a date,bob,\n"
        "x3,2024-01-02T10:00:00,,\n"
        "x1,2024-01-03T10:00:00,alice,\n"
    ).encode("utf-8")
    events = load_events_from_csv(io.BytesIO(data))

    assert [e.id for e in events] == ["x1"]
    assert events[0].participant_ids == ("bob", "carol")
    assert events[0].participants == ("alice", "bob", "carol")
    assert "x2" in caplog.text


def test_missing_columns_raise():
    data = b"id,title\n1,Birthday\n"
    with pytest.raises(EventDataError, match="timestamp"):
        load_events_from_csv(io.BytesIO(data))


def test_empty_csv_raises():
    with pytest.raises(EventDataError):
        load_events_from_csv(io.BytesIO(b""))


def test_json_accepts_plain_list_and_timezones():
    raw = [
        {
            "id": "j1",
            "timestamp": "2024-05-01T10:00:00+02:00",
            "owner_id": "alice",
            "participant_ids": ["bob"],
            "tags": "trip;summer",
            "is_private": True,
        }
    ]
    [event] = load_events_from_json(io.BytesIO(json.dumps(raw).encode("utf-8")))

    # stored as naive UTC
    assert event.timestamp == datetime(2024, 5, 1, 8, 0)
    assert event.participant_ids == ("bob",)
    assert event.tags == ("trip", "summer")
    assert event.is_private


@pytest.mark.parametrize("payload", [b"{not json", b'{"items": []}', b'"events"'])
def test_bad_json_raises(payload):
    with pytest.raises(EventDataError):
        load_events_from_json(io.BytesIO(payload))


def test_template_and_frame_columns():
    header = events_template_csv_bytes().decode("utf-8").strip()
    assert header.split(",") == EVENT_COLUMNS

    df = events_to_frame(SCENARIO_B)
    assert list(df.columns) == EVENT_COLUMNS
    assert df.loc[df["id"] == "s1", "participant_ids"].item() == "bob"
