from datetime import datetime

import pytest

from lifeflow.logger import ColorFormatter, get_logger
from lifeflow.models import Event, Point, Rect, parse_timestamp

from tests.fixtures import ev


def test_event_participants_sorted_and_unique():
    event = ev("s", "2024-01-01T00:00:00", "carol", with_=["alice", "carol", "bob"])
    assert event.participants == ("alice", "bob", "carol")
    assert event.is_shared
    assert not ev("x", "2024-01-01T00:00:00", "carol").is_shared


def test_event_from_row_requires_timestamp():
    with pytest.raises(ValueError):
        Event.from_row({"id": "x", "timestamp": "", "owner_id": "alice"})


def test_event_row_uses_semicolons():
    event = ev("s", "2024-01-01T08:30:00", "alice", with_=["bob", "carol"], tags=["a", "b"])
    row = event.to_row()
    assert row["timestamp"] == "2024-01-01T08:30:00"
    assert row["participant_ids"] == "bob;carol"
    assert row["tags"] == "a;b"
    assert Event.from_row(row) == event


def test_parse_timestamp():
    assert parse_timestamp("2024-03-01 12:00") == datetime(2024, 3, 1, 12, 0)
    assert parse_timestamp("2024-03-01T12:00:00Z") == datetime(2024, 3, 1, 12, 0)
    assert parse_timestamp("garbage") is None
    assert parse_timestamp(None) is None


def test_rect_geometry():
    rect = Rect.from_points(Point(10, 40), Point(0, 20))
    assert (rect.left, rect.top, rect.right, rect.bottom) == (0, 20, 10, 40)
    assert rect.contains(Point(5, 30))
    assert not rect.contains(Point(11, 30))
    # touching edges do not overlap
    assert not rect.overlaps(Rect(10, 20, 5, 5))
    assert rect.overlaps(Rect(9, 39, 5, 5))


def test_logger_names_and_formatter():
    assert get_logger("lifeflow.engine").name == "lifeflow.engine"
    assert get_logger("app").name == "lifeflow.app"

    plain = ColorFormatter("%(message)s", use_color=False)
    colored = ColorFormatter("%(message)s", use_color=True)
    record = get_logger("test").makeRecord("lifeflow.test", 30, __file__, 1, "hello", (), None)
    assert plain.format(record) == "hello"
    assert colored.format(record).startswith("\033[33m")
    assert colored.format(record).endswith("\033[0m")
