"""Data model shared by the layout engine, the storage helpers and the UI."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pandas as pd


RGB = Tuple[int, int, int]


# -----------------------
# Geometry
# -----------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @staticmethod
    def from_points(a: Point, b: Point) -> "Rect":
        left, right = sorted((a.x, b.x))
        top, bottom = sorted((a.y, b.y))
        return Rect(left, top, right - left, bottom - top)

    def contains(self, p: Point) -> bool:
        return self.left <= p.x <= self.right and self.top <= p.y <= self.bottom

    def overlaps(self, other: "Rect") -> bool:
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )


# -----------------------
# Events
# -----------------------

def _split_list(val) -> Tuple[str, ...]:
    if val is None:
        return ()
    if isinstance(val, (list, tuple, set, frozenset)):
        items = [str(v).strip() for v in val]
    else:
        items = [c.strip() for c in str(val).split(";")]
    return tuple(c for c in items if c)


def parse_timestamp(val) -> Optional[datetime]:
    """Parse anything pandas understands into a naive UTC datetime."""
    ts = pd.to_datetime(val, errors="coerce", utc=True)
    if ts is None or pd.isna(ts):
        return None
    return ts.tz_convert(None).to_pydatetime()


@dataclass(frozen=True)
class Event:
    id: str
    timestamp: datetime
    owner_id: str
    participant_ids: Tuple[str, ...] = ()
    title: str = ""
    event_type: Optional[str] = None
    location: Optional[str] = None
    tags: Tuple[str, ...] = ()
    is_private: bool = False

    @property
    def participants(self) -> Tuple[str, ...]:
        """Owner plus everyone the event is shared with, sorted."""
        ids = {self.owner_id, *self.participant_ids}
        ids.discard("")
        return tuple(sorted(ids))

    @property
    def is_shared(self) -> bool:
        return len(self.participants) > 1

    @staticmethod
    def from_row(row: dict) -> "Event":
        def clean(val):
            if isinstance(val, (list, tuple)):
                return val
            if val is None or pd.isna(val):
                return None
            return str(val).strip()

        timestamp = parse_timestamp(row.get("timestamp"))
        if timestamp is None:
            raise ValueError(
                f"Event {row.get('id')!r} has an unparseable timestamp: {row.get('timestamp')!r}"
            )

        private_raw = clean(row.get("is_private", None)) or ""
        return Event(
            id=clean(row.get("id", "")) or "",
            timestamp=timestamp,
            owner_id=clean(row.get("owner_id", "")) or "",
            participant_ids=_split_list(clean(row.get("participant_ids", None))),
            title=clean(row.get("title", "")) or "",
            event_type=clean(row.get("event_type", None)),
            location=clean(row.get("location", None)),
            tags=_split_list(clean(row.get("tags", None))),
            is_private=str(private_raw).lower() in ("1", "true", "yes"),
        )

    def to_row(self) -> dict:
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        d["participant_ids"] = ";".join(self.participant_ids)
        d["tags"] = ";".join(self.tags)
        return d


# -----------------------
# Layout output
# -----------------------

@dataclass(frozen=True)
class Participant:
    id: str
    ordinal: int
    color: RGB


@dataclass
class TimeBucket:
    key: str
    start: datetime
    events: List[Event] = field(default_factory=list)
    by_participant: Dict[str, List[Event]] = field(default_factory=dict)

    @property
    def participant_ids(self) -> List[str]:
        return sorted(self.by_participant)


@dataclass(frozen=True)
class Node:
    id: str
    owner_or_junction_id: str
    time_bucket_key: str
    position: Point
    width: float
    height: float
    color: RGB
    events: Tuple[Event, ...]
    label: str = ""
    participant_ids: Tuple[str, ...] = ()
    is_junction: bool = False
    selected: bool = False

    @property
    def rect(self) -> Rect:
        return Rect(self.position.x, self.position.y, self.width, self.height)

    @property
    def center(self) -> Point:
        return Point(self.position.x + self.width / 2.0, self.position.y + self.height / 2.0)


@dataclass(frozen=True)
class Connection:
    id: str
    from_node_id: str
    to_node_id: str
    participant_id: str
    control_points: Tuple[Point, ...]
    stroke_width: float
    color: RGB
    opacity: float = 1.0
    is_junction_link: bool = False


@dataclass(frozen=True)
class TimeTick:
    key: str
    x: float
    label: str


@dataclass(frozen=True)
class LayoutResult:
    nodes: Tuple[Node, ...]
    connections: Tuple[Connection, ...]
    content_size: Size
    participants: Tuple[Participant, ...] = ()
    ticks: Tuple[TimeTick, ...] = ()
    pixels_per_day: float = 0.0
    granularity: Optional[str] = None
    scroll_offset: Optional[Point] = None

    @property
    def content_width(self) -> float:
        return self.content_size.width

    @property
    def content_height(self) -> float:
        return self.content_size.height

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node_by_id(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_for_event(self, event_id: str) -> Optional[Node]:
        for node in self.nodes:
            if any(e.id == event_id for e in node.events):
                return node
        return None

    def color_map(self) -> Dict[str, RGB]:
        return {p.id: p.color for p in self.participants}


@dataclass(frozen=True)
class HitResult:
    event: Optional[Event] = None
    node: Optional[Node] = None

    @property
    def matched(self) -> bool:
        return self.event is not None or self.node is not None
