from __future__ import annotations

from typing import Dict, FrozenSet, List, Sequence, Tuple

from lifeflow.bucketing import bucket_label
from lifeflow.config import GeometrySettings, Granularity
from lifeflow.lanes import BucketPlan
from lifeflow.logger import get_logger
from lifeflow.models import RGB, Event, Node, Point, TimeTick
from lifeflow.scaling import days_between

logger = get_logger(__name__)

JUNCTION_PREFIX = "junction:"


def node_width(event_count: int, settings: GeometrySettings) -> float:
    return settings.base_width + settings.per_event_width * event_count


def escape_id(participant_id: str) -> str:
    """Backslash-escape the characters node ids use as separators."""
    return (
        participant_id.replace("\\", "\\\\").replace(":", "\\:").replace("+", "\\+")
    )


def junction_id(group: Sequence[str]) -> str:
    return JUNCTION_PREFIX + "+".join(escape_id(pid) for pid in group)


def _unique_events(events: Sequence[Event]) -> Tuple[Event, ...]:
    seen = set()
    out = []
    for e in sorted(events, key=lambda e: (e.timestamp, e.id)):
        if e.id in seen:
            continue
        seen.add(e.id)
        out.append(e)
    return tuple(out)


class NodeBuilder:
    """
    Turn bucket plans into positioned nodes.

    Columns advance left to right. A column sits at its elapsed-time position
    when that is clear of the previous column, otherwise right after it.
    """

    def __init__(self, settings: GeometrySettings, colors: Dict[str, RGB],
                 pixels_per_day: float, granularity: Granularity,
                 selected_event_ids: FrozenSet[str] = frozenset()):
        self.settings = settings
        self.colors = colors
        self.pixels_per_day = pixels_per_day
        self.granularity = granularity
        self.selected_event_ids = selected_event_ids

    def _make_node(self, plan: BucketPlan, owner_id: str, label: str,
                   members: Tuple[str, ...], events: Sequence[Event], x: float,
                   center_y: float, color: RGB, is_junction: bool) -> Node:
        events = _unique_events(events)
        return Node(
            id=f"{plan.bucket.key}:{owner_id if is_junction else escape_id(owner_id)}",
            owner_or_junction_id=owner_id,
            time_bucket_key=plan.bucket.key,
            position=Point(x, center_y - self.settings.node_height / 2.0),
            width=node_width(len(events), self.settings),
            height=self.settings.node_height,
            color=color,
            events=events,
            label=label,
            participant_ids=members,
            is_junction=is_junction,
            selected=any(e.id in self.selected_event_ids for e in events),
        )

    def build(self, plans: Sequence[BucketPlan],
              lanes: Dict[str, float]) -> Tuple[List[Node], List[TimeTick]]:
        nodes: List[Node] = []
        ticks: List[TimeTick] = []
        if not plans:
            return nodes, ticks

        s = self.settings
        origin = plans[0].bucket.start
        running = s.padding
        for plan in plans:
            bucket = plan.bucket
            timed = s.padding + days_between(origin, bucket.start) * self.pixels_per_day
            x = max(timed, running)

            column: List[Node] = []
            for pid in plan.solo:
                column.append(self._make_node(
                    plan, pid, pid, (pid,), bucket.by_participant[pid], x,
                    lanes[pid], self.colors[pid], is_junction=False,
                ))
            for group in plan.groups:
                events: List[Event] = []
                for pid in group:
                    events.extend(bucket.by_participant.get(pid, ()))
                column.append(self._make_node(
                    plan, junction_id(group), " + ".join(group), group, events, x,
                    plan.junction_centers[group], s.shared_color, is_junction=True,
                ))

            column.sort(key=lambda n: (n.position.y, n.id))
            nodes.extend(column)
            ticks.append(TimeTick(bucket.key, x, bucket_label(bucket.start, self.granularity)))
            widest = max((n.width for n in column), default=s.base_width)
            running = x + widest + s.column_gap

        logger.debug("Built %d nodes across %d columns", len(nodes), len(plans))
        return nodes, ticks


def stream_stops(nodes: Sequence[Node]) -> Dict[str, List[Node]]:
    """Participant id -> the nodes containing it, in column order."""
    stops: Dict[str, List[Node]] = {}
    for node in nodes:
        for pid in node.participant_ids:
            stops.setdefault(pid, []).append(node)
    return stops
