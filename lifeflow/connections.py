from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from lifeflow.config import GeometrySettings
from lifeflow.logger import get_logger
from lifeflow.models import RGB, Connection, Node, Point
from lifeflow.nodes import stream_stops

logger = get_logger(__name__)


def flow_curve(source: Node, target: Node) -> Tuple[Point, ...]:
    """
    Cubic control points from the right edge of ``source`` to the left edge
    of ``target``. The inner points sit at 25% and 75% of the horizontal
    distance, each level with its own endpoint, which gives the S-shape.
    """
    x0 = source.position.x + source.width
    y0 = source.center.y
    x1 = target.position.x
    y1 = target.center.y
    dx = x1 - x0
    return (
        Point(x0, y0),
        Point(x0 + 0.25 * dx, y0),
        Point(x0 + 0.75 * dx, y1),
        Point(x1, y1),
    )


def stroke_width(index: int, settings: GeometrySettings) -> float:
    return max(settings.min_stroke, settings.base_stroke * settings.stroke_decay ** index)


def build_connections(nodes: Sequence[Node], colors: Dict[str, RGB],
                      settings: GeometrySettings) -> List[Connection]:
    """Link each participant's consecutive stream stops, participants in sorted order."""
    connections: List[Connection] = []
    stops = stream_stops(nodes)
    for pid in sorted(stops):
        chain = stops[pid]
        for index, (source, target) in enumerate(zip(chain, chain[1:])):
            via_junction = source.is_junction or target.is_junction
            connections.append(Connection(
                id=f"{pid}:{source.id}->{target.id}",
                from_node_id=source.id,
                to_node_id=target.id,
                participant_id=pid,
                control_points=flow_curve(source, target),
                stroke_width=stroke_width(index, settings),
                color=colors[pid],
                opacity=settings.junction_opacity if via_junction else settings.stream_opacity,
                is_junction_link=via_junction,
            ))
    logger.debug("Built %d connections for %d streams", len(connections), len(stops))
    return connections
