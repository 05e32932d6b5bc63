"""Map pointer positions back to events and nodes of a finished layout."""

from __future__ import annotations

import math
from typing import Iterator, List, Tuple

import numpy as np

from lifeflow.models import Event, HitResult, LayoutResult, Node, Point, Rect

DEFAULT_TOLERANCE = 12.0
EVENT_SPREAD = 0.8


def event_positions(node: Node) -> List[Tuple[Event, Point]]:
    """
    Where each event of a node is drawn: evenly over the central 80% of the
    node width, on its vertical centre. A lone event sits in the middle.
    """
    n = len(node.events)
    if n == 0:
        return []
    cy = node.center.y
    if n == 1:
        return [(node.events[0], Point(node.center.x, cy))]
    margin = node.width * (1.0 - EVENT_SPREAD) / 2.0
    xs = np.linspace(node.position.x + margin, node.position.x + node.width - margin, n)
    return [(event, Point(float(x), cy)) for event, x in zip(node.events, xs)]


def iter_event_positions(result: LayoutResult) -> Iterator[Tuple[Node, Event, Point]]:
    for node in result.nodes:
        for event, pos in event_positions(node):
            yield node, event, pos


def hit_test(result: LayoutResult, point: Point,
             tolerance: float = DEFAULT_TOLERANCE) -> HitResult:
    """First event within ``tolerance``, else the first node under the point."""
    if result is None or not result.nodes:
        return HitResult()
    tolerance = max(float(tolerance), 0.0)
    for node, event, pos in iter_event_positions(result):
        if math.hypot(point.x - pos.x, point.y - pos.y) <= tolerance:
            return HitResult(event=event, node=node)
    for node in result.nodes:
        if node.rect.contains(point):
            return HitResult(node=node)
    return HitResult()


def select_area(result: LayoutResult, area: Rect) -> List[Node]:
    """Nodes touched by a dragged selection rectangle."""
    if result is None:
        return []
    return [n for n in result.nodes if n.rect.overlaps(area) or area.contains(n.center)]
