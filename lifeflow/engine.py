"""
Flow layout pipeline.

filter -> participants -> scale -> buckets -> lanes -> nodes -> connections

``compute_layout`` runs the whole pipeline once and depends only on its
arguments (plus whatever colours the cache already holds). ``FlowLayoutEngine``
keeps the current events and config for a host UI and recomputes in full on
every request.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from lifeflow.bucketing import bucket_events
from lifeflow.config import GeometrySettings, LayoutConfig
from lifeflow.connections import build_connections
from lifeflow.filtering import filter_events
from lifeflow.hit_testing import DEFAULT_TOLERANCE, hit_test, select_area
from lifeflow.lanes import allocate
from lifeflow.logger import get_logger
from lifeflow.models import Event, HitResult, LayoutResult, Node, Point, Rect
from lifeflow.nodes import NodeBuilder
from lifeflow.palette import ColorCache, index_participants
from lifeflow.scaling import LayoutScale, content_size, lane_canvas_height

logger = get_logger(__name__)


def empty_result(config: LayoutConfig, settings: GeometrySettings) -> LayoutResult:
    return LayoutResult(
        nodes=(),
        connections=(),
        content_size=config.viewport_size,
        pixels_per_day=settings.default_px_per_day,
    )


def compute_layout(events: Iterable[Event], config: LayoutConfig,
                   settings: Optional[GeometrySettings] = None,
                   cache: Optional[ColorCache] = None) -> LayoutResult:
    settings = settings or GeometrySettings()
    filtered = filter_events(events, config)
    if not filtered:
        logger.debug("No events left after filtering; returning empty layout")
        return empty_result(config, settings)

    participants = index_participants(filtered, cache)
    colors = {p.id: p.color for p in participants}
    ids = [p.id for p in participants]

    scale = LayoutScale(filtered, config, settings)
    buckets = bucket_events(filtered, scale.granularity)
    canvas_height = lane_canvas_height(len(ids), scale.zoom, config, settings)
    lanes, plans = allocate(buckets, ids, canvas_height, config.junction_policy, settings)

    builder = NodeBuilder(settings, colors, scale.pixels_per_day, scale.granularity,
                          config.selected_event_ids)
    nodes, ticks = builder.build(plans, lanes)
    connections = build_connections(nodes, colors, settings)

    scroll_offset = None
    if config.focus_bucket_key is not None:
        tick = next((t for t in ticks if t.key == config.focus_bucket_key), None)
        if tick is None:
            logger.warning("Bucket %r is not in the current layout", config.focus_bucket_key)
        else:
            scroll_offset = Point(max(tick.x - settings.padding, 0.0), 0.0)

    size = content_size(nodes, config.viewport_size, settings, min_height=canvas_height)
    logger.debug(
        "Layout: %d events, %d participants, %d nodes, %d connections, size %.0fx%.0f",
        len(filtered), len(ids), len(nodes), len(connections), size.width, size.height,
    )
    return LayoutResult(
        nodes=tuple(nodes),
        connections=tuple(connections),
        content_size=size,
        participants=tuple(participants),
        ticks=tuple(ticks),
        pixels_per_day=scale.pixels_per_day,
        granularity=scale.granularity.value,
        scroll_offset=scroll_offset,
    )


class FlowLayoutEngine:
    """
    Host-facing wrapper. Every request updates the config or the event set
    and returns a freshly computed ``LayoutResult``; events are never
    modified.
    """

    def __init__(self, events: Sequence[Event] = (), config: Optional[LayoutConfig] = None,
                 settings: Optional[GeometrySettings] = None,
                 cache: Optional[ColorCache] = None):
        self.events: Tuple[Event, ...] = tuple(events)
        self.config = config or LayoutConfig()
        self.settings = settings or GeometrySettings()
        self.cache = cache if cache is not None else ColorCache()
        self.result: LayoutResult = self.layout()

    def layout(self) -> LayoutResult:
        self.result = compute_layout(self.events, self.config, self.settings, self.cache)
        return self.result

    def _update(self, config: LayoutConfig) -> LayoutResult:
        self.config = config
        return self.layout()

    # -----------------------
    # Inputs
    # -----------------------

    def set_events(self, events: Sequence[Event]) -> LayoutResult:
        self.events = tuple(events)
        self.cache.on_event_set_changed()
        known = {e.id for e in self.events}
        selection = self.config.selected_event_ids & known
        return self._update(replace(self.config, selected_event_ids=frozenset(selection)))

    def set_config(self, config: LayoutConfig) -> LayoutResult:
        return self._update(config)

    def set_zoom(self, multiplier: float) -> LayoutResult:
        return self._update(self.config.with_zoom(multiplier))

    def set_filters(self, types: Iterable[str]) -> LayoutResult:
        return self._update(self.config.with_filters(types))

    def set_viewport(self, width: float, height: float) -> LayoutResult:
        return self._update(self.config.with_viewport(width, height))

    def pan_to(self, bucket_key: Optional[str]) -> LayoutResult:
        return self._update(self.config.with_focus(bucket_key))

    # -----------------------
    # Interaction
    # -----------------------

    def on_node_tap(self, node_id: str) -> LayoutResult:
        node = self.result.node_by_id(node_id)
        if node is None:
            logger.debug("Tap on unknown node %r ignored", node_id)
            return self.layout()
        return self._update(self.config.with_selection(e.id for e in node.events))

    def on_event_tap(self, event_id: str) -> LayoutResult:
        if not any(e.id == event_id for e in self.events):
            logger.debug("Tap on unknown event %r ignored", event_id)
            return self.layout()
        return self._update(self.config.with_selection([event_id]))

    def clear_selection(self) -> LayoutResult:
        return self._update(self.config.with_selection(()))

    def hit_test(self, point: Point, tolerance: float = DEFAULT_TOLERANCE) -> HitResult:
        return hit_test(self.result, point, tolerance)

    def select_area(self, area: Rect) -> List[Node]:
        return select_area(self.result, area)

    # -----------------------
    # Navigation
    # -----------------------

    def visible_date_range(self) -> Optional[Tuple[datetime, datetime]]:
        """Earliest and latest timestamp among the events currently laid out."""
        stamps = [e.timestamp for n in self.result.nodes for e in n.events]
        if not stamps:
            return None
        return min(stamps), max(stamps)

    def navigate_to_event(self, event_id: str) -> LayoutResult:
        node = self.result.node_for_event(event_id)
        if node is None:
            logger.debug("Event %r is not in the current layout", event_id)
            return self.layout()
        return self._update(
            self.config.with_focus(node.time_bucket_key).with_selection([event_id])
        )

    def bucket_keys(self) -> List[str]:
        return [t.key for t in self.result.ticks]
