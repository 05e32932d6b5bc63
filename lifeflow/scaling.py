from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from lifeflow.config import GeometrySettings, Granularity, LayoutConfig
from lifeflow.logger import get_logger
from lifeflow.models import Event, Node, Size

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400.0

# (granularity, largest zoom-adjusted span in days it is used for)
GRANULARITY_STEPS = (
    (Granularity.DAY, 7.0),
    (Granularity.WEEK, 31.0),
    (Granularity.MONTH, 5 * 365.25),
    (Granularity.QUARTER, 15 * 365.25),
)


def span_days(events: Sequence[Event]) -> float:
    if not events:
        return 0.0
    stamps = [e.timestamp for e in events]
    return (max(stamps) - min(stamps)).total_seconds() / SECONDS_PER_DAY


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def pixels_per_day(total_days: float, zoom: float, settings: GeometrySettings) -> float:
    """
    ``clamp(base_height * zoom / total_days, min, max)``. A zero span has
    nothing to divide by, so it gets the fixed default.
    """
    if total_days <= 0:
        return settings.default_px_per_day
    target = settings.base_height * zoom
    return min(max(target / total_days, settings.min_px_per_day), settings.max_px_per_day)


def choose_granularity(total_days: float, zoom: float) -> Granularity:
    """Zooming in gives finer buckets; long spans give coarser ones."""
    effective = total_days / zoom if zoom > 0 else total_days
    for granularity, limit in GRANULARITY_STEPS:
        if effective <= limit:
            return granularity
    return Granularity.YEAR


def lane_spacing(zoom: float, settings: GeometrySettings) -> float:
    return max(settings.base_lane_spacing * zoom, settings.node_height + settings.node_margin)


def lane_canvas_height(participant_count: int, zoom: float, config: LayoutConfig,
                       settings: GeometrySettings) -> float:
    needed = 2 * settings.padding + max(participant_count, 1) * lane_spacing(zoom, settings)
    return max(config.viewport_size.height, needed)


def content_size(nodes: Iterable[Node], viewport: Size, settings: GeometrySettings,
                 min_height: Optional[float] = None) -> Size:
    """Bounding box of every node plus padding, never smaller than the viewport."""
    width = viewport.width
    height = max(viewport.height, min_height or 0.0)
    for node in nodes:
        width = max(width, node.position.x + node.width + settings.padding)
        height = max(height, node.position.y + node.height + settings.padding)
    return Size(width, height)


class LayoutScale:
    """Scale decisions for one layout run."""

    def __init__(self, events: Sequence[Event], config: LayoutConfig,
                 settings: GeometrySettings):
        self.zoom = config.clamped_zoom(settings)
        self.total_days = span_days(events)
        self.pixels_per_day = pixels_per_day(self.total_days, self.zoom, settings)
        self.granularity = config.granularity or choose_granularity(self.total_days, self.zoom)
        logger.debug(
            "Scale: span=%.1f days zoom=%.2f px/day=%.3f granularity=%s",
            self.total_days,
            self.zoom,
            self.pixels_per_day,
            self.granularity.value,
        )
