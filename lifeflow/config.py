"""
Typed configuration for the flow layout.

``LayoutConfig`` carries everything that changes between layout runs (zoom,
viewport, filters, selection). ``GeometrySettings`` carries the constants that
shape the diagram and rarely change within a session.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from dotenv import load_dotenv

from lifeflow.logger import get_logger
from lifeflow.models import Size

logger = get_logger(__name__)


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class JunctionPolicy(str, Enum):
    # streams merge only through an event that lists more than one participant
    EXPLICIT = "explicit"
    # any bucket in which several participants have events merges them
    CO_OCCURRENCE = "co_occurrence"


@dataclass(frozen=True)
class GeometrySettings:
    base_height: float = 1200.0
    min_px_per_day: float = 0.5
    max_px_per_day: float = 120.0
    default_px_per_day: float = 10.0
    min_zoom: float = 0.1
    max_zoom: float = 10.0

    node_height: float = 36.0
    node_margin: float = 12.0
    base_width: float = 48.0
    per_event_width: float = 14.0
    column_gap: float = 40.0

    padding: float = 60.0
    base_lane_spacing: float = 120.0

    base_stroke: float = 14.0
    stroke_decay: float = 0.92
    min_stroke: float = 3.0
    stream_opacity: float = 0.85
    junction_opacity: float = 0.7

    shared_color: tuple = (148, 163, 184)

    @staticmethod
    def from_env() -> "GeometrySettings":
        """Defaults, overridden by LIFEFLOW_* variables from the environment or .env."""
        load_dotenv()
        overrides = {}
        for env_name, attr in (
            ("LIFEFLOW_BASE_HEIGHT", "base_height"),
            ("LIFEFLOW_MIN_PX_PER_DAY", "min_px_per_day"),
            ("LIFEFLOW_MAX_PX_PER_DAY", "max_px_per_day"),
        ):
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                overrides[attr] = float(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a number", env_name, raw)
        settings = GeometrySettings(**overrides)
        if settings.min_px_per_day > settings.max_px_per_day:
            logger.warning(
                "min_px_per_day %.3f exceeds max_px_per_day %.3f; using defaults",
                settings.min_px_per_day,
                settings.max_px_per_day,
            )
            settings = replace(
                settings,
                min_px_per_day=GeometrySettings.min_px_per_day,
                max_px_per_day=GeometrySettings.max_px_per_day,
            )
        return settings


def _as_date(val) -> Optional[date]:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    try:
        return date.fromisoformat(str(val))
    except ValueError as e:
        raise ValueError(f"Not an ISO date: {val!r}") from e


@dataclass(frozen=True)
class LayoutConfig:
    zoom_multiplier: float = 1.0
    viewport_size: Size = Size(1200.0, 600.0)
    selected_type_filters: FrozenSet[str] = frozenset()
    show_nodes: bool = True
    granularity: Optional[Granularity] = None
    junction_policy: JunctionPolicy = JunctionPolicy.EXPLICIT
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    show_private_events: bool = True
    selected_event_ids: FrozenSet[str] = frozenset()
    focus_bucket_key: Optional[str] = None

    def with_zoom(self, multiplier: float) -> "LayoutConfig":
        return replace(self, zoom_multiplier=multiplier)

    def with_filters(self, types: Iterable[str]) -> "LayoutConfig":
        return replace(self, selected_type_filters=frozenset(t for t in types if t))

    def with_viewport(self, width: float, height: float) -> "LayoutConfig":
        return replace(self, viewport_size=Size(float(width), float(height)))

    def with_selection(self, event_ids: Iterable[str]) -> "LayoutConfig":
        return replace(self, selected_event_ids=frozenset(event_ids))

    def with_focus(self, bucket_key: Optional[str]) -> "LayoutConfig":
        return replace(self, focus_bucket_key=bucket_key)

    def clamped_zoom(self, settings: GeometrySettings) -> float:
        zoom = self.zoom_multiplier
        if zoom is None or not math.isfinite(zoom) or zoom <= 0:
            logger.warning("Zoom %r is not positive; using %.2f", zoom, settings.min_zoom)
            return settings.min_zoom
        return min(max(zoom, settings.min_zoom), settings.max_zoom)

    @staticmethod
    def from_settings(settings: Mapping[str, Any]) -> "LayoutConfig":
        """
        Build a config from a loose key/value mapping (query params, saved
        UI state). Unknown keys are logged and ignored.
        """
        known = {f.name for f in fields(LayoutConfig)}
        kwargs = {}
        for key, val in settings.items():
            if key in ("viewport_width", "viewport_height"):
                continue
            if key not in known:
                logger.warning("Ignoring unknown layout setting %r", key)
                continue
            kwargs[key] = val

        if "viewport_width" in settings or "viewport_height" in settings:
            default = LayoutConfig.viewport_size
            kwargs["viewport_size"] = Size(
                float(settings.get("viewport_width", default.width)),
                float(settings.get("viewport_height", default.height)),
            )

        if "zoom_multiplier" in kwargs:
            kwargs["zoom_multiplier"] = float(kwargs["zoom_multiplier"])
        for key in ("selected_type_filters", "selected_event_ids"):
            if key in kwargs:
                val = kwargs[key]
                if isinstance(val, str):
                    val = [v.strip() for v in val.split(";")]
                kwargs[key] = frozenset(v for v in val if v)
        if kwargs.get("granularity") is not None:
            kwargs["granularity"] = Granularity(kwargs["granularity"])
        if "junction_policy" in kwargs:
            kwargs["junction_policy"] = JunctionPolicy(kwargs["junction_policy"])
        for key in ("date_from", "date_to"):
            if key in kwargs:
                kwargs[key] = _as_date(kwargs[key])
        for key in ("show_nodes", "show_private_events"):
            if key in kwargs and isinstance(kwargs[key], str):
                kwargs[key] = kwargs[key].strip().lower() in ("1", "true", "yes")

        return LayoutConfig(**kwargs)
