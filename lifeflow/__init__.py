from lifeflow.config import GeometrySettings, Granularity, JunctionPolicy, LayoutConfig
from lifeflow.engine import FlowLayoutEngine, compute_layout
from lifeflow.hit_testing import hit_test, select_area
from lifeflow.models import (
    Connection,
    Event,
    HitResult,
    LayoutResult,
    Node,
    Participant,
    Point,
    Rect,
    Size,
)
from lifeflow.palette import ColorCache

__all__ = [
    "ColorCache",
    "Connection",
    "Event",
    "FlowLayoutEngine",
    "GeometrySettings",
    "Granularity",
    "HitResult",
    "JunctionPolicy",
    "LayoutConfig",
    "LayoutResult",
    "Node",
    "Participant",
    "Point",
    "Rect",
    "Size",
    "compute_layout",
    "hit_test",
    "select_area",
]
