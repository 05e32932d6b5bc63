"""
Plotly presentation of a ``LayoutResult``.

Geometry comes from the engine unchanged; this module only decides how it
looks. The ``river`` and ``flow`` styles are two presets over the same
layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import plotly.graph_objects as go

from lifeflow.hit_testing import event_positions
from lifeflow.models import RGB, Connection, LayoutResult, Node


@dataclass(frozen=True)
class RenderStyle:
    name: str
    background: str
    band_scale: float
    band_opacity: float
    node_opacity: float
    text_color: str
    event_marker_size: int


STYLES: Dict[str, RenderStyle] = {
    "river": RenderStyle(
        name="river",
        background="#f8fafc",
        band_scale=1.0,
        band_opacity=0.55,
        node_opacity=0.9,
        text_color="#ffffff",
        event_marker_size=10,
    ),
    "flow": RenderStyle(
        name="flow",
        background="#0f172a",
        band_scale=0.35,
        band_opacity=0.95,
        node_opacity=0.75,
        text_color="#e2e8f0",
        event_marker_size=8,
    ),
}


def rgba(color: RGB, alpha: float) -> str:
    r, g, b = color
    return f"rgba({r}, {g}, {b}, {max(0.0, min(alpha, 1.0)):.3f})"


def connection_path(conn: Connection) -> str:
    """SVG path for a connection: a cubic segment per three control points."""
    pts = conn.control_points
    parts = [f"M {pts[0].x:.2f},{pts[0].y:.2f}"]
    rest = pts[1:]
    while len(rest) >= 3:
        c1, c2, end = rest[:3]
        parts.append(f"C {c1.x:.2f},{c1.y:.2f} {c2.x:.2f},{c2.y:.2f} {end.x:.2f},{end.y:.2f}")
        rest = rest[3:]
    for p in rest:
        parts.append(f"L {p.x:.2f},{p.y:.2f}")
    return " ".join(parts)


def _node_shape(node: Node, style: RenderStyle) -> dict:
    return dict(
        type="rect",
        x0=node.position.x,
        y0=node.position.y,
        x1=node.position.x + node.width,
        y1=node.position.y + node.height,
        fillcolor=rgba(node.color, style.node_opacity),
        line=dict(
            color="#f59e0b" if node.selected else rgba(node.color, 1.0),
            width=3 if node.selected else 1,
        ),
        layer="above",
    )


def _hover_for_node(node: Node) -> str:
    lines = [f"<b>{node.label}</b>", f"{node.time_bucket_key} · {len(node.events)} event(s)"]
    for event in node.events[:5]:
        lines.append(f"• {event.title or event.id}")
    if len(node.events) > 5:
        lines.append(f"… {len(node.events) - 5} more")
    return "<br>".join(lines)


def build_flow_figure(result: LayoutResult, style_name: str = "river",
                      show_nodes: bool = True, height: Optional[int] = None) -> go.Figure:
    style = STYLES.get(style_name, STYLES["river"])
    fig = go.Figure()

    shapes: List[dict] = []
    for conn in result.connections:
        shapes.append(dict(
            type="path",
            path=connection_path(conn),
            line=dict(
                color=rgba(conn.color, conn.opacity * style.band_opacity),
                width=max(conn.stroke_width * style.band_scale, 1.0),
            ),
            layer="below",
        ))

    if show_nodes:
        shapes.extend(_node_shape(n, style) for n in result.nodes)

        # node labels + a hover/tap target in the middle of each node
        fig.add_trace(go.Scatter(
            x=[n.center.x for n in result.nodes],
            y=[n.center.y for n in result.nodes],
            mode="text",
            text=[n.label for n in result.nodes],
            textfont=dict(color=style.text_color, size=11),
            hovertext=[_hover_for_node(n) for n in result.nodes],
            hoverinfo="text",
            customdata=[["node", n.id] for n in result.nodes],
            name="nodes",
            cliponaxis=False,
        ))

    xs, ys, hover, custom, colors = [], [], [], [], []
    for node in result.nodes:
        for event, pos in event_positions(node):
            xs.append(pos.x)
            ys.append(pos.y)
            when = event.timestamp.strftime("%Y-%m-%d %H:%M")
            hover.append(
                f"<b>{event.title or event.id}</b><br>{when}"
                f"<br>Owner: {event.owner_id}"
                f"<br>With: {', '.join(event.participant_ids) or '-'}"
                f"<br>Type: {event.event_type or '-'}"
                + (f"<br>Location: {event.location}" if event.location else "")
            )
            custom.append(["event", event.id])
            colors.append(rgba(node.color, 1.0))

    fig.add_trace(go.Scatter(
        x=xs,
        y=ys,
        mode="markers",
        marker=dict(
            size=style.event_marker_size,
            color=colors,
            line=dict(color="#ffffff", width=1.5),
        ),
        hovertext=hover,
        hoverinfo="text",
        customdata=custom,
        name="events",
    ))

    fig.update_xaxes(
        range=[0, result.content_width],
        tickmode="array",
        tickvals=[t.x for t in result.ticks],
        ticktext=[t.label for t in result.ticks],
        showgrid=False,
        zeroline=False,
        fixedrange=False,
    )
    # canvas coordinates: y grows downwards
    fig.update_yaxes(
        range=[result.content_height, 0],
        showticklabels=False,
        showgrid=False,
        zeroline=False,
    )
    if result.scroll_offset is not None:
        left = result.scroll_offset.x
        fig.update_xaxes(range=[left, result.content_width])

    fig.update_layout(
        shapes=shapes,
        height=height or int(min(result.content_height, 1400)),
        plot_bgcolor=style.background,
        paper_bgcolor=style.background,
        margin=dict(l=20, r=20, t=40, b=40),
        showlegend=False,
        dragmode="pan",
    )
    return fig


def participant_legend(result: LayoutResult) -> List[dict]:
    """Rows for a colour key next to the figure."""
    return [
        {"participant": p.id, "color": "#%02x%02x%02x" % p.color}
        for p in result.participants
    ]
