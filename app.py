#!/usr/bin/env python3
"""
Life-event flow tool: record events shared between people and see how their
streams run through time, merge and split.

Dependencies:
    pip install -e .

Run:
    streamlit run app.py
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import List, Optional

import pandas as pd
import streamlit as st

from lifeflow.config import GeometrySettings, Granularity, JunctionPolicy
from lifeflow.engine import FlowLayoutEngine
from lifeflow.filtering import available_types
from lifeflow.logger import get_logger
from lifeflow.models import Event, Point, Size, parse_timestamp
from lifeflow.palette import ColorCache
from lifeflow.render import build_flow_figure, participant_legend
from lifeflow.storage import (
    EventDataError,
    events_template_csv_bytes,
    events_to_csv_bytes,
    events_to_frame,
    events_to_json_bytes,
    load_events_from_csv,
    load_events_from_json,
)

logger = get_logger(__name__)

EVENT_TYPES = ["milestone", "photo", "text", "travel", "celebration", "other"]
VIEW_MODES = ["River", "Flow", "List"]


def split_ids(text: str) -> List[str]:
    return [c.strip() for c in (text or "").split(";") if c.strip()]


# -----------------------
# UI helpers: add / edit
# -----------------------

def add_event_ui():
    st.subheader("Add event")

    title = st.text_input("Title", key="new_title")
    day = st.date_input("Date", value=date.today(), key="new_date")
    at = st.time_input("Time", value=time(12, 0), key="new_time")
    owner = st.text_input("Owner", key="new_owner")
    participants = st.text_input(
        "Shared with (semicolon-separated)",
        key="new_participants",
        help="People who were part of this event besides the owner. "
             "Shared events are where streams merge.",
    )
    event_type = st.selectbox("Type", EVENT_TYPES, key="new_type")
    tags_str = st.text_input("Tags (semicolon-separated)", key="new_tags")
    location = st.text_input("Location (optional)", key="new_location")
    is_private = st.checkbox("Private", key="new_private")

    if st.button("Add event"):
        if not title or not owner:
            st.error("Title and owner are required.")
            return

        existing_ids = {e.id for e in st.session_state.events}
        idx = 1
        new_id = f"e{idx}"
        while new_id in existing_ids:
            idx += 1
            new_id = f"e{idx}"

        event = Event(
            id=new_id,
            timestamp=datetime.combine(day, at),
            owner_id=owner.strip(),
            participant_ids=tuple(p for p in split_ids(participants) if p != owner.strip()),
            title=title,
            event_type=event_type,
            location=location or None,
            tags=tuple(split_ids(tags_str)),
            is_private=is_private,
        )
        st.session_state.events = st.session_state.events + [event]
        logger.info("Added event %s for %s", new_id, event.owner_id)
        st.success(f"Added event {new_id}")


def edit_event_ui():
    st.subheader("Edit / remove event")

    if not st.session_state.events:
        st.write("No events yet.")
        return

    options = {f"{e.id}: {e.title}": e.id for e in st.session_state.events}
    label_for_select = st.selectbox("Select event", list(options.keys()))
    selected_id = options[label_for_select]
    event = next(e for e in st.session_state.events if e.id == selected_id)

    new_title = st.text_input("Title", event.title, key=f"edit_title_{event.id}")
    new_when = st.text_input(
        "Timestamp", event.timestamp.isoformat(sep=" "), key=f"edit_ts_{event.id}"
    )
    new_owner = st.text_input("Owner", event.owner_id, key=f"edit_owner_{event.id}")
    new_participants = st.text_input(
        "Shared with (semicolon-separated)",
        ";".join(event.participant_ids),
        key=f"edit_participants_{event.id}",
    )
    new_type = st.text_input("Type", event.event_type or "", key=f"edit_type_{event.id}")
    new_tags = st.text_input(
        "Tags (semicolon-separated)", ";".join(event.tags), key=f"edit_tags_{event.id}"
    )
    new_location = st.text_input(
        "Location", event.location or "", key=f"edit_location_{event.id}"
    )
    new_private = st.checkbox("Private", event.is_private, key=f"edit_private_{event.id}")

    col_save, col_delete = st.columns(2)

    with col_save:
        if st.button("Update event", key=f"update_event_{event.id}"):
            timestamp = parse_timestamp(new_when)
            if timestamp is None or not new_owner.strip():
                st.error("A valid timestamp and an owner are required.")
                return
            updated = replace(
                event,
                title=new_title,
                timestamp=timestamp,
                owner_id=new_owner.strip(),
                participant_ids=tuple(
                    p for p in split_ids(new_participants) if p != new_owner.strip()
                ),
                event_type=new_type or None,
                tags=tuple(split_ids(new_tags)),
                location=new_location or None,
                is_private=new_private,
            )
            st.session_state.events = [
                updated if e.id == event.id else e for e in st.session_state.events
            ]
            st.success("Event updated.")

    with col_delete:
        if st.button("Delete event", key=f"delete_event_{event.id}"):
            st.session_state.events = [
                e for e in st.session_state.events if e.id != event.id
            ]
            st.success(f"Deleted event {event.id}.")


def data_tab_ui():
    storage_mode = st.radio(
        "Storage format",
        ["CSV", "JSON"],
        help="CSV = one events.csv. JSON = a single file with an 'events' list.",
    )

    st.subheader("Import")
    uploaded = st.file_uploader(
        "Upload events", type="csv" if storage_mode == "CSV" else "json"
    )
    if st.button("Load data"):
        if uploaded is None:
            st.error("Please upload a file first.")
        else:
            try:
                if storage_mode == "CSV":
                    events = load_events_from_csv(uploaded)
                else:
                    events = load_events_from_json(uploaded)
            except EventDataError as e:
                st.error(str(e))
            else:
                if not events:
                    st.warning("No valid events found in the file.")
                st.session_state.events = events
                st.success(f"Loaded {len(events)} events.")

    st.subheader("Export")
    if storage_mode == "CSV":
        st.download_button(
            "Download events.csv",
            events_to_csv_bytes(st.session_state.events),
            "events.csv",
        )
        st.download_button(
            "Download events template.csv",
            events_template_csv_bytes(),
            "events_template.csv",
        )
    else:
        st.download_button(
            "Download events.json",
            events_to_json_bytes(st.session_state.events),
            "events.json",
        )


def visualization_tab_ui(engine: FlowLayoutEngine) -> dict:
    st.subheader("Scale")
    zoom = st.slider(
        "Zoom",
        min_value=0.1,
        max_value=5.0,
        value=float(engine.config.zoom_multiplier),
        step=0.1,
        help="Stretches time horizontally and lanes vertically.",
    )
    granularity_label = st.selectbox(
        "Time buckets",
        ["auto"] + [g.value for g in Granularity],
        help="auto picks days, weeks, months, quarters or years from the zoom and span.",
    )
    width = st.number_input("Canvas width (px)", 400, 4000, 1200, step=50)
    height = st.number_input("Canvas height (px)", 300, 3000, 600, step=50)

    st.markdown("---")
    st.subheader("Filters")
    types = st.multiselect(
        "Event types / tags",
        available_types(st.session_state.events),
        help="Leave empty to show everything.",
    )
    show_private = st.checkbox("Show private events", value=True)

    st.markdown("---")
    st.subheader("Streams")
    policy = st.radio(
        "Merge streams when",
        [JunctionPolicy.EXPLICIT.value, JunctionPolicy.CO_OCCURRENCE.value],
        format_func=lambda v: {
            "explicit": "an event is shared",
            "co_occurrence": "people have events in the same bucket",
        }[v],
    )
    show_nodes = st.checkbox("Show nodes", value=True)

    return dict(
        zoom_multiplier=zoom,
        granularity=None if granularity_label == "auto" else Granularity(granularity_label),
        viewport_size=Size(float(width), float(height)),
        selected_type_filters=frozenset(types),
        show_private_events=show_private,
        junction_policy=JunctionPolicy(policy),
        show_nodes=show_nodes,
    )


# -----------------------
# Main area
# -----------------------

def show_selection(engine: FlowLayoutEngine):
    selected = engine.config.selected_event_ids
    if not selected:
        return
    chosen = [e for e in engine.events if e.id in selected]
    st.markdown("**Selected**")
    st.dataframe(events_to_frame(chosen), use_container_width=True, hide_index=True)
    if st.button("Clear selection"):
        engine.clear_selection()
        st.rerun()


def handle_chart_selection(engine: FlowLayoutEngine, chart_state) -> None:
    points = []
    if chart_state is not None:
        points = chart_state.get("selection", {}).get("points", [])
    if not points:
        return
    first = points[0]
    hit = engine.hit_test(Point(float(first["x"]), float(first["y"])))
    signature = (first["x"], first["y"])
    if st.session_state.last_tap == signature:
        return
    st.session_state.last_tap = signature
    if hit.event is not None:
        engine.on_event_tap(hit.event.id)
    elif hit.node is not None:
        engine.on_node_tap(hit.node.id)
    else:
        return
    st.rerun()


def flow_view(engine: FlowLayoutEngine, style_name: str):
    result = engine.result
    if result.is_empty:
        st.info("No events to show yet.")
        return

    keys = engine.bucket_keys()
    col_pan, col_range = st.columns([1, 2])
    with col_pan:
        focus = st.selectbox("Jump to", ["(start)"] + keys)
        target: Optional[str] = None if focus == "(start)" else focus
        if target != engine.config.focus_bucket_key:
            engine.pan_to(target)
            result = engine.result
    with col_range:
        span = engine.visible_date_range()
        if span:
            st.caption(
                f"{span[0]:%d %b %Y} → {span[1]:%d %b %Y} · "
                f"{len(result.participants)} people · {len(result.nodes)} nodes · "
                f"{result.granularity} buckets · {result.pixels_per_day:.2f} px/day"
            )

    fig = build_flow_figure(result, style_name=style_name, show_nodes=engine.config.show_nodes)
    chart_state = st.plotly_chart(
        fig,
        use_container_width=True,
        on_select="rerun",
        selection_mode="points",
        key="flow_chart",
    )
    handle_chart_selection(engine, chart_state)

    with st.expander("Colour key"):
        st.dataframe(pd.DataFrame(participant_legend(result)), hide_index=True)
    show_selection(engine)


def list_view(engine: FlowLayoutEngine):
    visible = [e for n in engine.result.nodes for e in n.events]
    if not visible:
        st.info("No events to show yet.")
        return
    df = events_to_frame(sorted({e.id: e for e in visible}.values(), key=lambda e: e.timestamp))
    st.dataframe(df, use_container_width=True, hide_index=True)


# -----------------------
# App
# -----------------------

def init_state():
    if "events" not in st.session_state:
        st.session_state.events = []
    if "engine" not in st.session_state:
        st.session_state.engine = FlowLayoutEngine(
            settings=GeometrySettings.from_env(), cache=ColorCache()
        )
    if "last_tap" not in st.session_state:
        st.session_state.last_tap = None


def main():
    st.set_page_config(page_title="Life flow", layout="wide")
    init_state()
    engine: FlowLayoutEngine = st.session_state.engine

    st.title("Life flow")

    # ---- SIDEBAR UI ----
    with st.sidebar:
        st.header("Controls")

        tab_data, tab_vis, tab_events = st.tabs(["Data", "Visualization", "Events"])

        with tab_data:
            data_tab_ui()

        with tab_vis:
            settings = visualization_tab_ui(engine)

        with tab_events:
            add_event_ui()
            st.markdown("---")
            edit_event_ui()

    if tuple(st.session_state.events) != engine.events:
        engine.set_events(st.session_state.events)
    engine.set_config(replace(engine.config, **settings))

    # ---- MAIN AREA ----
    view_mode = st.radio("View", VIEW_MODES, horizontal=True)
    if view_mode == "List":
        list_view(engine)
    else:
        flow_view(engine, style_name=view_mode.lower())


if __name__ == "__main__":
    main()
