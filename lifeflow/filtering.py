"""Pre-stage filter: restrict the event set before any layout work happens."""

from __future__ import annotations

from datetime import datetime, time
from typing import Dict, FrozenSet, Iterable, List

from lifeflow.config import LayoutConfig
from lifeflow.logger import get_logger
from lifeflow.models import Event

logger = get_logger(__name__)

# filter names the UI offers -> event types stored on events
TYPE_ALIASES: Dict[str, str] = {
    "photos": "photo",
    "milestones": "milestone",
    "notes": "text",
}

ALL_TYPES = "all"


def normalize_filters(filters: Iterable[str]) -> FrozenSet[str]:
    """Lower-case the filter set and resolve aliases to stored type names."""
    out = set()
    for f in filters:
        if not f:
            continue
        key = f.strip().lower()
        out.add(TYPE_ALIASES.get(key, key))
    return frozenset(out)


def event_matches_types(event: Event, wanted: FrozenSet[str]) -> bool:
    if not wanted or ALL_TYPES in wanted:
        return True
    event_type = (event.event_type or "").strip().lower()
    candidates = {event_type, TYPE_ALIASES.get(event_type, event_type)}
    candidates.update(t.strip().lower() for t in event.tags)
    candidates.discard("")
    return bool(candidates & wanted)


def filter_events(events: Iterable[Event], config: LayoutConfig) -> List[Event]:
    """
    Apply type/tag filters, the optional date window and the private-event
    switch. An empty type filter keeps every type. Events with no owner and
    no participants are dropped with a warning.
    """
    wanted = normalize_filters(config.selected_type_filters)
    start = datetime.combine(config.date_from, time.min) if config.date_from else None
    end = datetime.combine(config.date_to, time.max) if config.date_to else None

    kept = []
    total = 0
    for event in events:
        total += 1
        if not event.participants:
            logger.warning("Skipping event %r: it has no owner or participants", event.id)
            continue
        if not config.show_private_events and event.is_private:
            continue
        if start is not None and event.timestamp < start:
            continue
        if end is not None and event.timestamp > end:
            continue
        if not event_matches_types(event, wanted):
            continue
        kept.append(event)

    if len(kept) != total:
        logger.debug("Filter kept %d of %d events (types=%s)", len(kept), total, sorted(wanted))
    return kept


def available_types(events: Iterable[Event]) -> List[str]:
    """Distinct event types and tags, for building filter widgets."""
    seen = set()
    for event in events:
        if event.event_type:
            seen.add(event.event_type.strip().lower())
        seen.update(t.strip().lower() for t in event.tags if t.strip())
    return sorted(seen)
