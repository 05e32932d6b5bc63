from __future__ import annotations

from datetime import datetime
from typing import List, Sequence

import pandas as pd

from lifeflow.config import Granularity
from lifeflow.logger import get_logger
from lifeflow.models import Event, TimeBucket

logger = get_logger(__name__)

PERIOD_FREQ = {
    Granularity.DAY: "D",
    Granularity.WEEK: "W",
    Granularity.MONTH: "M",
    Granularity.QUARTER: "Q",
    Granularity.YEAR: "Y",
}


def bucket_key(start: datetime, granularity: Granularity) -> str:
    if granularity == Granularity.DAY:
        return start.strftime("%Y-%m-%d")
    if granularity == Granularity.WEEK:
        year, week, _ = start.isocalendar()
        return f"{year}-W{week:02d}"
    if granularity == Granularity.MONTH:
        return start.strftime("%Y-%m")
    if granularity == Granularity.QUARTER:
        return f"{start.year}-Q{(start.month - 1) // 3 + 1}"
    return start.strftime("%Y")


def bucket_label(start: datetime, granularity: Granularity) -> str:
    """Human label for axis ticks."""
    if granularity == Granularity.DAY:
        return start.strftime("%d %b %Y")
    if granularity == Granularity.WEEK:
        return "Week of " + start.strftime("%d %b %Y")
    if granularity == Granularity.MONTH:
        return start.strftime("%b %Y")
    return bucket_key(start, granularity)


def bucket_events(events: Sequence[Event], granularity: Granularity) -> List[TimeBucket]:
    """
    Group events into time buckets, oldest first.

    Inside a bucket, events are ordered by timestamp then id, and
    ``by_participant`` lists each event under its owner and under everyone it
    is shared with.
    """
    if not events:
        return []

    df = pd.DataFrame(
        {
            "pos": range(len(events)),
            "ts": pd.to_datetime([e.timestamp for e in events]),
            "event_id": [e.id for e in events],
            "participant": [list(e.participants) for e in events],
        }
    )
    df["start"] = df["ts"].dt.to_period(PERIOD_FREQ[granularity]).dt.start_time
    df = df.sort_values(["start", "ts", "event_id"], kind="mergesort")

    buckets: List[TimeBucket] = []
    for start, g in df.groupby("start", sort=True):
        start_dt = pd.Timestamp(start).to_pydatetime()
        bucket = TimeBucket(
            key=bucket_key(start_dt, granularity),
            start=start_dt,
            events=[events[i] for i in g["pos"]],
        )
        exploded = g.explode("participant")
        for pid, pg in exploded.groupby("participant", sort=True):
            bucket.by_participant[str(pid)] = [events[i] for i in pg["pos"]]
        buckets.append(bucket)

    logger.debug("Bucketed %d events into %d %s buckets", len(events), len(buckets),
                 granularity.value)
    return buckets
