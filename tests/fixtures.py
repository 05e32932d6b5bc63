"""
Shared test fixtures.

All fixtures are explicit: fixed timestamps, fixed ids.
"""

from datetime import datetime
from typing import List, Sequence

from lifeflow.config import Granularity, LayoutConfig
from lifeflow.models import Event, Size


def ev(event_id: str, when: str, owner: str, with_: Sequence[str] = (),
       event_type: str = "text", tags: Sequence[str] = (), private: bool = False) -> Event:
    return Event(
        id=event_id,
        timestamp=datetime.fromisoformat(when),
        owner_id=owner,
        participant_ids=tuple(with_),
        title=f"Event {event_id}",
        event_type=event_type,
        tags=tuple(tags),
        is_private=private,
    )


VIEWPORT = Size(1200.0, 600.0)
MONTHLY = LayoutConfig(viewport_size=VIEWPORT, granularity=Granularity.MONTH)


# alice alone, three events over two months
SCENARIO_A: List[Event] = [
    ev("a1", "2024-01-05T12:00:00", "alice"),
    ev("a2", "2024-01-20T12:00:00", "alice"),
    ev("a3", "2024-02-10T12:00:00", "alice"),
]

# alice and bob apart in January, together in March
SCENARIO_B: List[Event] = [
    ev("a0", "2024-01-10T09:00:00", "alice"),
    ev("b0", "2024-01-12T09:00:00", "bob"),
    ev("a1", "2024-03-05T09:00:00", "alice"),
    ev("s1", "2024-03-20T18:00:00", "alice", with_=["bob"], event_type="celebration"),
]

# a year of mixed activity for three people
YEAR: List[Event] = [
    ev("y1", "2023-01-03T10:00:00", "alice", event_type="milestone"),
    ev("y2", "2023-02-14T10:00:00", "bob", event_type="photo", tags=["family"]),
    ev("y3", "2023-04-01T10:00:00", "carol"),
    ev("y4", "2023-06-18T10:00:00", "alice", with_=["bob"], event_type="travel"),
    ev("y5", "2023-06-20T10:00:00", "carol", event_type="photo"),
    ev("y6", "2023-09-09T10:00:00", "bob", private=True),
    ev("y7", "2023-12-24T10:00:00", "carol", with_=["alice", "bob"], event_type="celebration"),
    ev("y8", "2023-12-31T10:00:00", "alice", event_type="milestone"),
]
