"""
Lane positions and junction detection.

Every participant owns a fixed horizontal lane. In a bucket where streams
merge, the merged participants are drawn as one junction node placed between
their lanes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from lifeflow.config import GeometrySettings, JunctionPolicy
from lifeflow.models import Event, TimeBucket


def lane_centers(participant_ids: Sequence[str], canvas_height: float,
                 settings: GeometrySettings) -> Dict[str, float]:
    """Spread lane centres evenly between the top and bottom padding."""
    n = len(participant_ids)
    if n == 0:
        return {}
    if n == 1:
        return {participant_ids[0]: canvas_height / 2.0}
    ys = np.linspace(settings.padding, canvas_height - settings.padding, n)
    return {pid: float(y) for pid, y in zip(participant_ids, ys)}


@dataclass
class BucketPlan:
    bucket: TimeBucket
    # each junction group is a sorted tuple of two or more participant ids
    groups: List[Tuple[str, ...]] = field(default_factory=list)
    solo: List[str] = field(default_factory=list)
    junction_centers: Dict[Tuple[str, ...], float] = field(default_factory=dict)

    def group_of(self, participant_id: str):
        for group in self.groups:
            if participant_id in group:
                return group
        return None


class _DisjointSet:
    def __init__(self):
        self.parent: Dict[str, str] = {}

    def find(self, x: str) -> str:
        self.parent.setdefault(x, x)
        while self.parent[x] != x:
            self.parent[x] = self.parent[self.parent[x]]
            x = self.parent[x]
        return x

    def union(self, a: str, b: str) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # smaller id wins so the result does not depend on input order
            if rb < ra:
                ra, rb = rb, ra
            self.parent[rb] = ra


def _shared_groups(events: Sequence[Event]) -> List[Tuple[str, ...]]:
    ds = _DisjointSet()
    for event in events:
        people = event.participants
        if len(people) < 2:
            continue
        for other in people[1:]:
            ds.union(people[0], other)

    members: Dict[str, List[str]] = {}
    for pid in list(ds.parent):
        members.setdefault(ds.find(pid), []).append(pid)
    return sorted(tuple(sorted(m)) for m in members.values() if len(m) > 1)


def plan_bucket(bucket: TimeBucket, policy: JunctionPolicy) -> BucketPlan:
    present = bucket.participant_ids
    if policy == JunctionPolicy.CO_OCCURRENCE:
        groups = [tuple(present)] if len(present) > 1 else []
    else:
        groups = _shared_groups(bucket.events)

    grouped = {pid for g in groups for pid in g}
    return BucketPlan(
        bucket=bucket,
        groups=groups,
        solo=[pid for pid in present if pid not in grouped],
    )


def place_junctions(plan: BucketPlan, lanes: Dict[str, float],
                    settings: GeometrySettings) -> None:
    """
    Centre each junction on the mean of its members' lanes. When that spot is
    already taken by another node of the same bucket, step outwards one node
    slot at a time (below first, then above) until it is free.
    """
    slot = settings.node_height + settings.node_margin
    lowest = settings.node_height / 2.0 + settings.node_margin
    occupied = [lanes[pid] for pid in plan.solo]

    def free(y: float) -> bool:
        return all(abs(y - other) >= slot - 1e-9 for other in occupied)

    ordered = sorted(plan.groups, key=lambda g: (float(np.mean([lanes[p] for p in g])), g))
    for group in ordered:
        target = float(np.mean([lanes[p] for p in group]))
        y = max(target, lowest)
        k = 0
        while not free(y):
            k += 1
            step = (k + 1) // 2 * slot
            candidate = target + step if k % 2 else target - step
            if candidate < lowest:
                continue
            y = candidate
        plan.junction_centers[group] = y
        occupied.append(y)


def allocate(buckets: Sequence[TimeBucket], participant_ids: Sequence[str],
             canvas_height: float, policy: JunctionPolicy,
             settings: GeometrySettings) -> Tuple[Dict[str, float], List[BucketPlan]]:
    lanes = lane_centers(participant_ids, canvas_height, settings)
    plans = []
    for bucket in buckets:
        plan = plan_bucket(bucket, policy)
        place_junctions(plan, lanes, settings)
        plans.append(plan)
    return lanes, plans
