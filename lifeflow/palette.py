"""
Participant discovery and colour assignment.

Colours come from plotly's qualitative palette first. Past its ten entries,
extra hues are spread around the colour wheel. A ``ColorCache`` keeps the
assignment stable across layout runs within a session.
"""

from __future__ import annotations

import colorsys
import threading
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from plotly.colors import hex_to_rgb, qualitative

from lifeflow.logger import get_logger
from lifeflow.models import RGB, Event, Participant

logger = get_logger(__name__)

BASE_PALETTE: Tuple[RGB, ...] = tuple(tuple(hex_to_rgb(c)) for c in qualitative.Plotly)

GENERATED_SATURATION = 0.65
GENERATED_LIGHTNESS = 0.55
GOLDEN_ANGLE = 137.50776

# (lightness, saturation) rounds tried once every hue of the previous round is taken
SHADE_ROUNDS = (
    (GENERATED_LIGHTNESS, GENERATED_SATURATION),
    (0.45, 0.65),
    (0.65, 0.65),
    (0.55, 0.5),
    (0.45, 0.5),
    (0.65, 0.5),
    (0.55, 0.8),
    (0.45, 0.8),
    (0.65, 0.8),
)
HUE_STEPS_PER_ROUND = 360

RGB_SPACE = 1 << 24
# odd, so stepping by it visits every 24-bit colour exactly once
RGB_STRIDE = 0x3779B1


def _hue_color(hue_degrees: float, lightness: float = GENERATED_LIGHTNESS,
               saturation: float = GENERATED_SATURATION) -> RGB:
    r, g, b = colorsys.hls_to_rgb((hue_degrees % 360.0) / 360.0, lightness, saturation)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


def _walk_rgb(index: int, used: Set[RGB]) -> RGB:
    """First unused colour on a fixed full-cycle walk over all RGB triples."""
    pos = (index * RGB_STRIDE) % RGB_SPACE
    for _ in range(RGB_SPACE):
        color = ((pos >> 16) & 0xFF, (pos >> 8) & 0xFF, pos & 0xFF)
        if color not in used:
            return color
        pos = (pos + RGB_STRIDE) % RGB_SPACE
    raise ValueError("Every RGB colour is already in use")


def generate_palette(count: int, taken: Optional[Set[RGB]] = None) -> List[RGB]:
    """
    Return ``count`` distinct colours, none of which is in ``taken``.

    The base palette is used in order; index ``i`` past it gets hue
    ``360 * i / count``. A colour that collides is moved by the golden angle.
    When a shade round has no free hue left the next lighter, darker or
    differently saturated round is used, and after the last round colours
    come from a walk over the whole RGB cube.
    """
    used: Set[RGB] = set(taken or ())
    out: List[RGB] = []
    for color in BASE_PALETTE:
        if len(out) >= count:
            break
        if color not in used:
            out.append(color)
            used.add(color)

    index = len(BASE_PALETTE)
    shade = 0
    while len(out) < count:
        hue = 360.0 * index / max(count, 1)
        color = None
        while color is None and shade < len(SHADE_ROUNDS):
            lightness, saturation = SHADE_ROUNDS[shade]
            for step in range(HUE_STEPS_PER_ROUND):
                candidate = _hue_color(hue + step * GOLDEN_ANGLE, lightness, saturation)
                if candidate not in used:
                    color = candidate
                    break
            else:
                shade += 1
        if color is None:
            color = _walk_rgb(index, used)
        out.append(color)
        used.add(color)
        index += 1
    return out



class ColorCache:
    """
    Participant id -> colour, append-only unless evicted.

    Guarded by a lock so one cache can be shared by layout runs issued from
    several threads. ``clear_on_event_change`` decides whether replacing the
    event set forgets the assignments.
    """

    def __init__(self, clear_on_event_change: bool = False):
        self.clear_on_event_change = clear_on_event_change
        self._colors: Dict[str, RGB] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._colors)

    def __contains__(self, participant_id: str) -> bool:
        with self._lock:
            return participant_id in self._colors

    def get(self, participant_id: str) -> Optional[RGB]:
        with self._lock:
            return self._colors.get(participant_id)

    def snapshot(self) -> Dict[str, RGB]:
        with self._lock:
            return dict(self._colors)

    def clear(self) -> None:
        with self._lock:
            self._colors.clear()

    def on_event_set_changed(self) -> None:
        if not self.clear_on_event_change:
            return
        with self._lock:
            dropped = len(self._colors)
            self._colors.clear()
        logger.debug("Event set replaced; cleared %d cached colours", dropped)

    def assign(self, sorted_ids: Sequence[str]) -> Dict[str, RGB]:
        """Colour every id, keeping existing entries; new ids follow sorted order."""
        with self._lock:
            missing = [pid for pid in sorted_ids if pid not in self._colors]
            if missing:
                taken = set(self._colors.values())
                total = len(self._colors) + len(missing)
                fresh = generate_palette(total, taken=taken)[: len(missing)]
                for pid, color in zip(missing, fresh):
                    self._colors[pid] = color
                logger.debug("Assigned colours to %d new participants", len(missing))
            return {pid: self._colors[pid] for pid in sorted_ids}


def participant_ids(events: Iterable[Event]) -> List[str]:
    """Distinct owner and participant ids, sorted lexicographically."""
    ids = set()
    for event in events:
        ids.update(event.participants)
    return sorted(ids)


def index_participants(
    events: Iterable[Event], cache: Optional[ColorCache] = None
) -> List[Participant]:
    ids = participant_ids(events)
    if cache is None:
        cache = ColorCache()
    colors = cache.assign(ids)
    return [Participant(id=pid, ordinal=i, color=colors[pid]) for i, pid in enumerate(ids)]
