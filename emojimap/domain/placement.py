"""Collision-avoiding placement for pin labels on the map.

Each pin keeps its true coordinate unless its label rectangle would overlap
a label already placed in the same pass. In that case the coordinate walks
outward along a per-pin bearing derived from the pin id, one small
great-circle step at a time, until the rectangle is clear or the step cap is
hit. Pins earlier in the list claim space first, so the result depends on
iteration order and is reproducible for the same input.
"""

import math
from typing import Callable, Dict, List, Tuple

from ..core.constants import (
    EARTH_RADIUS_M, PLACEMENT_STEP_M, PLACEMENT_MAX_STEPS,
    BADGE_EXTRA_ONE, BADGE_EXTRA_BOTH,
    LONG_COMMENT_CHARS, LONG_COMMENT_MOVE_DOWN, LONG_COMMENT_EXTRA_H,
)
from ..core.models import Pin, LabelBox, Rect

LatLon = Tuple[float, float]
Point = Tuple[float, float]
Projector = Callable[[LatLon], Point]
BoxProvider = Callable[[Pin, bool], LabelBox]

_MASK32 = 0xFFFFFFFF


def mix32(seed: int) -> int:
    """murmur3 fmix32 over the low 32 bits of seed."""
    h = seed & _MASK32
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK32
    h ^= h >> 16
    return h


def search_vector(pin_id: int) -> Tuple[float, float]:
    """Unit vector (dx, dy) fixed per pin id."""
    angle = (mix32(pin_id) / _MASK32) * 2.0 * math.pi
    return math.cos(angle), math.sin(angle)


def search_bearing(pin_id: int) -> float:
    """Compass bearing in degrees for the search vector (may be negative)."""
    dx, dy = search_vector(pin_id)
    return math.fmod(math.degrees(math.atan2(dy, dx)) + 90.0, 360.0)


def destination_point(lat: float, lon: float, distance_m: float, bearing_deg: float) -> LatLon:
    """Great-circle translation of (lat, lon) by distance_m along bearing_deg."""
    brg = math.radians(bearing_deg)
    lat1 = math.radians(lat)
    lon1 = math.radians(lon)
    d = distance_m / EARTH_RADIUS_M

    lat2 = math.asin(math.sin(lat1) * math.cos(d) + math.cos(lat1) * math.sin(d) * math.cos(brg))
    lon2 = lon1 + math.atan2(
        math.sin(brg) * math.sin(d) * math.cos(lat1),
        math.cos(d) - math.sin(lat1) * math.sin(lat2),
    )
    return math.degrees(lat2), math.degrees(lon2)


def badge_extra_height(pin: Pin) -> float:
    if pin.is_new and pin.is_trending:
        return BADGE_EXTRA_BOTH
    if pin.is_new or pin.is_trending:
        return BADGE_EXTRA_ONE
    return 0.0


def collision_rect(point: Point, box: LabelBox, pin: Pin, show_comment: bool) -> Rect:
    """Screen rect a label claims when anchored at point."""
    px, py = point
    extra = badge_extra_height(pin)

    if show_comment:
        height = box.height + extra
        move_down = 0.0
        if len(pin.comment) > LONG_COMMENT_CHARS:
            move_down = LONG_COMMENT_MOVE_DOWN
            height += LONG_COMMENT_EXTRA_H
        return Rect(
            x=px - box.width / 2,
            y=py - box.height / 2 + move_down,
            width=box.width,
            height=height,
        )

    # Emoji-only labels claim a half-size rect so dense clusters still pack.
    half_w = box.width / 2
    half_h = (box.height + extra) / 2
    return Rect(x=px - half_w / 2, y=py - half_h / 2, width=half_w, height=half_h)


def find_free_coordinate(
    pin: Pin,
    box: LabelBox,
    show_comment: bool,
    projector: Projector,
    used_rects: List[Rect],
    step_m: float = PLACEMENT_STEP_M,
    max_steps: int = PLACEMENT_MAX_STEPS,
) -> Tuple[LatLon, Rect]:
    """Walk away from the pin until its rect is clear; claims the accepted rect."""
    bearing = search_bearing(pin.id)
    coord = pin.coordinate
    rect = collision_rect(projector(coord), box, pin, show_comment)

    steps = 0
    while steps < max_steps and any(r.intersects(rect) for r in used_rects):
        coord = destination_point(coord[0], coord[1], step_m, bearing)
        rect = collision_rect(projector(coord), box, pin, show_comment)
        steps += 1

    used_rects.append(rect)
    return coord, rect


def place_labels(
    pins: List[Pin],
    projector: Projector,
    box_of: BoxProvider,
    zoom_level: float,
    step_m: float = PLACEMENT_STEP_M,
    max_steps: int = PLACEMENT_MAX_STEPS,
) -> Dict[int, LatLon]:
    """One placement pass. Returns pin id -> coordinate to draw the label at."""
    used_rects: List[Rect] = []
    out: Dict[int, LatLon] = {}
    for pin in pins:
        show_comment = zoom_level >= pin.zoom_level
        box = box_of(pin, show_comment)
        coord, _ = find_free_coordinate(
            pin, box, show_comment, projector, used_rects, step_m=step_m, max_steps=max_steps
        )
        out[pin.id] = coord
    return out
