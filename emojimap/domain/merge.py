from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Iterable, Tuple

from ..core.constants import ZOOM_LEVELS, DEFAULT_ZOOM_LEVEL
from ..core.models import Pin
from ..utils.log import log_line
from ..utils.time import parse_timestamp, now_utc, DISTANT_PAST, DISTANT_FUTURE


def is_own_post(record: Dict[str, Any], viewer_id: Optional[str]) -> bool:
    if viewer_id is None:
        return False
    return str(record.get("user_id") or "") == str(viewer_id)


def derive_is_new(record: Dict[str, Any], is_mine: bool, reference: Optional[datetime]) -> bool:
    """Created after the reference time and not authored by the viewer.

    Unparsable created_at counts as distant past and a missing reference as
    distant future, so malformed input never flags a pin as new.
    """
    if is_mine:
        return False
    created = parse_timestamp(record.get("created_at")) or DISTANT_PAST
    ref = reference or DISTANT_FUTURE
    if ref.tzinfo is None:
        ref = ref.replace(tzinfo=timezone.utc)
    return created > ref


def zoom_level_for_rank(idx: int, total: int) -> float:
    """Quintile of the update-time ranking -> zoom threshold (older needs more zoom)."""
    quintile_size = max(1, total // len(ZOOM_LEVELS))
    bucket = min(idx // quintile_size, len(ZOOM_LEVELS) - 1)
    return ZOOM_LEVELS[bucket]


def _pin_fields(record: Dict[str, Any], viewer_id: Optional[str]) -> Dict[str, Any]:
    """Convert the mutable part of a backend post. Raises on a broken record."""
    now = now_utc()
    return {
        "latitude": float(record["latitude"]),
        "longitude": float(record["longitude"]),
        "emoji": str(record.get("emoji") or ""),
        "comment": str(record.get("comment") or ""),
        "upvotes": max(0, int(record.get("likes_count") or 0)),
        "is_liked": bool(record.get("is_liked", False)),
        "created_at": parse_timestamp(record.get("created_at")) or now,
        "updated_at": parse_timestamp(record.get("updated_at")) or now,
        "is_current_user_pin": is_own_post(record, viewer_id),
    }


def _record_id(record: Dict[str, Any]) -> int:
    rid = record.get("id")
    if rid is None or isinstance(rid, bool):
        raise ValueError("missing id")
    return int(rid)


def _convert(
    records: Iterable[Dict[str, Any]], viewer_id: Optional[str]
) -> Tuple[List[Tuple[int, Dict[str, Any], Dict[str, Any]]], int]:
    """Per-record isolation: broken records are logged and skipped."""
    out = []
    skipped = 0
    for rec in records or []:
        try:
            if not isinstance(rec, dict):
                raise TypeError(f"record is {type(rec).__name__}")
            out.append((_record_id(rec), rec, _pin_fields(rec, viewer_id)))
        except (KeyError, TypeError, ValueError) as e:
            skipped += 1
            rid = rec.get("id") if isinstance(rec, dict) else None
            log_line(f"MERGE SKIP | id={rid} | err={e!r}", "WARN")
    return out, skipped


def merge_full(
    records: List[Dict[str, Any]],
    viewer_id: Optional[str],
    reference: Optional[datetime],
) -> Tuple[List[Pin], int]:
    """Build a fresh collection from a full fetch. Returns (pins, skipped).

    Pins come out sorted by updated_at descending; the zoom threshold is picked
    by update-recency quintile. is_trending is left False for the ranking pass.
    """
    converted, skipped = _convert(records, viewer_id)
    # One pin per id; a later record in the batch replaces an earlier one
    latest = {}
    for c in converted:
        latest[c[0]] = c
    converted = list(latest.values())
    converted.sort(
        key=lambda c: parse_timestamp(c[1].get("updated_at")) or DISTANT_PAST,
        reverse=True,
    )

    total = len(converted)
    pins = []
    for idx, (pid, rec, fields) in enumerate(converted):
        pins.append(Pin(
            id=pid,
            zoom_level=zoom_level_for_rank(idx, total),
            is_new=derive_is_new(rec, fields["is_current_user_pin"], reference),
            is_trending=False,
            **fields,
        ))
    return pins, skipped


def merge_incremental(
    existing: List[Pin],
    records: List[Dict[str, Any]],
    viewer_id: Optional[str],
    reference: Optional[datetime],
) -> Tuple[List[Pin], int, int, int]:
    """Upsert updated posts into a copy of the collection.

    Returns (pins, inserted, updated, skipped). Known ids are overwritten in
    place and keep their zoom threshold and is_new flag; unknown ids are
    appended with the most permissive zoom threshold.
    """
    pins = list(existing)
    index = {p.id: i for i, p in enumerate(pins)}
    converted, skipped = _convert(records, viewer_id)

    inserted = updated = 0
    for pid, rec, fields in converted:
        i = index.get(pid)
        if i is not None:
            cur = pins[i]
            pins[i] = Pin(
                id=pid,
                zoom_level=cur.zoom_level,
                is_new=cur.is_new,
                is_trending=cur.is_trending,
                **fields,
            )
            updated += 1
        else:
            index[pid] = len(pins)
            pins.append(Pin(
                id=pid,
                zoom_level=DEFAULT_ZOOM_LEVEL,
                is_new=derive_is_new(rec, fields["is_current_user_pin"], reference),
                is_trending=False,
                **fields,
            ))
            inserted += 1
    return pins, inserted, updated, skipped


def most_recent_update(pins: List[Pin]) -> Optional[datetime]:
    if not pins:
        return None
    return max(p.updated_at for p in pins)
