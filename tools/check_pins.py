#!/usr/bin/env python3
"""
Script to check the consistency of a pins.json snapshot written by the client.
Validations per pin:
* Identity: `id` present, integer and unique across the snapshot.
* Coordinate validity: latitude/longitude numeric and within valid ranges
  (-90 <= lat <= 90, -180 <= lon <= 180).
* Likes: `upvotes` is a non-negative integer.
* Zoom threshold: `zoom_level` is one of the known quintile thresholds.
* Comment length: at most 50 characters.
* Own pins: a pin authored by the viewer must never be flagged new.
Each issue is printed as "<issue>\t<pin id>". The script exits with a non-zero
status if issues are found.
Usage:
    python tools/check_pins.py --snapshot pins.json
"""
import argparse, json, sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from emojimap.core.constants import ZOOM_LEVELS, MAX_COMMENT_LEN


def load_json(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise SystemExit(f"File not found: {path}")


def check_pins(snapshot: dict) -> list[tuple[str, str]]:
    errors: list[tuple[str, str]] = []
    seen_ids: set[int] = set()
    for pin in snapshot.get("pins", []):
        pid = pin.get("id")
        label = str(pid) if pid is not None else "unknown"
        if not isinstance(pid, int) or isinstance(pid, bool):
            errors.append(("invalid_id", label))
        elif pid in seen_ids:
            errors.append(("duplicate_id", label))
        else:
            seen_ids.add(pid)
        lat = pin.get("latitude")
        lon = pin.get("longitude")
        if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
            errors.append(("invalid_coordinates", label))
        elif not (-90 <= lat <= 90 and -180 <= lon <= 180):
            errors.append(("out_of_bounds_coordinates", label))
        upvotes = pin.get("upvotes")
        if not isinstance(upvotes, int) or upvotes < 0:
            errors.append(("invalid_upvotes", label))
        if pin.get("zoom_level") not in ZOOM_LEVELS:
            errors.append(("unknown_zoom_level", label))
        if len(str(pin.get("comment") or "")) > MAX_COMMENT_LEN:
            errors.append(("comment_too_long", label))
        if pin.get("is_current_user_pin") and pin.get("is_new"):
            errors.append(("own_pin_marked_new", label))
    return errors


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate a pins.json snapshot")
    parser.add_argument("--snapshot", default="pins.json")
    args = parser.parse_args()
    snapshot = load_json(Path(args.snapshot))
    errors = check_pins(snapshot)
    if errors:
        for issue, pid in errors:
            print(f"{issue}\t{pid}")
        print(f"\nFound {len(errors)} issues")
        return 1
    print(f"No issues detected ({len(snapshot.get('pins', []))} pins)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
