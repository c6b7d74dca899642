from typing import Optional

from ..core.constants import MAX_COMMENT_LEN, MAX_EMOJI_LEN


def validate_new_pin(latitude: float, longitude: float, emoji: str, comment: str) -> Optional[str]:
    """
    Returns None if valid, or a reason string if the pin must be rejected.
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return "invalid_coordinates"
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return "out_of_bounds_coordinates"

    e = (emoji or "").strip()
    if not e:
        return "missing_emoji"
    if len(e) > MAX_EMOJI_LEN:
        return "emoji_too_long"

    if len(comment or "") > MAX_COMMENT_LEN:
        return "comment_too_long"

    return None
