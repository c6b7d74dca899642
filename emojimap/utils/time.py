from datetime import datetime, timezone
from typing import Optional

# Backend timestamps (Postgres timestamptz rendered as text)
TS_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",  # 2024-01-01T00:00:00.000000+00:00
    "%Y-%m-%dT%H:%M:%S%z",     # 2024-01-01T00:00:00+00:00
)

DISTANT_PAST = datetime(1, 1, 1, tzinfo=timezone.utc)
DISTANT_FUTURE = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Parse a backend timestamp into an aware UTC datetime.

    Only the two formats in TS_FORMATS are accepted. Anything else
    (including None) yields None so the caller can pick its own fallback.
    """
    if not isinstance(text, str):
        return None
    s = text.strip()
    for fmt in TS_FORMATS:
        try:
            return datetime.strptime(s, fmt).astimezone(timezone.utc)
        except ValueError:
            continue
    return None


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 with milliseconds and a literal Z, for outgoing query params."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
