from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple

from ..utils.time import parse_timestamp, now_utc


class PostFilter(str, Enum):
    ALL = "all"
    TRENDING = "trending"
    FRIENDS = "friends"  # not implemented, shows everything


class RefreshMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


class EmojiMapError(Exception):
    """Base error for the client core."""


class ValidationError(EmojiMapError):
    """Rejected user input for a new pin."""


@dataclass
class Pin:
    id: int
    latitude: float
    longitude: float
    emoji: str
    comment: str
    zoom_level: float
    created_at: datetime
    updated_at: datetime
    upvotes: int = 0
    is_liked: bool = False
    is_new: bool = False
    is_trending: bool = False
    is_current_user_pin: bool = False

    @property
    def coordinate(self) -> Tuple[float, float]:
        return self.latitude, self.longitude

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["created_at"] = self.created_at.isoformat()
        d["updated_at"] = self.updated_at.isoformat()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Pin":
        # Snapshots are written by to_dict() (isoformat); tolerate backend text as well.
        def _ts(v):
            if isinstance(v, datetime):
                return v
            try:
                return datetime.fromisoformat(v)
            except (TypeError, ValueError):
                return parse_timestamp(v) or now_utc()

        return cls(
            id=int(d["id"]),
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            emoji=str(d.get("emoji") or ""),
            comment=str(d.get("comment") or ""),
            zoom_level=float(d.get("zoom_level", 15.5)),
            created_at=_ts(d.get("created_at")),
            updated_at=_ts(d.get("updated_at")),
            upvotes=max(0, int(d.get("upvotes", 0))),
            is_liked=bool(d.get("is_liked", False)),
            is_new=bool(d.get("is_new", False)),
            is_trending=bool(d.get("is_trending", False)),
            is_current_user_pin=bool(d.get("is_current_user_pin", False)),
        )


@dataclass(frozen=True)
class LabelBox:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def intersects(self, other: "Rect") -> bool:
        """Strict overlap: rects that only share an edge do not intersect."""
        if self.width <= 0 or self.height <= 0 or other.width <= 0 or other.height <= 0:
            return False
        return (
            self.x < other.max_x
            and other.x < self.max_x
            and self.y < other.max_y
            and other.y < self.max_y
        )


@dataclass
class RefreshResult:
    mode: RefreshMode = RefreshMode.FULL
    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class LikeActivity:
    new_likes: int = 0
    posts_with_new_likes: List[int] = field(default_factory=list)
    total_from_others: int = 0
    post_likes: Dict[str, int] = field(default_factory=dict)

