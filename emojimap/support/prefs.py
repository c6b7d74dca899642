from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, Union

from ..utils.files import load_json, save_json
from ..utils.time import now_utc


class PreferenceStore:
    """
    Small persisted key/value store for per-device client state.

    Backed by one JSON file that is rewritten atomically on every change.
    Keys:
        filter_objectionable_content  bool
        last_login_time               ISO-8601 string (local clock)
        previous_post_likes           {post id: likes from others already seen}
        previous_total_likes          int
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, data: Optional[Dict[str, Any]] = None):
        self.path = Path(path) if path else None
        self.data: Dict[str, Any] = dict(data or {})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PreferenceStore":
        data = load_json(Path(path), {})
        return cls(path, data if isinstance(data, dict) else {})

    def save(self) -> None:
        if self.path:
            save_json(self.path, self.data)

    @property
    def filter_objectionable_content(self) -> bool:
        return bool(self.data.get("filter_objectionable_content", False))

    def set_filter_objectionable_content(self, enabled: bool) -> None:
        self.data["filter_objectionable_content"] = bool(enabled)
        self.save()

    def get_and_update_last_login(self, now: Optional[datetime] = None) -> Optional[datetime]:
        """Return the previously stored login time and store now in its place."""
        previous = None
        raw = self.data.get("last_login_time")
        if raw:
            try:
                previous = datetime.fromisoformat(raw)
            except (TypeError, ValueError):
                previous = None
        # Values without an offset are read as UTC
        if previous is not None and previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        now = now or now_utc()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self.data["last_login_time"] = now.isoformat()
        self.save()
        return previous

    @property
    def previous_post_likes(self) -> Dict[str, int]:
        raw = self.data.get("previous_post_likes") or {}
        return {str(k): int(v) for k, v in raw.items()} if isinstance(raw, dict) else {}

    @property
    def previous_total_likes(self) -> int:
        return int(self.data.get("previous_total_likes", 0) or 0)

    def store_post_likes(self, post_likes: Dict[str, int]) -> None:
        """Replace the seen map and keep the total in sync with it."""
        clean = {str(k): int(v) for k, v in post_likes.items()}
        self.data["previous_post_likes"] = clean
        self.data["previous_total_likes"] = sum(clean.values())
        self.save()

    def update_post_likes(self, post_id: int, likes_from_others: int) -> None:
        seen = self.previous_post_likes
        seen[str(post_id)] = int(likes_from_others)
        self.store_post_likes(seen)
