import asyncio
from typing import Any, Dict, List, Optional

from .models import Pin, PostFilter, RefreshMode, RefreshResult, LikeActivity, ValidationError
from ..domain.activity import compute_like_activity, likes_from_others
from ..domain.merge import merge_full, merge_incremental, most_recent_update
from ..domain.ranking import recompute_trending, apply_filter
from ..domain.validate import validate_new_pin
from ..support.prefs import PreferenceStore
from ..utils.log import log_line
from ..utils.time import format_timestamp, now_utc


class FeedState:
    """Single owner of the pin collection for one signed-in session.

    Every change to the collection (merge, like toggle, trending pass) runs
    under one asyncio.Lock. Remote fetches happen outside the lock; only the
    merge of their result is serialized. The filtered view is derived on read.

    `source` is any object with the awaitable methods of
    adapters.backend_api.BackendSource.
    """

    def __init__(self, cfg: Dict[str, Any], source: Any, prefs: PreferenceStore, viewer_id: Optional[str] = None):
        self.cfg = cfg
        self.source = source
        self.prefs = prefs
        self.viewer_id = viewer_id if viewer_id is not None else cfg.get("viewer_id")
        self.pins: List[Pin] = []
        self.active_filter = PostFilter.ALL
        self.like_activity = LikeActivity()
        self._lock = asyncio.Lock()

    # --- views ---

    def visible_pins(self) -> List[Pin]:
        return apply_filter(self.pins, self.active_filter)

    def set_filter(self, post_filter: PostFilter) -> List[Pin]:
        self.active_filter = PostFilter(post_filter)
        return self.visible_pins()

    def show_all(self) -> List[Pin]:
        return self.set_filter(PostFilter.ALL)

    def show_trending(self) -> List[Pin]:
        return self.set_filter(PostFilter.TRENDING)

    def find_pin(self, pin_id: int) -> Optional[Pin]:
        for p in self.pins:
            if p.id == pin_id:
                return p
        return None

    # --- refresh ---

    async def refresh_full(self) -> RefreshResult:
        """Replace the whole collection with a fresh fetch."""
        result = RefreshResult(mode=RefreshMode.FULL)
        reference = self.prefs.get_and_update_last_login()
        records = await self.source.fetch_posts(self.viewer_id, self.prefs.filter_objectionable_content)
        if records is None:
            result.errors.append("fetch_failed")
            log_line("FETCH FULL SKIPPED | fetch failed", "WARN")
            return result

        result.fetched = len(records)
        if not records:
            log_line("FETCH FULL | posts=0 (kept current pins)")
            return result

        pins, skipped = merge_full(records, self.viewer_id, reference)
        async with self._lock:
            self.pins = pins
            recompute_trending(self.pins)

        result.inserted = len(pins)
        result.skipped = skipped
        log_line(f"FETCH FULL | posts={result.fetched} pins={len(pins)} skipped={result.skipped}")
        return result

    async def check_for_new_pins(self) -> RefreshResult:
        """Merge posts updated since the newest local pin; full fetch if there is none."""
        most_recent = most_recent_update(self.pins)
        if most_recent is None:
            log_line("FETCH INCREMENTAL | no local pins, doing full fetch")
            return await self.refresh_full()

        result = RefreshResult(mode=RefreshMode.INCREMENTAL)
        last_seen = format_timestamp(most_recent)
        reference = self.prefs.get_and_update_last_login()
        records = await self.source.fetch_new_posts(
            self.viewer_id, self.prefs.filter_objectionable_content, last_seen
        )
        if records is None:
            result.errors.append("fetch_failed")
            log_line(f"FETCH INCREMENTAL SKIPPED | since={last_seen} | fetch failed", "WARN")
            return result

        result.fetched = len(records)
        if not records:
            return result

        async with self._lock:
            pins, inserted, updated, skipped = merge_incremental(self.pins, records, self.viewer_id, reference)
            self.pins = pins
            recompute_trending(self.pins)

        result.inserted, result.updated, result.skipped = inserted, updated, skipped
        log_line(
            f"FETCH INCREMENTAL | since={last_seen} posts={result.fetched} "
            f"inserted={inserted} updated={updated} skipped={skipped}"
        )
        return result

    async def recompute_trending(self) -> int:
        async with self._lock:
            recompute_trending(self.pins)
            return sum(1 for p in self.pins if p.is_trending)

    async def set_content_filter(self, enabled: bool) -> RefreshResult:
        self.prefs.set_filter_objectionable_content(enabled)
        log_line(f"CONTENT FILTER | objectionable_hidden={bool(enabled)}")
        return await self.refresh_full()

    # --- likes ---

    async def _send_like(self, pin_id: int, like: bool) -> bool:
        if not self.viewer_id:
            log_line(f"LIKE FAILED | post={pin_id} | not signed in", "WARN")
            return False
        try:
            if like:
                return bool(await self.source.add_like(pin_id, self.viewer_id))
            return bool(await self.source.remove_like(pin_id, self.viewer_id))
        except Exception as e:
            log_line(f"LIKE FAILED | post={pin_id} | err={e!r}", "WARN")
            return False

    async def toggle_like(self, pin_id: int) -> bool:
        """Optimistically flip the like, confirm remotely, roll back on failure.

        Returns True when the remote mutation succeeded.
        """
        async with self._lock:
            pin = self.find_pin(pin_id)
            if pin is None:
                log_line(f"LIKE IGNORED | post={pin_id} | pin not found", "WARN")
                return False

            was_liked, old_upvotes = pin.is_liked, pin.upvotes
            pin.is_liked = not was_liked
            pin.upvotes = max(0, old_upvotes + (-1 if was_liked else 1))

            ok = False
            try:
                ok = await self._send_like(pin_id, like=not was_liked)
            finally:
                if not ok:
                    pin.is_liked = was_liked
                    pin.upvotes = old_upvotes
                    recompute_trending(self.pins)
                    log_line(f"LIKE ROLLBACK | post={pin_id} liked={was_liked} upvotes={old_upvotes}", "WARN")
            if not ok:
                return False

            recompute_trending(self.pins)
            own = pin.is_current_user_pin

        log_line(f"LIKE | post={pin_id} liked={not was_liked} upvotes={pin.upvotes}")
        if own:
            await self._update_self_like(pin_id)
        return True

    async def _update_self_like(self, pin_id: int) -> None:
        """Keep the seen-likes map in step when the viewer likes their own pin."""
        rows = await self.source.fetch_post_likes(pin_id)
        if not rows:
            return
        n = likes_from_others(rows[0].get("likes"), self.viewer_id)
        self.prefs.update_post_likes(pin_id, n)

    async def check_like_activity(self) -> LikeActivity:
        if not self.viewer_id:
            return self.like_activity
        rows = await self.source.fetch_own_post_likes(self.viewer_id)
        if rows is None:
            log_line("LIKES CHECK SKIPPED | fetch failed", "WARN")
            return self.like_activity

        activity = compute_like_activity(
            rows, self.viewer_id, self.prefs.previous_post_likes, self.prefs.previous_total_likes
        )
        if activity.new_likes:
            log_line(
                f"LIKES CHECK | new={activity.new_likes} posts={activity.posts_with_new_likes} "
                f"total={activity.total_from_others}"
            )
        self.like_activity = activity
        return activity

    def acknowledge_activity(self) -> None:
        """Mark the current likes from others as seen."""
        self.prefs.store_post_likes(self.like_activity.post_likes)
        self.like_activity = LikeActivity(
            total_from_others=self.like_activity.total_from_others,
            post_likes=dict(self.like_activity.post_likes),
        )

    # --- new pins ---

    async def add_pin(self, latitude: float, longitude: float, emoji: str, comment: str = "") -> bool:
        err = validate_new_pin(latitude, longitude, emoji, comment)
        if err:
            raise ValidationError(err)
        if not self.viewer_id:
            log_line("ADD PIN FAILED | not signed in", "WARN")
            return False

        ok = await self.source.insert_post(self.viewer_id, emoji.strip(), comment or "", latitude, longitude)
        if not ok:
            return False
        log_line(f"ADD PIN | emoji={emoji.strip()} lat={float(latitude):.5f} lon={float(longitude):.5f}")
        await self.refresh_full()
        return True

    # --- persistence ---

    def snapshot(self) -> Dict[str, Any]:
        return {
            "saved_at": now_utc().isoformat(),
            "viewer_id": self.viewer_id,
            "filter": self.active_filter.value,
            "pins": [p.to_dict() for p in self.pins],
        }
