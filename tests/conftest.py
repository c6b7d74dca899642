"""Shared builders and fakes for the client core tests."""

from datetime import datetime, timezone, timedelta

import pytest

from emojimap.core.models import Pin
from emojimap.support.prefs import PreferenceStore

VIEWER = "11111111-1111-1111-1111-111111111111"
OTHER = "22222222-2222-2222-2222-222222222222"

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def ts(minutes: int = 0) -> str:
    """Backend-style timestamp text, minutes after T0."""
    return (T0 + timedelta(minutes=minutes)).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def make_record(pid, minutes=0, likes=0, user_id=OTHER, created_minutes=None, **extra):
    rec = {
        "id": pid,
        "user_id": user_id,
        "created_at": ts(minutes if created_minutes is None else created_minutes),
        "updated_at": ts(minutes),
        "emoji": "🍕",
        "comment": f"pin {pid}",
        "longitude": 13.4050,
        "latitude": 52.5200,
        "likes_count": likes,
        "is_liked": False,
    }
    rec.update(extra)
    return rec


def make_pin(pid, upvotes=0, lat=52.52, lon=13.405, **extra):
    fields = dict(
        id=pid,
        latitude=lat,
        longitude=lon,
        emoji="🍕",
        comment=f"pin {pid}",
        zoom_level=15.5,
        created_at=T0,
        updated_at=T0,
        upvotes=upvotes,
    )
    fields.update(extra)
    return Pin(**fields)


class FakeSource:
    """In-memory stand-in for BackendSource."""

    def __init__(self, posts=None, new_posts=None, like_ok=True):
        self.posts = posts if posts is not None else []
        self.new_posts = new_posts if new_posts is not None else []
        self.like_ok = like_ok
        self.calls = []
        self.own_likes = []
        self.post_likes = {}
        self.insert_ok = True

    async def verify_credentials(self):
        return True

    async def fetch_posts(self, viewer_id, filter_objectionable):
        self.calls.append(("fetch_posts", viewer_id, filter_objectionable))
        return self.posts

    async def fetch_new_posts(self, viewer_id, filter_objectionable, last_seen):
        self.calls.append(("fetch_new_posts", viewer_id, filter_objectionable, last_seen))
        return self.new_posts

    async def add_like(self, post_id, viewer_id):
        self.calls.append(("add_like", post_id, viewer_id))
        if isinstance(self.like_ok, Exception):
            raise self.like_ok
        return self.like_ok

    async def remove_like(self, post_id, viewer_id):
        self.calls.append(("remove_like", post_id, viewer_id))
        if isinstance(self.like_ok, Exception):
            raise self.like_ok
        return self.like_ok

    async def insert_post(self, viewer_id, emoji, comment, latitude, longitude):
        self.calls.append(("insert_post", viewer_id, emoji, comment, latitude, longitude))
        return self.insert_ok

    async def fetch_own_post_likes(self, viewer_id):
        self.calls.append(("fetch_own_post_likes", viewer_id))
        return self.own_likes

    async def fetch_post_likes(self, post_id):
        self.calls.append(("fetch_post_likes", post_id))
        return self.post_likes.get(post_id, [])


@pytest.fixture
def prefs():
    """Memory-only preference store with a known last login."""
    return PreferenceStore(None, {"last_login_time": (T0 + timedelta(minutes=30)).isoformat()})
