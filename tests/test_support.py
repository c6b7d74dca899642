"""
Tests for prefs.py, activity.py, validate.py and config.py.
"""

import json
from datetime import datetime, timezone

import pytest

from emojimap.core.config import load_config
from emojimap.domain.activity import compute_like_activity, likes_from_others
from emojimap.domain.validate import validate_new_pin
from emojimap.support.prefs import PreferenceStore
from tests.conftest import VIEWER, OTHER


class TestPreferenceStore:
    """Tests for the JSON-backed preference store."""

    def test_first_login_returns_none(self, tmp_path):
        store = PreferenceStore.from_file(tmp_path / "prefs.json")
        assert store.get_and_update_last_login() is None
        assert (tmp_path / "prefs.json").exists()

    def test_returns_previous_login(self, tmp_path):
        path = tmp_path / "prefs.json"
        first = datetime(2024, 1, 1, tzinfo=timezone.utc)
        second = datetime(2024, 1, 2, tzinfo=timezone.utc)
        PreferenceStore.from_file(path).get_and_update_last_login(now=first)
        store = PreferenceStore.from_file(path)
        assert store.get_and_update_last_login(now=second) == first
        assert PreferenceStore.from_file(path).get_and_update_last_login() == second

    def test_login_without_offset_is_utc(self):
        store = PreferenceStore(None, {"last_login_time": "2024-01-01T00:30:00"})
        previous = store.get_and_update_last_login(now=datetime(2024, 1, 2))
        assert previous == datetime(2024, 1, 1, 0, 30, tzinfo=timezone.utc)
        assert store.data["last_login_time"] == "2024-01-02T00:00:00+00:00"

    def test_corrupt_login_value(self):
        store = PreferenceStore(None, {"last_login_time": "yesterday"})
        assert store.get_and_update_last_login() is None

    def test_content_filter_persists(self, tmp_path):
        path = tmp_path / "prefs.json"
        PreferenceStore.from_file(path).set_filter_objectionable_content(True)
        assert PreferenceStore.from_file(path).filter_objectionable_content is True

    def test_post_likes_keep_total_in_sync(self, tmp_path):
        path = tmp_path / "prefs.json"
        store = PreferenceStore.from_file(path)
        store.store_post_likes({1: 2, "5": 3})
        store.update_post_likes(9, 4)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["previous_post_likes"] == {"1": 2, "5": 3, "9": 4}
        assert data["previous_total_likes"] == 9

    def test_invalid_file_starts_empty(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{broken", encoding="utf-8")
        store = PreferenceStore.from_file(path)
        assert store.data == {}
        assert store.filter_objectionable_content is False


class TestLikeActivity:
    """Tests for likes-from-others bookkeeping."""

    def test_self_likes_ignored(self):
        assert likes_from_others([VIEWER, OTHER, "x"], VIEWER) == 2
        assert likes_from_others(None, VIEWER) == 0

    def test_new_post_counts(self):
        posts = [{"id": 1, "likes": [OTHER]}, {"id": 2, "likes": [VIEWER]}]
        a = compute_like_activity(posts, VIEWER, {}, 0)
        assert a.new_likes == 1
        assert a.posts_with_new_likes == [1]
        assert a.post_likes == {"1": 1}

    def test_total_growth_wins_when_larger(self):
        posts = [{"id": 1, "likes": ["a", "b", "c", "d"]}]
        a = compute_like_activity(posts, VIEWER, {"1": 1}, 1)
        assert a.posts_with_new_likes == [1]
        assert a.new_likes == 3

    def test_lost_likes_are_not_negative(self):
        posts = [{"id": 1, "likes": ["a"]}]
        a = compute_like_activity(posts, VIEWER, {"1": 3}, 3)
        assert a.new_likes == 0
        assert a.total_from_others == 1

    def test_malformed_rows_skipped(self):
        a = compute_like_activity([None, {"likes": ["a"]}, {"id": 4, "likes": ["a"]}], VIEWER, {}, 0)
        assert a.total_from_others == 1


class TestValidateNewPin:
    @pytest.mark.parametrize("lat,lon,emoji,comment,reason", [
        (52.5, 13.4, "🍕", "", None),
        (52.5, 13.4, "🍕", "x" * 50, None),
        (52.5, 13.4, "🍕", "x" * 51, "comment_too_long"),
        (52.5, 13.4, "  ", "hi", "missing_emoji"),
        (52.5, 13.4, "🍕" * 20, "hi", "emoji_too_long"),
        (91.0, 13.4, "🍕", "", "out_of_bounds_coordinates"),
        (52.5, -181.0, "🍕", "", "out_of_bounds_coordinates"),
        ("north", 13.4, "🍕", "", "invalid_coordinates"),
    ])
    def test_reasons(self, lat, lon, emoji, comment, reason):
        assert validate_new_pin(lat, lon, emoji, comment) == reason


class TestLoadConfig:
    def test_defaults_when_files_missing(self, tmp_path):
        cfg = load_config(tmp_path / "config.json", tmp_path / "secrets.json")
        assert cfg["refresh_interval_s"] == 5.0
        assert cfg["trending_interval_s"] == 30.0
        assert cfg["viewer_id"] is None

    def test_layering(self, tmp_path):
        (tmp_path / "config.json").write_text(json.dumps({
            "backend_url": "https://a.example/", "refresh_interval_s": 2, "api_key": "tracked"
        }), encoding="utf-8")
        (tmp_path / "secrets.json").write_text(json.dumps({
            "api_key": "secret", "viewer_id": VIEWER, "backend_url": "ignored"
        }), encoding="utf-8")
        cfg = load_config(
            tmp_path / "config.json", tmp_path / "secrets.json", overrides={"log_dir": None, "snapshot_path": "x.json"}
        )
        assert cfg["backend_url"] == "https://a.example"
        assert cfg["refresh_interval_s"] == 2.0
        assert cfg["api_key"] == "secret"
        assert cfg["viewer_id"] == VIEWER
        assert cfg["log_dir"] == "logs"
        assert cfg["snapshot_path"] == "x.json"
