import asyncio
import requests
from typing import Dict, Any, Optional, List

from ..core.constants import BACKEND_TIMEOUT_S
from ..utils.log import log_line
from ..utils.rate import rate_inc

POSTS_TABLE = "Posts"


def _base(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("backend_url", "") or "").rstrip("/")


def _api_headers(cfg: Dict[str, Any]) -> Dict[str, str]:
    api_key = str(cfg.get("api_key", "") or "")
    # Signed-in session token if we have one, anon key otherwise
    token = str(cfg.get("access_token", "") or "") or api_key
    ua = str(cfg.get("user_agent", "EmojiMapClient/1.0") or "EmojiMapClient/1.0")
    return {
        "apikey": api_key,
        "Authorization": f"Bearer {token}",
        "User-Agent": ua,
        "Content-Type": "application/json",
    }


def api_get(cfg: Dict[str, Any], path: str, params: Dict[str, Any] | None = None) -> requests.Response:
    return requests.get(f"{_base(cfg)}{path}", headers=_api_headers(cfg), params=params, timeout=BACKEND_TIMEOUT_S)


def api_post(cfg: Dict[str, Any], path: str, payload: Dict[str, Any]) -> requests.Response:
    return requests.post(f"{_base(cfg)}{path}", headers=_api_headers(cfg), json=payload, timeout=BACKEND_TIMEOUT_S)


def verify_credentials(cfg: Dict[str, Any]) -> bool:
    if not _base(cfg):
        return False
    try:
        r = api_get(cfg, "/auth/v1/user")
        return r.status_code == 200
    except requests.RequestException as e:
        log_line(f"AUTH CHECK FAILED | err={e!r}", "WARN")
        return False


def _rpc_list(cfg: Dict[str, Any], fn: str, params: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """Call a remote procedure returning rows. None means the call failed."""
    if not _base(cfg):
        return None
    try:
        r = api_post(cfg, f"/rest/v1/rpc/{fn}", params)
        if r.status_code != 200:
            log_line(f"RPC {fn} FAILED | status={r.status_code}", "WARN")
            rate_inc("fetch", False)
            return None
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        log_line(f"RPC {fn} FAILED | err={e!r}", "WARN")
        rate_inc("fetch", False)
        return None
    rate_inc("fetch", True)
    return data if isinstance(data, list) else []


def fetch_posts(cfg: Dict[str, Any], viewer_id: Optional[str], filter_objectionable: bool) -> Optional[List[Dict[str, Any]]]:
    params = {"viewer_id": viewer_id, "objectionable_bool": bool(filter_objectionable)}
    return _rpc_list(cfg, "get_posts", params)


def fetch_new_posts(
    cfg: Dict[str, Any], viewer_id: Optional[str], filter_objectionable: bool, last_seen: str
) -> Optional[List[Dict[str, Any]]]:
    params = {
        "viewer_id": viewer_id,
        "objectionable_bool": bool(filter_objectionable),
        "last_seen": last_seen,
    }
    return _rpc_list(cfg, "get_new_posts", params)


def _like_rpc(cfg: Dict[str, Any], fn: str, post_id: int, viewer_id: str) -> bool:
    if not _base(cfg):
        return False
    try:
        r = api_post(cfg, f"/rest/v1/rpc/{fn}", {"post_id": int(post_id), "user_id": str(viewer_id)})
        ok = 200 <= r.status_code < 300
        if not ok:
            log_line(f"RPC {fn} FAILED | post={post_id} | status={r.status_code}", "WARN")
    except requests.RequestException as e:
        log_line(f"RPC {fn} FAILED | post={post_id} | err={e!r}", "WARN")
        ok = False
    rate_inc("like", ok)
    return ok


def add_like(cfg: Dict[str, Any], post_id: int, viewer_id: str) -> bool:
    return _like_rpc(cfg, "add_like", post_id, viewer_id)


def remove_like(cfg: Dict[str, Any], post_id: int, viewer_id: str) -> bool:
    return _like_rpc(cfg, "remove_like", post_id, viewer_id)


def insert_post(
    cfg: Dict[str, Any], viewer_id: str, emoji: str, comment: str, latitude: float, longitude: float
) -> bool:
    if not _base(cfg):
        return False
    payload = {
        "user_id": str(viewer_id),
        "emoji": emoji,
        "comment": comment,
        "longitude": float(longitude),
        "latitude": float(latitude),
    }
    try:
        r = api_post(cfg, f"/rest/v1/{POSTS_TABLE}", payload)
        if 200 <= r.status_code < 300:
            return True
        log_line(f"INSERT POST FAILED | status={r.status_code}", "WARN")
    except requests.RequestException as e:
        log_line(f"INSERT POST FAILED | err={e!r}", "WARN")
    return False


def _select_likes(cfg: Dict[str, Any], filters: Dict[str, str]) -> Optional[List[Dict[str, Any]]]:
    if not _base(cfg):
        return None
    params = {"select": "id,likes"}
    params.update(filters)
    try:
        r = api_get(cfg, f"/rest/v1/{POSTS_TABLE}", params=params)
        if r.status_code != 200:
            log_line(f"SELECT LIKES FAILED | status={r.status_code}", "WARN")
            return None
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        log_line(f"SELECT LIKES FAILED | err={e!r}", "WARN")
        return None
    return data if isinstance(data, list) else []


def fetch_own_post_likes(cfg: Dict[str, Any], viewer_id: str) -> Optional[List[Dict[str, Any]]]:
    """Rows {"id", "likes": [user ids]} for every post the viewer authored."""
    return _select_likes(cfg, {"user_id": f"eq.{viewer_id}"})


def fetch_post_likes(cfg: Dict[str, Any], post_id: int) -> Optional[List[Dict[str, Any]]]:
    return _select_likes(cfg, {"id": f"eq.{int(post_id)}"})


class BackendSource:
    """Awaitable facade over the blocking calls above (run in worker threads)."""

    def __init__(self, cfg: Dict[str, Any]):
        self.cfg = cfg

    async def verify_credentials(self) -> bool:
        return await asyncio.to_thread(verify_credentials, self.cfg)

    async def fetch_posts(self, viewer_id, filter_objectionable):
        return await asyncio.to_thread(fetch_posts, self.cfg, viewer_id, filter_objectionable)

    async def fetch_new_posts(self, viewer_id, filter_objectionable, last_seen):
        return await asyncio.to_thread(fetch_new_posts, self.cfg, viewer_id, filter_objectionable, last_seen)

    async def add_like(self, post_id, viewer_id):
        return await asyncio.to_thread(add_like, self.cfg, post_id, viewer_id)

    async def remove_like(self, post_id, viewer_id):
        return await asyncio.to_thread(remove_like, self.cfg, post_id, viewer_id)

    async def insert_post(self, viewer_id, emoji, comment, latitude, longitude):
        return await asyncio.to_thread(insert_post, self.cfg, viewer_id, emoji, comment, latitude, longitude)

    async def fetch_own_post_likes(self, viewer_id):
        return await asyncio.to_thread(fetch_own_post_likes, self.cfg, viewer_id)

    async def fetch_post_likes(self, post_id):
        return await asyncio.to_thread(fetch_post_likes, self.cfg, post_id)
