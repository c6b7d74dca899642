import time
from typing import Optional

from .log import log_line

RATE_WINDOW_S = 3600.0

RATE_STATE = {
    "t0": None,
    "next_log": None,
    "fetch_ok": 0,
    "fetch_fail": 0,
    "like_ok": 0,
    "like_fail": 0,
}

_KINDS = ("fetch", "like")


def rate_inc(kind: str, ok: bool) -> None:
    if kind not in _KINDS:
        return
    k = f"{kind}_ok" if ok else f"{kind}_fail"
    RATE_STATE[k] = int(RATE_STATE.get(k, 0) or 0) + 1


def rate_reset(now: Optional[float] = None) -> None:
    now = time.time() if now is None else now
    RATE_STATE["t0"] = now
    RATE_STATE["next_log"] = now + RATE_WINDOW_S
    for kind in _KINDS:
        RATE_STATE[f"{kind}_ok"] = 0
        RATE_STATE[f"{kind}_fail"] = 0


def rate_maybe_log(now: Optional[float] = None) -> bool:
    """Log the counters once per window. Returns True when a line was written."""
    now = time.time() if now is None else now
    if RATE_STATE.get("t0") is None:
        RATE_STATE["t0"] = now
        RATE_STATE["next_log"] = now + RATE_WINDOW_S

    if now < float(RATE_STATE.get("next_log") or 0):
        return False

    w = int(RATE_WINDOW_S // 60)
    log_line(
        f"RATE | window={w}m | "
        f"fetches={RATE_STATE.get('fetch_ok', 0)} ok/{RATE_STATE.get('fetch_fail', 0)} fail | "
        f"likes={RATE_STATE.get('like_ok', 0)} ok/{RATE_STATE.get('like_fail', 0)} fail"
    )
    rate_reset(now)
    return True
