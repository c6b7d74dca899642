import asyncio
from pathlib import Path
from typing import Dict, Any, Optional

import emojimap
from ..adapters.backend_api import BackendSource
from ..support.prefs import PreferenceStore
from ..utils.files import save_json
from ..utils.log import log_line, setup_logging
from ..utils.rate import rate_maybe_log
from .feed import FeedState
from .labels import LabelPlacer
from .scheduler import Scheduler


def save_snapshot(cfg: Dict[str, Any], feed: FeedState) -> None:
    path = cfg.get("snapshot_path")
    if not path:
        return
    try:
        save_json(Path(path), feed.snapshot())
    except OSError as e:
        log_line(f"SNAPSHOT SAVE ERROR | err={e!r}", "ERROR")


def build_scheduler(cfg: Dict[str, Any], feed: FeedState) -> Scheduler:
    """Wire the session timers: incremental refresh, trending pass, likes check."""
    scheduler = Scheduler()

    async def _refresh_tick():
        await feed.check_for_new_pins()
        rate_maybe_log()
        save_snapshot(cfg, feed)

    scheduler.add("refresh", cfg["refresh_interval_s"], _refresh_tick)
    scheduler.add("trending", cfg["trending_interval_s"], feed.recompute_trending)
    scheduler.add("likes_check", cfg["likes_check_interval_s"], feed.check_like_activity, run_immediately=True)
    return scheduler


def build_label_placer(cfg: Dict[str, Any], projector, box_of, on_placed=None) -> LabelPlacer:
    """Label placer for the map view, debounced by the configured delay."""
    return LabelPlacer(projector, box_of, debounce_s=cfg["placement_debounce_s"], on_placed=on_placed)


async def run_session(
    cfg: Dict[str, Any],
    one_shot: bool = False,
    source: Optional[Any] = None,
    prefs: Optional[PreferenceStore] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> FeedState:
    """Run one signed-in session until stop_event is set or the task is cancelled."""
    log_line(f"SESSION STARTED (EmojiMap client v{emojimap.__version__})")

    source = source or BackendSource(cfg)
    prefs = prefs or PreferenceStore.from_file(cfg.get("prefs_path") or "prefs.json")

    if not await source.verify_credentials():
        log_line("AUTH | session invalid or backend unreachable, continuing anonymously", "WARN")

    feed = FeedState(cfg, source, prefs)
    await feed.refresh_full()

    if one_shot:
        await feed.check_like_activity()
        save_snapshot(cfg, feed)
        log_line(f"CHECKS | pins={len(feed.pins)} trending={sum(p.is_trending for p in feed.pins)}")
        return feed

    scheduler = build_scheduler(cfg, feed)
    scheduler.start_all()
    try:
        await (stop_event or asyncio.Event()).wait()
    finally:
        # No timer may touch the feed after teardown
        await scheduler.close()
        save_snapshot(cfg, feed)
        log_line(f"SESSION STOPPED | pins={len(feed.pins)}")
    return feed


def run_loop(cfg: Dict[str, Any], one_shot: bool = False) -> None:
    log_dir = cfg.get("log_dir")
    setup_logging(Path(log_dir) if log_dir else None)
    try:
        asyncio.run(run_session(cfg, one_shot=one_shot))
    except KeyboardInterrupt:
        log_line("MAIN LOOP STOPPED (KeyboardInterrupt)")
