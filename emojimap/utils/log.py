import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Any

# Set by setup_logging(); None means stdout only
LOG_DIR: Optional[Path] = None
CLIENT_LOG_PATH: Optional[Path] = None

_LOG_LOCK = threading.Lock()


def setup_logging(log_dir: Optional[Path], log_name: Optional[str] = None) -> Optional[Path]:
    """Point log_line at a file under log_dir (daily name unless log_name is given)."""
    global LOG_DIR, CLIENT_LOG_PATH
    if log_dir is None:
        LOG_DIR = None
        CLIENT_LOG_PATH = None
        return None
    LOG_DIR = Path(log_dir)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    if not log_name:
        log_name = f"client-{datetime.now().astimezone().strftime('%Y-%m-%d')}.log"
    CLIENT_LOG_PATH = LOG_DIR / log_name
    return CLIENT_LOG_PATH


def _append(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(line + "\n")


def log_line(msg: Any, level: str = "INFO") -> None:
    """
    Logging wrapper (single timestamp, readable):
    - Prefix every line with: YYYY-MM-DD // HH:MM:SS+HH:MM - LEVEL |
    - Messages follow the "TAG | key=value" convention.
    """
    line = str(msg).strip()

    with _LOG_LOCK:
        ts = datetime.now().astimezone()
        prefix = ts.strftime("%Y-%m-%d // %H:%M:%S%z")
        if len(prefix) >= 5:
            prefix = prefix[:-2] + ":" + prefix[-2:]

        lvl = (level or "INFO").upper()
        full = f"{prefix} - {lvl} | {line}" if line else f"{prefix} - {lvl} |"

        if CLIENT_LOG_PATH:
            try:
                _append(CLIENT_LOG_PATH, full)
            except OSError as e:
                print(f"{prefix} - ERROR | LOG WRITE FAILED | err={e!r}", file=sys.stderr, flush=True)

        print(full, flush=True)
