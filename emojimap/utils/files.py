import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from .log import log_line


def load_json(path: Union[str, Path], default: Any) -> Any:
    """Load JSON safely.
    Missing file returns default silently; unreadable or invalid JSON is logged
    and also returns default.
    """
    path = Path(path)
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        log_line(f"LOAD JSON FAILED | path={path} | err={e!r}", "WARN")
        return default


def save_json(path: Union[str, Path], obj: Any) -> None:
    """
    Atomic JSON write.
    The temp file is unique per call so overlapping writers never share it.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = json.dumps(obj, ensure_ascii=False, indent=2)
    if not data.endswith("\n"):
        data += "\n"

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    finally:
        if tmp_name:
            Path(tmp_name).unlink(missing_ok=True)
