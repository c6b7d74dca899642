from pathlib import Path
from typing import Dict, Any, Optional, Union

from ..utils.files import load_json
from .constants import (
    REFRESH_INTERVAL_S, TRENDING_INTERVAL_S, LIKES_CHECK_INTERVAL_S, PLACEMENT_DEBOUNCE_S
)

DEFAULTS: Dict[str, Any] = {
    "backend_url": "",
    "api_key": "",
    "access_token": "",
    "viewer_id": None,
    "user_agent": "EmojiMapClient/1.0",
    "refresh_interval_s": REFRESH_INTERVAL_S,
    "trending_interval_s": TRENDING_INTERVAL_S,
    "likes_check_interval_s": LIKES_CHECK_INTERVAL_S,
    "placement_debounce_s": PLACEMENT_DEBOUNCE_S,
    "prefs_path": "prefs.json",
    "snapshot_path": "pins.json",
    "log_dir": "logs",
}

# Keys that only live in secrets.json (never tracked)
SECRET_KEYS = ("api_key", "access_token", "viewer_id")


def load_config(
    cfg_path: Union[str, Path] = "config.json",
    secrets_path: Optional[Union[str, Path]] = "secrets.json",
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge defaults < config.json < secrets.json < overrides."""
    cfg = dict(DEFAULTS)
    file_cfg = load_json(Path(cfg_path), {})
    if isinstance(file_cfg, dict):
        cfg.update(file_cfg)

    if secrets_path:
        secrets = load_json(Path(secrets_path), {})
        if isinstance(secrets, dict):
            for k in SECRET_KEYS:
                if secrets.get(k):
                    cfg[k] = secrets[k]

    if overrides:
        cfg.update({k: v for k, v in overrides.items() if v is not None})

    cfg["backend_url"] = str(cfg.get("backend_url") or "").rstrip("/")
    for k in ("refresh_interval_s", "trending_interval_s", "likes_check_interval_s", "placement_debounce_s"):
        cfg[k] = float(cfg.get(k) or DEFAULTS[k])
    return cfg
