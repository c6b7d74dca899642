#!/usr/bin/env python3
# EmojiMap client core: keeps the pin feed of one signed-in viewer in sync with
# the hosted backend, ranks trending pins and tracks likes from others.
#
# Files:
# - config.json   (tracked)     backend_url + timers + paths
# - secrets.json  (local, NOT tracked) {"api_key": "...", "access_token": "...", "viewer_id": "..."}
# - prefs.json    (local)       content filter, last login, seen likes
# - pins.json     (local)       snapshot of the current pin collection
#
# Usage:
#   python client.py            run until Ctrl-C
#   python client.py --once     one full fetch + likes check, then exit
import argparse
import sys

from emojimap.core.config import load_config
from emojimap.core.main_loop import run_loop


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the EmojiMap pin feed client")
    parser.add_argument("--config", default="config.json")
    parser.add_argument("--secrets", default="secrets.json")
    parser.add_argument("--backend-url", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--once", action="store_true", help="single refresh, then exit")
    args = parser.parse_args()

    cfg = load_config(
        args.config,
        args.secrets,
        overrides={"backend_url": args.backend_url, "log_dir": args.log_dir},
    )
    if not cfg.get("backend_url"):
        print("backend_url missing (config.json or --backend-url)", file=sys.stderr)
        return 2

    run_loop(cfg, one_shot=args.once)
    return 0


if __name__ == "__main__":
    sys.exit(main())
