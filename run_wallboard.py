#!/usr/bin/env python3
"""
run_wallboard.py — Config-driven wallboard launcher
Uses wallboard_config.json. Run from project root.

  python run_wallboard.py           # live board in the terminal
  python run_wallboard.py --api     # live board + HTTP API on 127.0.0.1:8765

The config must name a "source" (booking page URL or HTML file path).
"""

import argparse
import asyncio
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Taxi Wallboard — config-driven launcher")
    parser.add_argument("--api", action="store_true", help="Also start the HTTP API")
    parser.add_argument("--port", type=int, default=8765, help="API port (default: 8765)")
    args = parser.parse_args()

    root = Path(__file__).parent
    sys.path.insert(0, str(root))

    import logging

    from wallboard.aggregators.presentation import UIState
    from wallboard.cli import run_live
    from wallboard.config import CONFIG_FILENAME, load_config

    logging.basicConfig(
        level   = logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    config_path = root / CONFIG_FILENAME
    config = load_config(config_path)
    source = config.get("source")
    if not source:
        print(f"No source. Set \"source\" in {config_path}", file=sys.stderr)
        sys.exit(1)

    ui = UIState(
        sort_key       = config.get("sort_key") or "announce_time",
        sort_direction = config.get("sort_direction") or "asc",
    )
    if args.api:
        print(f"Starting API at http://127.0.0.1:{args.port}")
    try:
        asyncio.run(run_live(
            location    = source,
            embedded    = bool(config.get("embedded")),
            config      = config,
            ui          = ui,
            muted       = bool(config.get("muted")),
            serve       = args.api,
            port        = args.port,
            config_path = config_path,
        ))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
