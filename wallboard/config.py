"""
wallboard/config.py
Persisted settings. Lives in wallboard_config.json; missing keys fall back
to DEFAULT_CONFIG, and the file is only written on explicit save.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "wallboard_config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "source": None,
    "embedded": False,
    "relay_url": "",
    "relay_key": "",
    "muted": False,
    "sort_key": "announce_time",
    "sort_direction": "asc",
    "poll_interval": 4.0,
    "debounce_interval": 0.3,
    "retry_interval": 2.0,
    "clock_interval": 1.0,
    "idle_check_interval": 5.0,
    "badge_interval": 5.0,
    "reminder_interval": 30.0,
    "idle_seconds": 45.0,
    "window_hours": 24,
    "upcoming_minutes": 5,
    "bucket_minutes": 5,
    "prune_chimed": False,
}

PathLike = Union[str, Path]


def _config_path(path: Optional[PathLike] = None) -> Path:
    if path is None:
        return Path.cwd() / CONFIG_FILENAME
    p = Path(path)
    return p / CONFIG_FILENAME if p.is_dir() else p


def load_config(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load config, merged over defaults. Returns defaults if missing or corrupt."""
    p = _config_path(path)
    if p.exists():
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top level is not an object")
            return {**DEFAULT_CONFIG, **data}
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning(f"Config load failed: {e}")
    return dict(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], path: Optional[PathLike] = None) -> Path:
    p = _config_path(path)
    p.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return p


def update_config(changes: Dict[str, Any], path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load, apply known keys, save. Unknown keys raise ValueError."""
    unknown = sorted(set(changes) - set(DEFAULT_CONFIG))
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    config = {**load_config(path), **changes}
    save_config(config, path)
    return config


@dataclass
class EngineSettings:
    poll_interval:        float = 4.0
    debounce_interval:    float = 0.3
    retry_interval:       float = 2.0
    clock_interval:       float = 1.0
    idle_check_interval:  float = 5.0
    badge_interval:       float = 5.0
    reminder_interval:    float = 30.0
    idle_seconds:         float = 45.0
    window_hours:         float = 24
    upcoming_minutes:     int   = 5
    bucket_minutes:       int   = 5
    prune_chimed:         bool  = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EngineSettings":
        merged = {**DEFAULT_CONFIG, **config}
        return cls(
            poll_interval       = float(merged["poll_interval"]),
            debounce_interval   = float(merged["debounce_interval"]),
            retry_interval      = float(merged["retry_interval"]),
            clock_interval      = float(merged["clock_interval"]),
            idle_check_interval = float(merged["idle_check_interval"]),
            badge_interval      = float(merged["badge_interval"]),
            reminder_interval   = float(merged["reminder_interval"]),
            idle_seconds        = float(merged["idle_seconds"]),
            window_hours        = float(merged["window_hours"]),
            upcoming_minutes    = int(merged["upcoming_minutes"]),
            bucket_minutes      = int(merged["bucket_minutes"]),
            prune_chimed        = bool(merged["prune_chimed"]),
        )
