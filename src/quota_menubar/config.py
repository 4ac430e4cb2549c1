from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

CONFIG_DIR = Path.home() / ".config" / "quota_menubar"
CONFIG_PATH = Path(
    os.getenv(
        "QUOTA_MENUBAR_CONFIG",
        CONFIG_DIR / "config.json",
    )
)
PREFERENCES_PATH = CONFIG_DIR / "preferences.json"

DEFAULT_CONFIG = {
    "claude_refresh_interval": 60.0,
    "codex_refresh_interval": 15 * 60.0,
    "request_timeout": 10.0,
    "codex_home": None,
    "claude_config_dir": None,
    "panel_width": 360,
}

MIN_CLAUDE_INTERVAL = 5.0
MIN_CODEX_INTERVAL = 30.0


@dataclass
class MenubarConfig:
    claude_refresh_interval: float = DEFAULT_CONFIG["claude_refresh_interval"]
    codex_refresh_interval: float = DEFAULT_CONFIG["codex_refresh_interval"]
    request_timeout: float = DEFAULT_CONFIG["request_timeout"]
    codex_home: Optional[Path] = None
    claude_config_dir: Optional[Path] = None
    panel_width: int = DEFAULT_CONFIG["panel_width"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenubarConfig":
        claude_refresh_interval = max(
            MIN_CLAUDE_INTERVAL,
            float(data.get("claude_refresh_interval", DEFAULT_CONFIG["claude_refresh_interval"])),
        )
        codex_refresh_interval = max(
            MIN_CODEX_INTERVAL,
            float(data.get("codex_refresh_interval", DEFAULT_CONFIG["codex_refresh_interval"])),
        )
        request_timeout = float(data.get("request_timeout", DEFAULT_CONFIG["request_timeout"]))
        panel_width = int(data.get("panel_width", DEFAULT_CONFIG["panel_width"]))
        return cls(
            claude_refresh_interval=claude_refresh_interval,
            codex_refresh_interval=codex_refresh_interval,
            request_timeout=request_timeout,
            codex_home=_optional_path(data.get("codex_home")),
            claude_config_dir=_optional_path(data.get("claude_config_dir")),
            panel_width=panel_width,
        )


def load_config(path: Optional[Path] = None) -> MenubarConfig:
    path = path or CONFIG_PATH
    data: Dict[str, Any] = {}
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = json.load(handle)
        except (json.JSONDecodeError, OSError):
            loaded = {}
        if isinstance(loaded, dict):
            data = loaded
    try:
        return MenubarConfig.from_dict(data)
    except (TypeError, ValueError):
        return MenubarConfig()


def _optional_path(value: Any) -> Optional[Path]:
    if isinstance(value, str) and value.strip():
        return Path(value).expanduser()
    return None


__all__ = [
    "CONFIG_PATH",
    "MenubarConfig",
    "PREFERENCES_PATH",
    "load_config",
]
