"""Validated persistence for the three UI preferences.

Values are stored as strings in a small JSON object so the layout matches the
key-value surface the panel has always used (theme name, active tab and a
``"true"``/``"false"`` dock flag). Reads happen once at start-up; writes happen
on every user change and are best effort.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Dict, Optional, TypeVar

from .config import PREFERENCES_PATH
from .models import Tab, Theme, UIPreferences
from .utils import logger

THEME_KEY = "claude-quota-theme"
TAB_KEY = "claude-quota-tab"
DOCK_HIDDEN_KEY = "claude-quota-dock-hidden"

VALID_THEMES = frozenset(theme.value for theme in Theme)
VALID_TABS = frozenset(tab.value for tab in Tab)

T = TypeVar("T")


class PreferenceStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = path or PREFERENCES_PATH

    def _read_all(self) -> Dict[str, str]:
        with self.path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected preferences payload: {type(data).__name__}")
        return data

    def read(self, key: str) -> Optional[str]:
        try:
            value = self._read_all().get(key)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.debug("preferences unreadable (%s): %s", self.path, exc)
            return None
        return value if isinstance(value, str) else None

    def load(self, key: str, validator: Callable[[str], bool], default: T) -> T:
        raw = self.read(key)
        if raw is None:
            return default
        try:
            valid = validator(raw)
        except Exception:
            return default
        return raw if valid else default  # type: ignore[return-value]

    def save(self, key: str, value: object) -> None:
        try:
            try:
                data = self._read_all()
            except (OSError, ValueError):
                data = {}
            data[key] = str(value)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
        except Exception as exc:
            logger.warning("failed to persist preference %s: %s", key, exc)


def is_valid_theme(value: str) -> bool:
    return value in VALID_THEMES


def is_valid_tab(value: str) -> bool:
    return value in VALID_TABS


def load_ui_preferences(store: PreferenceStore) -> UIPreferences:
    theme = store.load(THEME_KEY, is_valid_theme, Theme.LIGHT.value)
    tab = store.load(TAB_KEY, is_valid_tab, Tab.CLAUDE.value)
    dock_hidden = store.read(DOCK_HIDDEN_KEY) == "true"
    return UIPreferences(theme=Theme(theme), active_tab=Tab(tab), dock_hidden=dock_hidden)


def save_theme(store: PreferenceStore, theme: Theme) -> None:
    store.save(THEME_KEY, Theme(theme).value)


def save_active_tab(store: PreferenceStore, tab: Tab) -> None:
    store.save(TAB_KEY, Tab(tab).value)


def save_dock_hidden(store: PreferenceStore, hidden: bool) -> None:
    store.save(DOCK_HIDDEN_KEY, "true" if hidden else "false")


__all__ = [
    "DOCK_HIDDEN_KEY",
    "PreferenceStore",
    "TAB_KEY",
    "THEME_KEY",
    "load_ui_preferences",
    "save_active_tab",
    "save_dock_hidden",
    "save_theme",
]
