from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

DEFAULT_CLAUDE_DIRS = (Path.home() / ".claude", Path.home() / ".config" / "claude")
DEFAULT_CODEX_HOME = Path.home() / ".codex"
CLAUDE_CONFIG_ENV = "CLAUDE_CONFIG_DIR"
CODEX_HOME_ENV = "CODEX_HOME"
CREDENTIALS_FILENAME = ".credentials.json"
AUTH_FILENAME = "auth.json"
HISTORY_FILENAME = "history.jsonl"


def discover_credential_files(explicit_dir: Optional[Path] = None) -> List[Path]:
    """Candidate Claude ``.credentials.json`` files, most specific first."""

    dirs: List[Path] = []
    if explicit_dir is not None:
        dirs.append(explicit_dir)

    env_value = os.getenv(CLAUDE_CONFIG_ENV, "").strip()
    if env_value:
        dirs.extend(Path(part).expanduser() for part in env_value.split(",") if part.strip())

    dirs.extend(DEFAULT_CLAUDE_DIRS)

    seen = set()
    files: List[Path] = []
    for directory in dirs:
        candidate = directory.expanduser() / CREDENTIALS_FILENAME
        key = str(candidate)
        if key in seen:
            continue
        seen.add(key)
        if candidate.is_file():
            files.append(candidate)
    return files


def codex_home(explicit: Optional[Path] = None) -> Path:
    if explicit is not None:
        return explicit.expanduser()
    env_value = os.getenv(CODEX_HOME_ENV, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return DEFAULT_CODEX_HOME


__all__ = [
    "AUTH_FILENAME",
    "HISTORY_FILENAME",
    "codex_home",
    "discover_credential_files",
]
