from __future__ import annotations

import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Optional

import requests

from . import claude_api, codex_api
from .config import MenubarConfig
from .models import (
    ClaudeQuotaSnapshot,
    CodexAccountSnapshot,
    CodexRateLimitSnapshot,
    CodexStatsSnapshot,
)
from .paths import codex_home
from .utils import ProviderError, logger

CLAUDE_DASHBOARD_URL = "https://console.anthropic.com/settings/usage"
CODEX_DASHBOARD_URL = "https://chatgpt.com"


class ProviderClient(ABC):
    """Read side of both accounts plus the two dashboard links.

    Queries report "not connected" through the snapshot (``connected=False`` /
    ``error``). Anything raised is a transport failure for the caller to catch.
    """

    @abstractmethod
    def get_quota(self) -> ClaudeQuotaSnapshot: ...

    @abstractmethod
    def get_codex_info(self) -> CodexAccountSnapshot: ...

    @abstractmethod
    def get_codex_stats(self) -> CodexStatsSnapshot: ...

    @abstractmethod
    def get_codex_rate_limits(self) -> CodexRateLimitSnapshot: ...

    @abstractmethod
    def open_claude_dashboard(self) -> None: ...

    @abstractmethod
    def open_codex_dashboard(self) -> None: ...


def open_url(url: str) -> None:
    opener = "open" if sys.platform == "darwin" else "xdg-open"
    try:
        subprocess.run([opener, url], check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except FileNotFoundError as exc:
        raise ProviderError(f"Failed to open dashboard: {opener} not available") from exc
    except subprocess.CalledProcessError as exc:
        raise ProviderError(f"Failed to open dashboard (exit {exc.returncode})") from exc


class DefaultProviderClient(ProviderClient):
    def __init__(self, config: MenubarConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.history = codex_api.HistoryStats()

    @property
    def codex_home(self):
        return codex_home(self.config.codex_home)

    def get_quota(self) -> ClaudeQuotaSnapshot:
        snapshot = claude_api.fetch_quota(
            self.session,
            timeout=self.config.request_timeout,
            config_dir=self.config.claude_config_dir,
        )
        if snapshot.error:
            logger.info("claude quota unavailable: %s", snapshot.error)
        return snapshot

    def get_codex_info(self) -> CodexAccountSnapshot:
        return codex_api.fetch_account(self.codex_home)

    def get_codex_stats(self) -> CodexStatsSnapshot:
        return self.history.collect(self.codex_home)

    def get_codex_rate_limits(self) -> CodexRateLimitSnapshot:
        snapshot = codex_api.fetch_rate_limits(
            self.codex_home,
            self.session,
            timeout=self.config.request_timeout,
        )
        if snapshot.error:
            logger.info("codex rate limits unavailable: %s", snapshot.error)
        return snapshot

    def open_claude_dashboard(self) -> None:
        open_url(CLAUDE_DASHBOARD_URL)

    def open_codex_dashboard(self) -> None:
        open_url(CODEX_DASHBOARD_URL)


__all__ = [
    "CLAUDE_DASHBOARD_URL",
    "CODEX_DASHBOARD_URL",
    "DefaultProviderClient",
    "ProviderClient",
    "open_url",
]
