from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Tab(str, Enum):
    CLAUDE = "claude"
    CODEX = "codex"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    CLAUDE = "claude"
    CLAUDE_DARK = "claude-dark"
    MINIMAL = "minimal"
    MINIMAL_DARK = "minimal-dark"
    OCEAN = "ocean"


THEME_LABELS = {
    Theme.LIGHT: "Light",
    Theme.DARK: "Dark",
    Theme.CLAUDE: "Claude",
    Theme.CLAUDE_DARK: "Claude Dark",
    Theme.MINIMAL: "Minimal",
    Theme.MINIMAL_DARK: "Minimal Dark",
    Theme.OCEAN: "Ocean",
}


@dataclass(frozen=True)
class UsageWindow:
    used: float
    limit: float
    percentage: float
    reset_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["UsageWindow"]:
        if not isinstance(data, dict):
            return None
        return cls(
            used=float(data.get("used", 0.0)),
            limit=float(data.get("limit", 0.0)),
            percentage=float(data.get("percentage", 0.0)),
            reset_time=data.get("resetTime"),
        )


@dataclass(frozen=True)
class ClaudeQuotaSnapshot:
    connected: bool
    session: Optional[UsageWindow] = None
    weekly_total: Optional[UsageWindow] = None
    weekly_opus: Optional[UsageWindow] = None
    weekly_sonnet: Optional[UsageWindow] = None
    error: Optional[str] = None

    @classmethod
    def disconnected(cls, error: str) -> "ClaudeQuotaSnapshot":
        return cls(connected=False, error=error)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaudeQuotaSnapshot":
        return cls(
            connected=bool(data.get("connected", False)),
            session=UsageWindow.from_dict(data.get("session")),
            weekly_total=UsageWindow.from_dict(data.get("weeklyTotal")),
            weekly_opus=UsageWindow.from_dict(data.get("weeklyOpus")),
            weekly_sonnet=UsageWindow.from_dict(data.get("weeklySonnet")),
            error=data.get("error"),
        )

    @property
    def has_weekly(self) -> bool:
        return any((self.weekly_total, self.weekly_opus, self.weekly_sonnet))


@dataclass(frozen=True)
class CodexRateWindow:
    used_percent: float
    window_minutes: Optional[int] = None
    resets_at: Optional[int] = None


@dataclass(frozen=True)
class CodexCredits:
    has_credits: bool = False
    unlimited: bool = False
    balance: Optional[str] = None


@dataclass(frozen=True)
class CodexRateLimitSnapshot:
    connected: bool
    plan_type: Optional[str] = None
    primary: Optional[CodexRateWindow] = None
    secondary: Optional[CodexRateWindow] = None
    credits: Optional[CodexCredits] = None
    error: Optional[str] = None

    @classmethod
    def disconnected(cls, error: str) -> "CodexRateLimitSnapshot":
        return cls(connected=False, error=error)


@dataclass(frozen=True)
class CodexAccountSnapshot:
    connected: bool
    plan_type: Optional[str] = None
    account_id: Optional[str] = None
    subscription_until: Optional[str] = None
    email: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def disconnected(cls, error: str) -> "CodexAccountSnapshot":
        return cls(connected=False, error=error)


@dataclass(frozen=True)
class CodexStatsSnapshot:
    total_sessions: int = 0
    today_sessions: int = 0
    last_activity: Optional[str] = None

    @classmethod
    def empty(cls) -> "CodexStatsSnapshot":
        return cls()


@dataclass(frozen=True)
class UIPreferences:
    theme: Theme = Theme.LIGHT
    active_tab: Tab = Tab.CLAUDE
    dock_hidden: bool = False


__all__ = [
    "ClaudeQuotaSnapshot",
    "CodexAccountSnapshot",
    "CodexCredits",
    "CodexRateLimitSnapshot",
    "CodexRateWindow",
    "CodexStatsSnapshot",
    "THEME_LABELS",
    "Tab",
    "Theme",
    "UIPreferences",
    "UsageWindow",
]
