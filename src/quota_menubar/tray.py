from __future__ import annotations

from typing import Optional, Tuple

from .host import Host
from .models import ClaudeQuotaSnapshot, Tab
from .utils import clamp, logger, round_percent

GREEN_DOT = "🟢"
ORANGE_DOT = "🟠"
RED_DOT = "🔴"


def claude_tray_percent(snapshot: Optional[ClaudeQuotaSnapshot]) -> Optional[float]:
    """Weekly total, else the busier of Opus/Sonnet weekly, else the session."""

    if snapshot is None:
        return None
    if snapshot.weekly_total is not None:
        return snapshot.weekly_total.percentage
    weekly = [
        window.percentage
        for window in (snapshot.weekly_opus, snapshot.weekly_sonnet)
        if window is not None
    ]
    if weekly:
        return max(weekly)
    if snapshot.session is not None:
        return snapshot.session.percentage
    return None


def tray_percentage(
    active_tab: Tab,
    claude: Optional[ClaudeQuotaSnapshot],
    codex_used_percent: Optional[float],
) -> int:
    if active_tab == Tab.CLAUDE:
        value = claude_tray_percent(claude)
    else:
        value = codex_used_percent
    if value is None:
        return 0
    return round_percent(value)


def usage_level(percentage: float) -> str:
    if percentage >= 80:
        return "critical"
    if percentage >= 50:
        return "warning"
    return "good"


def tray_title(percentage: int) -> str:
    dot = {"critical": RED_DOT, "warning": ORANGE_DOT}.get(usage_level(percentage), GREEN_DOT)
    return f"{dot} {int(clamp(percentage, 0, 100))}%"


class TrayIndicator:
    """Recomputes the tray number whenever one of its inputs changes."""

    def __init__(self, host: Host):
        self._host = host
        self._inputs: Optional[Tuple[Tab, Optional[ClaudeQuotaSnapshot], Optional[float]]] = None
        self.value: Optional[int] = None

    def update(
        self,
        active_tab: Tab,
        claude: Optional[ClaudeQuotaSnapshot],
        codex_used_percent: Optional[float],
    ) -> Optional[int]:
        inputs = (active_tab, claude, codex_used_percent)
        if inputs == self._inputs:
            return None
        self._inputs = inputs
        self.value = tray_percentage(active_tab, claude, codex_used_percent)
        try:
            self._host.update_tray(self.value)
        except Exception as exc:
            logger.error("Failed to update tray icon: %s", exc)
        return self.value


__all__ = [
    "TrayIndicator",
    "claude_tray_percent",
    "tray_percentage",
    "tray_title",
    "usage_level",
]
