from __future__ import annotations

from typing import List, NamedTuple, Optional

from .models import (
    ClaudeQuotaSnapshot,
    CodexCredits,
    CodexRateWindow,
    Tab,
    UsageWindow,
)
from .sync import ClaudeSyncUnit, CodexSyncUnit
from .tray import usage_level
from .utils import (
    clamp,
    format_plan_type,
    format_reset_epoch,
    format_reset_time,
    format_subscription_date,
    format_window_label,
    round_percent,
)

BAR_WIDTH = 20
STATUS_LABELS = {"critical": "Critical", "warning": "Warning", "good": "Good"}
CODEX_CRITICAL = 90
CODEX_WARNING = 75
CONNECTED_DOT = "●"
DISCONNECTED_DOT = "○"


class PanelLine(NamedTuple):
    text: str
    style: str = "body"


def progress_bar(percentage: float, width: int = BAR_WIDTH) -> str:
    filled = int(round(clamp(percentage, 0, 100) / 100 * width))
    return "█" * filled + "░" * (width - filled)


def quota_card(label: str, window: UsageWindow) -> List[PanelLine]:
    percent = round_percent(window.percentage)
    level = usage_level(percent)
    return [
        PanelLine(f"{label}  {STATUS_LABELS[level]}  {percent}%", level),
        PanelLine(progress_bar(percent), level),
        PanelLine(f"↻ Resets in {format_reset_time(window.reset_time)}", "muted"),
    ]


def tab_header(active_tab: Tab, claude_connected: bool, codex_connected: bool) -> PanelLine:
    parts = []
    for tab, label, connected in (
        (Tab.CLAUDE, "Claude", claude_connected),
        (Tab.CODEX, "Codex", codex_connected),
    ):
        dot = CONNECTED_DOT if connected else DISCONNECTED_DOT
        text = f"{dot} {label}"
        parts.append(f"[{text}]" if tab == active_tab else f" {text} ")
    return PanelLine("  ".join(parts), "title")


def error_banner(message: str) -> PanelLine:
    return PanelLine(f"! {message}", "error")


def render_claude(unit: ClaudeSyncUnit) -> List[PanelLine]:
    lines: List[PanelLine] = []
    quota: Optional[ClaudeQuotaSnapshot] = unit.data
    if unit.loading and quota is None:
        lines.append(PanelLine("Loading Claude quota...", "muted"))
    if unit.error:
        lines.append(error_banner(unit.error))
        return lines
    if quota is None:
        if not unit.loading:
            lines.append(PanelLine("Unable to load quota data", "muted"))
            lines.append(PanelLine("Try Again from Refresh", "muted"))
        return lines

    lines.append(PanelLine("CURRENT SESSION", "section"))
    if quota.session is not None:
        lines.extend(quota_card("5-Hour Usage", quota.session))
    else:
        lines.append(PanelLine("No session data", "muted"))

    lines.append(PanelLine("WEEKLY LIMITS", "section"))
    for label, window in (
        ("7-Day Usage", quota.weekly_total),
        ("Opus (7-Day)", quota.weekly_opus),
        ("Sonnet (7-Day)", quota.weekly_sonnet),
    ):
        if window is not None:
            lines.extend(quota_card(label, window))
    if not quota.has_weekly:
        lines.append(PanelLine("No weekly data", "muted"))
    return lines


def codex_usage_level(used_percent: float) -> str:
    if used_percent >= CODEX_CRITICAL:
        return "critical"
    if used_percent >= CODEX_WARNING:
        return "warning"
    return "good"


def _rate_card(window: CodexRateWindow) -> List[PanelLine]:
    percent = round_percent(window.used_percent)
    level = codex_usage_level(window.used_percent)
    lines = [
        PanelLine(f"{format_window_label(window.window_minutes)} limit  {percent}% used", level),
        PanelLine(progress_bar(window.used_percent), level),
    ]
    if window.resets_at:
        lines.append(PanelLine(f"Resets in {format_reset_epoch(window.resets_at)}", "muted"))
    return lines


def _credits_line(credits: CodexCredits) -> PanelLine:
    value = "Unlimited" if credits.unlimited else (credits.balance or "0")
    return PanelLine(f"Credits  {value}")


def render_codex(unit: CodexSyncUnit) -> List[PanelLine]:
    limits = unit.limits
    account = unit.account
    stats = unit.stats
    if unit.loading and account is None and limits is None:
        return [PanelLine("Loading Codex info...", "muted")]

    lines: List[PanelLine] = []
    if unit.error:
        lines.append(error_banner(unit.error))

    connected = bool((limits and limits.connected) or (account and account.connected))
    if connected:
        has_rate_limits = limits is not None and (limits.primary or limits.secondary)
        if has_rate_limits:
            lines.append(PanelLine(f"USAGE  [{format_plan_type(unit.plan_type)}]", "section"))
            for window in (limits.primary, limits.secondary):
                if window is not None:
                    lines.extend(_rate_card(window))
            if limits.credits is not None and limits.credits.has_credits:
                lines.append(_credits_line(limits.credits))
        elif account is not None:
            lines.append(PanelLine("SUBSCRIPTION", "section"))
            lines.append(PanelLine(f"Plan  {format_plan_type(unit.plan_type)}"))
            lines.append(PanelLine(f"Valid Until  {format_subscription_date(account.subscription_until)}"))
            if account.email:
                lines.append(PanelLine(f"Account  {account.email}"))

        if stats is not None and (stats.total_sessions > 0 or stats.today_sessions > 0):
            lines.append(PanelLine("LOCAL STATS", "section"))
            lines.append(PanelLine(f"Today  {stats.today_sessions} sessions"))
            lines.append(PanelLine(f"Total  {stats.total_sessions} sessions"))
    elif not unit.error:
        lines.append(PanelLine("Codex not connected", "muted"))
        lines.append(PanelLine("Run 'codex' in terminal to login", "muted"))
    return lines


def render_panel(
    active_tab: Tab,
    claude: ClaudeSyncUnit,
    codex: CodexSyncUnit,
    toast: Optional[str] = None,
) -> List[PanelLine]:
    claude_connected = bool(claude.data and claude.data.connected)
    lines: List[PanelLine] = []
    if toast:
        lines.append(PanelLine(toast, "toast"))
    lines.append(tab_header(active_tab, claude_connected, codex.connected))
    if active_tab == Tab.CLAUDE:
        lines.extend(render_claude(claude))
    else:
        lines.extend(render_codex(codex))
    return lines


__all__ = [
    "PanelLine",
    "codex_usage_level",
    "progress_bar",
    "quota_card",
    "render_claude",
    "render_codex",
    "render_panel",
    "tab_header",
]
