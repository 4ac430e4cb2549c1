from datetime import datetime, timezone

from quota_menubar.models import (
    ClaudeQuotaSnapshot,
    CodexAccountSnapshot,
    CodexCredits,
    CodexRateLimitSnapshot,
    CodexRateWindow,
    CodexStatsSnapshot,
    Tab,
    UsageWindow,
)
from quota_menubar.render import (
    codex_usage_level,
    progress_bar,
    render_claude,
    render_codex,
    render_panel,
)
from quota_menubar.sync import ClaudeSyncUnit, CodexSyncUnit
from quota_menubar.utils import (
    format_plan_type,
    format_reset_epoch,
    format_reset_time,
    format_subscription_date,
    format_window_label,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _texts(lines):
    return [line.text for line in lines]


def _window(pct: float) -> UsageWindow:
    return UsageWindow(used=pct, limit=100.0, percentage=pct)


def test_progress_bar_is_clamped() -> None:
    assert progress_bar(50, width=10) == "█████░░░░░"
    assert progress_bar(150, width=4) == "████"
    assert progress_bar(-5, width=4) == "░░░░"


def test_claude_session_card(client, timers, executor) -> None:
    client.quota = ClaudeQuotaSnapshot(connected=True, session=_window(42.0))
    unit = ClaudeSyncUnit(client, timers, executor)
    unit.fetch()

    texts = _texts(render_claude(unit))

    assert texts[0] == "CURRENT SESSION"
    assert texts[1] == "5-Hour Usage  Good  42%"
    assert "No weekly data" in texts


def test_claude_weekly_cards_and_levels(client, timers, executor) -> None:
    client.quota = ClaudeQuotaSnapshot(
        connected=True, weekly_opus=_window(85.0), weekly_sonnet=_window(55.0)
    )
    unit = ClaudeSyncUnit(client, timers, executor)
    unit.fetch()

    lines = render_claude(unit)
    texts = _texts(lines)

    assert "No session data" in texts
    assert "Opus (7-Day)  Critical  85%" in texts
    assert "Sonnet (7-Day)  Warning  55%" in texts
    assert not any(text.startswith("7-Day Usage") for text in texts)


def test_claude_error_banner(client, timers, executor) -> None:
    client.quota = ClaudeQuotaSnapshot.disconnected("Token expired")
    unit = ClaudeSyncUnit(client, timers, executor)
    unit.fetch()

    lines = render_claude(unit)

    assert [(line.text, line.style) for line in lines] == [("! Token expired", "error")]


def test_claude_loading_state(client, timers, executor) -> None:
    unit = ClaudeSyncUnit(client, timers, executor)
    unit.loading = True

    assert _texts(render_claude(unit)) == ["Loading Claude quota..."]


def test_codex_usage_section(client, timers, executor) -> None:
    client.limits = CodexRateLimitSnapshot(
        connected=True,
        plan_type="plus",
        primary=CodexRateWindow(used_percent=30.0, window_minutes=300),
        secondary=CodexRateWindow(used_percent=71.0, window_minutes=10080),
        credits=CodexCredits(has_credits=True, unlimited=True),
    )
    unit = CodexSyncUnit(client, timers, executor)
    unit.fetch()

    texts = _texts(render_codex(unit))

    assert texts[0] == "USAGE  [Plus]"
    assert "5h limit  30% used" in texts
    assert "Weekly limit  71% used" in texts
    assert "Credits  Unlimited" in texts
    assert "LOCAL STATS" in texts
    assert "Today  1 sessions" in texts


def test_codex_subscription_section_without_rate_limits(client, timers, executor) -> None:
    client.limits = CodexRateLimitSnapshot.disconnected("API error: 500")
    client.info = CodexAccountSnapshot(
        connected=True,
        plan_type="pro",
        subscription_until="2025-06-04T00:00:00Z",
        email="dev@example.com",
    )
    client.stats = CodexStatsSnapshot.empty()
    unit = CodexSyncUnit(client, timers, executor)
    unit.fetch()

    texts = _texts(render_codex(unit))

    assert texts[0] == "! API error: 500"
    assert "SUBSCRIPTION" in texts
    assert "Plan  Pro" in texts
    assert "Valid Until  Jun 4, 2025" in texts
    assert "Account  dev@example.com" in texts
    assert "LOCAL STATS" not in texts


def test_codex_not_connected(client, timers, executor) -> None:
    client.limits = CodexRateLimitSnapshot(connected=False)
    client.info = CodexAccountSnapshot(connected=False)
    unit = CodexSyncUnit(client, timers, executor)
    unit.fetch()

    assert _texts(render_codex(unit))[0] == "Codex not connected"


def test_codex_initial_loading(client, timers, executor) -> None:
    unit = CodexSyncUnit(client, timers, executor)

    assert _texts(render_codex(unit)) == ["Loading Codex info..."]


def test_panel_header_marks_active_tab_and_toast(client, timers, executor) -> None:
    claude = ClaudeSyncUnit(client, timers, executor)
    codex = CodexSyncUnit(client, timers, executor)
    codex.fetch()

    lines = render_panel(Tab.CODEX, claude, codex, toast="Failed to open dashboard")

    assert lines[0].style == "toast"
    assert lines[1].text == " ○ Claude   [● Codex]"


def test_reset_time_formatting() -> None:
    assert format_reset_time(None, NOW) == "Unknown"
    assert format_reset_time("garbage", NOW) == "Unknown"
    assert format_reset_time("2025-03-01T11:00:00Z", NOW) == "Soon"
    assert format_reset_time("2025-03-01T16:12:00Z", NOW) == "4h 12m"
    assert format_reset_time("2025-03-03T15:00:00+00:00", NOW) == "2d 3h"


def test_reset_epoch_formatting() -> None:
    base = int(NOW.timestamp())
    assert format_reset_epoch(None, NOW) == ""
    assert format_reset_epoch(base - 10, NOW) == "now"
    assert format_reset_epoch(base + 45 * 60, NOW) == "45m"
    assert format_reset_epoch(base + 3 * 3600, NOW) == "3h"
    assert format_reset_epoch(base + 5 * 86400, NOW) == "5d"


def test_labels() -> None:
    assert format_window_label(None) == "Usage"
    assert format_window_label(45) == "45m"
    assert format_window_label(300) == "5h"
    assert format_window_label(10080) == "Weekly"
    assert format_window_label(2880) == "2d"
    assert format_plan_type(None) == "Unknown"
    assert format_plan_type("team") == "Team"
    assert format_subscription_date("not a date") == "not a date"


def test_codex_levels_use_their_own_thresholds() -> None:
    assert codex_usage_level(74.9) == "good"
    assert codex_usage_level(75) == "warning"
    assert codex_usage_level(89) == "warning"
    assert codex_usage_level(90) == "critical"


def test_codex_rate_cards_styled_by_codex_thresholds(client, timers, executor) -> None:
    client.limits = CodexRateLimitSnapshot(
        connected=True,
        primary=CodexRateWindow(used_percent=60.0, window_minutes=300),
        secondary=CodexRateWindow(used_percent=80.0, window_minutes=10080),
    )
    unit = CodexSyncUnit(client, timers, executor)
    unit.fetch()

    styles = {line.text: line.style for line in render_codex(unit)}

    assert styles["5h limit  60% used"] == "good"
    assert styles["Weekly limit  80% used"] == "warning"
