from __future__ import annotations

import logging
import math
import os
from datetime import datetime, timezone
from typing import Optional

DEBUG_MODE = os.getenv("QUOTA_MENUBAR_DEBUG")
logger = logging.getLogger("quota_menubar")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[quota-menubar] %(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
logger.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)


class ProviderError(Exception):
    """Local credential or file problem; always reported as a snapshot error."""


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        return None


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_percent(value: float) -> int:
    # Half-up, so 42.5 reads as 43 in every view.
    return int(math.floor(value + 0.5))


def format_reset_time(reset_time: Optional[str], now: Optional[datetime] = None) -> str:
    """Render an ISO reset timestamp as ``"2d 3h"`` / ``"4h 12m"``."""

    if not reset_time:
        return "Unknown"
    reset = parse_timestamp(reset_time)
    if reset is None:
        return "Unknown"
    now = now or datetime.now(timezone.utc)
    seconds = int((reset - now).total_seconds())
    if seconds <= 0:
        return "Soon"
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours > 24:
        return f"{hours // 24}d {hours % 24}h"
    return f"{hours}h {minutes}m"


def format_reset_epoch(resets_at: Optional[int], now: Optional[datetime] = None) -> str:
    """Render a unix reset time with a single coarse unit (``"45m"``, ``"3h"``)."""

    if not resets_at:
        return ""
    now = now or datetime.now(timezone.utc)
    reset = datetime.fromtimestamp(resets_at, tz=timezone.utc)
    diff = (reset - now).total_seconds()
    if diff <= 0:
        return "now"
    minutes = round(diff / 60)
    if minutes < 60:
        return f"{minutes}m"
    hours = round(minutes / 60)
    if hours < 24:
        return f"{hours}h"
    return f"{round(hours / 24)}d"


def format_window_label(minutes: Optional[int]) -> str:
    if not minutes:
        return "Usage"
    if minutes >= 1440:
        days = round(minutes / 1440)
        return "Weekly" if days == 7 else f"{days}d"
    if minutes >= 60:
        return f"{round(minutes / 60)}h"
    return f"{minutes}m"


def format_plan_type(plan_type: Optional[str]) -> str:
    if not plan_type:
        return "Unknown"
    return plan_type[:1].upper() + plan_type[1:]


def format_subscription_date(value: Optional[str]) -> str:
    if not value:
        return "Unknown"
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


__all__ = [
    "ProviderError",
    "clamp",
    "format_plan_type",
    "format_reset_epoch",
    "format_reset_time",
    "format_subscription_date",
    "format_window_label",
    "logger",
    "parse_timestamp",
    "round_percent",
]
