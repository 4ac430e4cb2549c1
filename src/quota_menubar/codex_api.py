from __future__ import annotations

import base64
import json
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import requests

from .models import (
    CodexAccountSnapshot,
    CodexCredits,
    CodexRateLimitSnapshot,
    CodexRateWindow,
    CodexStatsSnapshot,
)
from .paths import AUTH_FILENAME, HISTORY_FILENAME
from .utils import ProviderError, clamp, logger

USAGE_URL = "https://chatgpt.com/backend-api/wham/usage"
AUTH_CLAIM = "https://api.openai.com/auth"
NOT_CONFIGURED = "Codex not configured. Please run 'codex' to login."
TOKEN_EXPIRED = "Token expired. Please run 'codex' to re-login."


def decode_jwt_payload(token: str) -> Optional[Dict[str, Any]]:
    parts = token.split(".")
    if len(parts) != 3:
        return None
    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        decoded = base64.urlsafe_b64decode(payload.encode("ascii"))
        data = json.loads(decoded.decode("utf-8"))
    except (ValueError, UnicodeError):
        return None
    return data if isinstance(data, dict) else None


def read_auth_json(home: Path) -> Dict[str, Any]:
    auth_file = home / AUTH_FILENAME
    if not auth_file.exists():
        raise ProviderError(NOT_CONFIGURED)
    try:
        content = auth_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProviderError(f"Failed to read auth.json: {exc}") from exc
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise ProviderError(f"Failed to parse auth.json: {exc}") from exc
    if not isinstance(data, dict):
        raise ProviderError("Failed to parse auth.json: unexpected payload")
    return data


def _tokens(auth: Dict[str, Any]) -> Dict[str, Any]:
    tokens = auth.get("tokens")
    return tokens if isinstance(tokens, dict) else {}


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def fetch_account(home: Path) -> CodexAccountSnapshot:
    try:
        auth = read_auth_json(home)
    except ProviderError as exc:
        return CodexAccountSnapshot.disconnected(str(exc))

    id_token = _tokens(auth).get("id_token")
    if not isinstance(id_token, str):
        return CodexAccountSnapshot.disconnected("No id_token found in auth.json")
    payload = decode_jwt_payload(id_token)
    if payload is None:
        return CodexAccountSnapshot.disconnected("Failed to decode JWT token")

    claim = payload.get(AUTH_CLAIM)
    claim = claim if isinstance(claim, dict) else {}
    return CodexAccountSnapshot(
        connected=True,
        plan_type=_str_or_none(claim.get("chatgpt_plan_type")),
        account_id=_str_or_none(claim.get("chatgpt_account_id")),
        subscription_until=_str_or_none(claim.get("chatgpt_subscription_active_until")),
        email=_str_or_none(payload.get("email")),
    )


def parse_rate_window(window: Any) -> Optional[CodexRateWindow]:
    if not isinstance(window, dict):
        return None
    try:
        used = float(window.get("used_percent") or 0.0)
    except (TypeError, ValueError):
        used = 0.0
    seconds = window.get("limit_window_seconds")
    minutes = (int(seconds) + 59) // 60 if isinstance(seconds, (int, float)) else None
    reset_at = window.get("reset_at")
    return CodexRateWindow(
        used_percent=clamp(used, 0.0, 100.0),
        window_minutes=minutes,
        resets_at=int(reset_at) if isinstance(reset_at, (int, float)) else None,
    )


def parse_credits(credits: Any) -> Optional[CodexCredits]:
    if not isinstance(credits, dict):
        return None
    return CodexCredits(
        has_credits=bool(credits.get("has_credits", False)),
        unlimited=bool(credits.get("unlimited", False)),
        balance=_str_or_none(credits.get("balance")),
    )


def parse_usage_payload(data: Dict[str, Any]) -> CodexRateLimitSnapshot:
    rate_limit = data.get("rate_limit")
    rate_limit = rate_limit if isinstance(rate_limit, dict) else {}
    return CodexRateLimitSnapshot(
        connected=True,
        plan_type=_str_or_none(data.get("plan_type")),
        primary=parse_rate_window(rate_limit.get("primary_window")),
        secondary=parse_rate_window(rate_limit.get("secondary_window")),
        credits=parse_credits(data.get("credits")),
    )


def fetch_rate_limits(
    home: Path,
    session: requests.Session,
    timeout: float = 10.0,
) -> CodexRateLimitSnapshot:
    try:
        auth = read_auth_json(home)
    except ProviderError as exc:
        return CodexRateLimitSnapshot.disconnected(str(exc))

    tokens = _tokens(auth)
    access_token = tokens.get("access_token")
    if not isinstance(access_token, str):
        return CodexRateLimitSnapshot.disconnected("No access_token found in auth.json")

    headers = {
        "Authorization": f"Bearer {access_token}",
        "User-Agent": "codex-cli",
    }
    id_token = tokens.get("id_token")
    payload = decode_jwt_payload(id_token) if isinstance(id_token, str) else None
    if payload:
        claim = payload.get(AUTH_CLAIM)
        account_id = claim.get("chatgpt_account_id") if isinstance(claim, dict) else None
        if isinstance(account_id, str):
            headers["ChatGPT-Account-Id"] = account_id

    try:
        response = session.get(USAGE_URL, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        return CodexRateLimitSnapshot.disconnected(f"Network error: {exc}")

    if response.status_code in (401, 403):
        return CodexRateLimitSnapshot.disconnected(TOKEN_EXPIRED)
    if not response.ok:
        return CodexRateLimitSnapshot.disconnected(f"API error: {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        return CodexRateLimitSnapshot.disconnected(f"Failed to parse response: {exc}")
    if not isinstance(data, dict):
        return CodexRateLimitSnapshot.disconnected("Failed to parse response: unexpected payload")
    return parse_usage_payload(data)


@dataclass
class HistoryCache:
    history_file: Path
    file_size: int
    modified_at: float
    day: date
    total_sessions: int
    today_sessions: int
    last_ts: Optional[int]


class HistoryStats:
    """Counts Codex sessions in ``history.jsonl``.

    The file is append-only, so while it only grows on the same UTC day the
    scan resumes from the previous end offset instead of re-reading it.
    """

    def __init__(self) -> None:
        self._cache: Optional[HistoryCache] = None
        self._lock = threading.Lock()

    def collect(self, home: Path, today: Optional[date] = None) -> CodexStatsSnapshot:
        with self._lock:
            try:
                return self._collect(home / HISTORY_FILENAME, today)
            except OSError as exc:
                logger.debug("codex history unreadable: %s", exc)
                return CodexStatsSnapshot.empty()

    def _collect(self, history_file: Path, today: Optional[date]) -> CodexStatsSnapshot:
        if not history_file.exists():
            self._cache = None
            return CodexStatsSnapshot.empty()

        stat = history_file.stat()
        today = today or datetime.now(timezone.utc).date()
        cache = self._cache
        offset = 0
        total = today_count = 0
        last_ts: Optional[int] = None
        if (
            cache is not None
            and cache.history_file == history_file
            and cache.day == today
            and stat.st_size >= cache.file_size
            and stat.st_mtime >= cache.modified_at
        ):
            offset = cache.file_size
            total = cache.total_sessions
            today_count = cache.today_sessions
            last_ts = cache.last_ts

        with history_file.open("rb") as handle:
            handle.seek(offset)
            total, today_count, last_ts = _scan_lines(
                handle, today, total, today_count, last_ts
            )
            end = handle.tell()

        self._cache = HistoryCache(
            history_file=history_file,
            file_size=end,
            modified_at=stat.st_mtime,
            day=today,
            total_sessions=total,
            today_sessions=today_count,
            last_ts=last_ts,
        )
        return CodexStatsSnapshot(
            total_sessions=total,
            today_sessions=today_count,
            last_activity=_format_last_activity(last_ts),
        )


def _scan_lines(
    lines: Iterable[bytes],
    today: date,
    total: int,
    today_count: int,
    last_ts: Optional[int],
) -> tuple[int, int, Optional[int]]:
    for raw in lines:
        try:
            entry = json.loads(raw)
        except ValueError:
            continue
        total += 1
        ts = entry.get("ts") if isinstance(entry, dict) else None
        if not isinstance(ts, int) or isinstance(ts, bool):
            continue
        try:
            when = datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            continue
        if when.date() == today:
            today_count += 1
        if last_ts is None or ts > last_ts:
            last_ts = ts
    return total, today_count, last_ts


def _format_last_activity(last_ts: Optional[int]) -> Optional[str]:
    if last_ts is None:
        return None
    return datetime.fromtimestamp(last_ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


__all__ = [
    "HistoryStats",
    "decode_jwt_payload",
    "fetch_account",
    "fetch_rate_limits",
    "parse_rate_window",
    "parse_usage_payload",
    "read_auth_json",
]
