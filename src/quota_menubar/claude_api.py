from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import requests

from .models import ClaudeQuotaSnapshot, UsageWindow
from .paths import discover_credential_files
from .utils import ProviderError, logger

USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
ANTHROPIC_BETA = "oauth-2025-04-20"
KEYCHAIN_SERVICES = (
    "Claude Code-credentials",
    "claude-credentials",
    "Claude-credentials",
    "claudecode-credentials",
)
TOKEN_MISSING = "OAuth token not found. Please ensure you are logged into Claude Code."
TOKEN_EXPIRED = "Token expired. Please re-login to Claude Code."


def _token_from_credentials(raw: str) -> Optional[str]:
    try:
        creds = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(creds, dict):
        return None
    oauth = creds.get("claudeAiOauth") or {}
    token = oauth.get("accessToken") if isinstance(oauth, dict) else None
    return token if isinstance(token, str) and token else None


def _keychain_token(services: Iterable[str]) -> Optional[str]:
    for service in services:
        try:
            result = subprocess.run(
                ["security", "find-generic-password", "-s", service, "-w"],
                capture_output=True,
                text=True,
                check=False,
                timeout=5,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return None
        if result.returncode != 0:
            continue
        token = _token_from_credentials(result.stdout.strip())
        if token:
            return token
    return None


def load_oauth_token(config_dir: Optional[Path] = None) -> str:
    token = _keychain_token(KEYCHAIN_SERVICES)
    if token:
        return token
    for path in discover_credential_files(config_dir):
        try:
            token = _token_from_credentials(path.read_text(encoding="utf-8"))
        except OSError:
            continue
        if token:
            logger.debug("using Claude credentials from %s", path)
            return token
    raise ProviderError(TOKEN_MISSING)


def parse_quota_window(value: Any) -> Optional[UsageWindow]:
    if not isinstance(value, dict):
        return None
    try:
        utilization = float(value.get("utilization") or 0.0)
    except (TypeError, ValueError):
        utilization = 0.0
    resets_at = value.get("resets_at")
    return UsageWindow(
        used=utilization,
        limit=100.0,
        percentage=utilization,
        reset_time=resets_at if isinstance(resets_at, str) else None,
    )


def parse_quota_payload(data: Dict[str, Any]) -> ClaudeQuotaSnapshot:
    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message") or "API error"
        return ClaudeQuotaSnapshot.disconnected(f"{message} (Token may be expired)")
    return ClaudeQuotaSnapshot(
        connected=True,
        session=parse_quota_window(data.get("five_hour")),
        weekly_total=parse_quota_window(data.get("seven_day")),
        weekly_opus=parse_quota_window(data.get("seven_day_opus")),
        weekly_sonnet=parse_quota_window(data.get("seven_day_sonnet")),
    )


def fetch_quota(
    session: requests.Session,
    timeout: float = 10.0,
    config_dir: Optional[Path] = None,
) -> ClaudeQuotaSnapshot:
    try:
        token = load_oauth_token(config_dir)
    except ProviderError as exc:
        return ClaudeQuotaSnapshot.disconnected(str(exc))

    try:
        response = session.get(
            USAGE_URL,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {token}",
                "anthropic-beta": ANTHROPIC_BETA,
            },
            timeout=timeout,
        )
    except requests.RequestException as exc:
        return ClaudeQuotaSnapshot.disconnected(f"Network error: {exc}")

    if response.status_code in (401, 403):
        return ClaudeQuotaSnapshot.disconnected(TOKEN_EXPIRED)
    if not response.ok:
        return ClaudeQuotaSnapshot.disconnected(f"API error: {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        return ClaudeQuotaSnapshot.disconnected(f"Failed to parse response: {exc}")
    if not isinstance(data, dict):
        return ClaudeQuotaSnapshot.disconnected("Failed to parse response: unexpected payload")
    return parse_quota_payload(data)


__all__ = [
    "fetch_quota",
    "load_oauth_token",
    "parse_quota_payload",
    "parse_quota_window",
]
