import json

import pytest
import requests

from quota_menubar import claude_api
from quota_menubar.claude_api import (
    TOKEN_EXPIRED,
    TOKEN_MISSING,
    fetch_quota,
    load_oauth_token,
    parse_quota_payload,
)
from quota_menubar.utils import ProviderError

USAGE_PAYLOAD = {
    "five_hour": {"utilization": 42.0, "resets_at": "2025-03-01T17:00:00Z"},
    "seven_day": {"utilization": 18.5, "resets_at": "2025-03-05T00:00:00Z"},
    "seven_day_opus": None,
    "seven_day_sonnet": {"utilization": 7},
}


def _response(status: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return response


class FakeSession:
    def __init__(self, result):
        self.result = result
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append((url, headers, timeout))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def token(monkeypatch):
    monkeypatch.setattr(claude_api, "load_oauth_token", lambda config_dir=None: "sk-test")


def test_parse_payload_maps_windows() -> None:
    snapshot = parse_quota_payload(USAGE_PAYLOAD)

    assert snapshot.connected is True
    assert snapshot.session.percentage == 42.0
    assert snapshot.session.limit == 100.0
    assert snapshot.session.reset_time == "2025-03-01T17:00:00Z"
    assert snapshot.weekly_total.percentage == 18.5
    assert snapshot.weekly_opus is None
    assert snapshot.weekly_sonnet.percentage == 7.0
    assert snapshot.weekly_sonnet.reset_time is None


def test_parse_payload_error_object() -> None:
    snapshot = parse_quota_payload({"error": {"message": "invalid token"}})

    assert snapshot.connected is False
    assert snapshot.error == "invalid token (Token may be expired)"


def test_fetch_sends_oauth_headers(token) -> None:
    session = FakeSession(_response(200, USAGE_PAYLOAD))

    snapshot = fetch_quota(session, timeout=3.0)

    assert snapshot.session.percentage == 42.0
    ((url, headers, timeout),) = session.requests
    assert url == claude_api.USAGE_URL
    assert headers["Authorization"] == "Bearer sk-test"
    assert headers["anthropic-beta"] == "oauth-2025-04-20"
    assert timeout == 3.0


@pytest.mark.parametrize(
    "status, expected",
    [(401, TOKEN_EXPIRED), (403, TOKEN_EXPIRED), (500, "API error: 500")],
)
def test_fetch_http_failures(token, status, expected) -> None:
    snapshot = fetch_quota(FakeSession(_response(status, {})))

    assert snapshot.connected is False
    assert snapshot.error == expected


def test_fetch_network_error(token) -> None:
    snapshot = fetch_quota(FakeSession(requests.ConnectionError("refused")))

    assert snapshot.error == "Network error: refused"


def test_fetch_bad_json(token) -> None:
    snapshot = fetch_quota(FakeSession(_response(200, b"<html>")))

    assert snapshot.error.startswith("Failed to parse response:")


def test_fetch_without_token(monkeypatch) -> None:
    def missing(config_dir=None):
        raise ProviderError(TOKEN_MISSING)

    monkeypatch.setattr(claude_api, "load_oauth_token", missing)
    session = FakeSession(_response(200, USAGE_PAYLOAD))

    snapshot = fetch_quota(session)

    assert snapshot.error == TOKEN_MISSING
    assert session.requests == []


def test_token_read_from_credentials_file(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(claude_api, "_keychain_token", lambda services: None)
    monkeypatch.delenv("CLAUDE_CONFIG_DIR", raising=False)
    (tmp_path / ".credentials.json").write_text(
        json.dumps({"claudeAiOauth": {"accessToken": "from-file"}})
    )

    assert load_oauth_token(tmp_path) == "from-file"


def test_keychain_token_preferred(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(claude_api, "_keychain_token", lambda services: "from-keychain")

    assert load_oauth_token(tmp_path) == "from-keychain"


def test_missing_token_raises(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(claude_api, "_keychain_token", lambda services: None)
    monkeypatch.setattr(claude_api, "discover_credential_files", lambda explicit: [])

    with pytest.raises(ProviderError, match="OAuth token not found"):
        load_oauth_token(tmp_path)
