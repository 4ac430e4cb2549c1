import json
from pathlib import Path

from quota_menubar.config import MenubarConfig, load_config
from quota_menubar.paths import codex_home, discover_credential_files


def test_missing_file_gives_defaults(tmp_path) -> None:
    config = load_config(tmp_path / "config.json")

    assert config == MenubarConfig()
    assert config.claude_refresh_interval == 60.0
    assert config.codex_refresh_interval == 900.0


def test_intervals_have_floors(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"claude_refresh_interval": 1, "codex_refresh_interval": 2}))

    config = load_config(path)

    assert config.claude_refresh_interval == 5.0
    assert config.codex_refresh_interval == 30.0


def test_bad_values_fall_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"request_timeout": "soon"}))

    assert load_config(path) == MenubarConfig()


def test_corrupt_file_gives_defaults(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{oops")

    assert load_config(path) == MenubarConfig()


def test_paths_are_expanded(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"codex_home": "/opt/codex", "claude_config_dir": "  ", "panel_width": 420}))

    config = load_config(path)

    assert config.codex_home == Path("/opt/codex")
    assert config.claude_config_dir is None
    assert config.panel_width == 420


def test_codex_home_resolution(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CODEX_HOME", str(tmp_path))
    assert codex_home() == tmp_path
    assert codex_home(Path("/explicit")) == Path("/explicit")


def test_credential_files_explicit_dir_first(monkeypatch, tmp_path) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"
    for directory in (first, second):
        directory.mkdir()
        (directory / ".credentials.json").write_text("{}")
    monkeypatch.setenv("CLAUDE_CONFIG_DIR", f"{second},{first}")

    files = discover_credential_files(first)

    assert files[:2] == [first / ".credentials.json", second / ".credentials.json"]
