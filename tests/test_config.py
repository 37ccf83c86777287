"""Tests for callspec.config -- XDG paths, project config, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from callspec.config import get_data_dir, load_project_config, parse_variables, resolve_config
from callspec.exceptions import ConfigError, InvalidUsageError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CALLSPEC_OPENAPI", "CALLSPEC_BASE_URL", "CALLSPEC_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestDataDir:
    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("callspec.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "callspec"
        assert result.is_dir()

    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("callspec.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

        assert get_data_dir() == tmp_path / "data" / "callspec"

    def test_non_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("callspec.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".callspec"


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing(self, tmp_path: Path) -> None:
        assert load_project_config(tmp_path) is None

    def test_loaded(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "callspec.json", {"openapi": "api.yaml"})
        assert load_project_config(tmp_path) == {"openapi": "api.yaml"}

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "callspec.json").write_text("{oops")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config(tmp_path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "callspec.json", ["api.yaml"])
        with pytest.raises(ConfigError, match="expected an object"):
            load_project_config(tmp_path)


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, tmp_path: Path) -> None:
        config = resolve_config(project_dir=tmp_path)
        assert config.openapi is None
        assert config.base_url is None
        assert config.timeout == 30.0
        assert config.verify_ssl is True
        assert config.variables == {}

    def test_project_file(self, tmp_path: Path) -> None:
        _write_json(
            tmp_path / "callspec.json",
            {"openapi": "api.yaml", "timeout": 5, "variables": {"tenant": "acme"}},
        )
        config = resolve_config(project_dir=tmp_path)
        assert config.openapi == "api.yaml"
        assert config.timeout == 5.0
        assert config.variables == {"tenant": "acme"}

    def test_env_over_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(tmp_path / "callspec.json", {"openapi": "api.yaml", "base_url": "http://a"})
        monkeypatch.setenv("CALLSPEC_OPENAPI", "env.yaml")
        monkeypatch.setenv("CALLSPEC_TIMEOUT", "2.5")
        config = resolve_config(project_dir=tmp_path)
        assert config.openapi == "env.yaml"
        assert config.base_url == "http://a"
        assert config.timeout == 2.5

    def test_cli_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CALLSPEC_OPENAPI", "env.yaml")
        monkeypatch.setenv("CALLSPEC_BASE_URL", "http://env")
        config = resolve_config(
            cli_openapi="cli.yaml", cli_base_url="http://cli", cli_timeout=1, project_dir=tmp_path
        )
        assert config.openapi == "cli.yaml"
        assert config.base_url == "http://cli"
        assert config.timeout == 1.0

    def test_variables_merged(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "callspec.json", {"variables": {"a": "1", "b": "2"}})
        config = resolve_config(cli_variables={"b": "cli", "c": "3"}, project_dir=tmp_path)
        assert config.variables == {"a": "1", "b": "cli", "c": "3"}

    def test_invalid_timeout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CALLSPEC_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config(project_dir=tmp_path)

    def test_non_positive_timeout(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            resolve_config(cli_timeout=0, project_dir=tmp_path)


class TestParseVariables:
    def test_pairs(self) -> None:
        assert parse_variables(["a=1", "b = x=y", "empty="]) == {"a": "1", "b": " x=y", "empty": ""}

    def test_missing_equals(self) -> None:
        with pytest.raises(InvalidUsageError, match="Expecting NAME=VALUE"):
            parse_variables(["novalue"])

    def test_empty_name(self) -> None:
        with pytest.raises(InvalidUsageError):
            parse_variables(["=1"])
