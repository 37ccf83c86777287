"""Run configuration with XDG paths and precedence resolution.

This module handles all configuration for a callspec run:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.callspec/`` on macOS and Windows. Only the data directory is used,
  for crash logs written by :func:`callspec.app.main`.
* **Project config** -- an optional ``./callspec.json`` file holding the
  same keys as :class:`~callspec.models.RunConfig`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and project config into the effective
  :class:`~callspec.models.RunConfig`.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from callspec.exceptions import ConfigError, InvalidUsageError
from callspec.models import RunConfig

_APP_NAME = "callspec"
_PROJECT_CONFIG_FILENAME = "callspec.json"

ENV_OPENAPI = "CALLSPEC_OPENAPI"
ENV_BASE_URL = "CALLSPEC_BASE_URL"
ENV_TIMEOUT = "CALLSPEC_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/callspec/`` (default ``~/.local/share/callspec/``).
    On macOS/Windows: ``~/.callspec/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``callspec.json``.

    Args:
        directory: Directory to look in. Defaults to the current directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid project config at {path}: expected an object, got {type(data).__name__}"
        )
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_openapi: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    cli_variables: Optional[dict[str, Any]] = None,
    project_dir: Optional[Path] = None,
) -> RunConfig:
    """Resolve the run configuration with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments, or pytest options)
        2. Environment variables (``CALLSPEC_OPENAPI``, ``CALLSPEC_BASE_URL``,
           ``CALLSPEC_TIMEOUT``)
        3. Project config (``./callspec.json``)
        4. Defaults

    Variables are merged rather than replaced: CLI values override project
    values with the same name.

    Raises:
        ConfigError: If a value fails validation (e.g. a non-numeric
            ``CALLSPEC_TIMEOUT``).
    """
    # 4 + 3. Defaults overlaid with the project file
    merged: dict[str, Any] = dict(load_project_config(project_dir) or {})

    # 2. Environment variables
    env_openapi = os.environ.get(ENV_OPENAPI)
    if env_openapi:
        merged["openapi"] = env_openapi
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        merged["base_url"] = env_base_url
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        merged["timeout"] = env_timeout

    # 1. CLI flags (highest precedence)
    if cli_openapi is not None:
        merged["openapi"] = cli_openapi
    if cli_base_url is not None:
        merged["base_url"] = cli_base_url
    if cli_timeout is not None:
        merged["timeout"] = cli_timeout
    if cli_variables:
        merged["variables"] = {**merged.get("variables", {}), **cli_variables}

    try:
        return RunConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def parse_variables(assignments: list[str]) -> dict[str, str]:
    """Parse ``NAME=VALUE`` strings from ``--var`` options.

    Raises:
        InvalidUsageError: If an assignment has no ``=`` or an empty name.
    """
    variables: dict[str, str] = {}
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        if not sep or not name.strip():
            raise InvalidUsageError(
                f"Invalid variable '{assignment}'. Expecting NAME=VALUE"
            )
        variables[name.strip()] = value
    return variables
