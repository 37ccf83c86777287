"""Load suite files, data files, and OpenAPI documents.

This module handles all I/O for turning files into Python objects:

* :func:`load_yaml_file` -- parse one YAML file.
* :func:`load_file` -- load a data file whose format is inferred from its
  extension (YAML by default, JSON, or a Python data module).
* :func:`load_suite` -- load a test-definition file into a
  :class:`~callspec.models.SuiteFile`.
* :func:`load_spec` -- load the OpenAPI document from a URL or a local file.

Suite and data file problems raise :class:`~callspec.exceptions.FileParseError`
naming the path; OpenAPI document problems raise
:class:`~callspec.exceptions.SpecParseError`.
"""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path
from typing import Any, Union

import httpx
import yaml
from pydantic import ValidationError

from callspec.exceptions import FileParseError, SpecParseError
from callspec.models import CallSpec, SuiteFile

PathLike = Union[str, Path]

_YAML_SUFFIXES = (".yaml", ".yml")
_INFERRED_SUFFIXES = (".yaml", ".yml", ".json", ".py")


# --- Data files ---


def load_yaml_file(path: PathLike) -> Any:
    """Parse a YAML file.

    Args:
        path: Path to the file, reported verbatim in errors.

    Returns:
        The parsed document (``None`` for an empty file).

    Raises:
        FileParseError: If the file cannot be read or is not valid YAML.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise FileParseError(str(path), str(exc)) from exc


def load_file(path: PathLike) -> Any:
    """Load a data file, inferring its format from the extension.

    ``.yaml``/``.yml`` files are parsed as YAML, ``.json`` as JSON, and
    ``.py`` files are imported as data modules (see :func:`_load_module`).
    When *path* has none of these extensions, ``path.yaml``, ``path.yml``,
    ``path.json`` and ``path.py`` are tried in that order; a file that
    exists under the exact name is parsed as YAML.

    Raises:
        FileParseError: If no candidate file exists or it cannot be parsed.
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    if suffix not in _INFERRED_SUFFIXES:
        for candidate_suffix in _INFERRED_SUFFIXES:
            candidate = Path(f"{file_path}{candidate_suffix}")
            if candidate.is_file():
                return load_file(candidate)
        if not file_path.is_file():
            raise FileParseError(str(path), "file not found")
        return load_yaml_file(path)

    if suffix in _YAML_SUFFIXES:
        return load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)
    return _load_module(file_path)


def _load_json_file(path: PathLike) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise FileParseError(str(path), str(exc)) from exc


def _load_module(path: Path) -> Any:
    """Import a Python data module and return its ``data`` attribute.

    If ``data`` is callable it is called without arguments, so a module can
    build its payload at load time.
    """
    if not path.is_file():
        raise FileParseError(str(path), "file not found")

    spec = importlib.util.spec_from_file_location(f"_callspec_data_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise FileParseError(str(path), "cannot import module")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise FileParseError(str(path), f"{type(exc).__name__}: {exc}") from exc

    if not hasattr(module, "data"):
        raise FileParseError(str(path), "module does not define 'data'")
    data = module.data
    return data() if callable(data) else data


# --- Suites ---


def load_suite(path: PathLike) -> SuiteFile:
    """Load a test-definition file into a :class:`~callspec.models.SuiteFile`.

    Missing ``apiCalls`` or ``apiCalls.swagger`` sections are treated as
    empty, so a file without calls yields a suite without calls.

    Raises:
        FileParseError: If the file cannot be parsed or a call is invalid.
    """
    content = load_file(path)
    if content is None:
        content = {}
    if not isinstance(content, dict):
        raise FileParseError(
            str(path), f"expected a mapping at top level, got {type(content).__name__}"
        )

    api_calls = content.get("apiCalls") or {}
    if not isinstance(api_calls, dict):
        raise FileParseError(str(path), "'apiCalls' must be a mapping")
    raw_calls = api_calls.get("swagger") or []
    if not isinstance(raw_calls, list):
        raise FileParseError(str(path), "'apiCalls.swagger' must be a list of calls")

    calls: list[CallSpec] = []
    for position, raw in enumerate(raw_calls, start=1):
        try:
            calls.append(CallSpec.model_validate(raw))
        except ValidationError as exc:
            raise FileParseError(str(path), f"invalid call #{position}: {exc}") from exc

    return SuiteFile(source=str(path), calls=calls)


# --- OpenAPI documents ---


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from an http(s) URL or a file path.

    Supports JSON and YAML formats, auto-detected from the extension or
    content type.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    if source.startswith(("http://", "https://")):
        return _load_spec_from_url(source)
    return _load_spec_from_file(source)


def _load_spec_from_url(url: str) -> dict[str, Any]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_spec_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in _YAML_SUFFIXES:
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.

    Raises:
        SpecParseError: If the content cannot be parsed as either format or
            is not a mapping.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc
    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result
