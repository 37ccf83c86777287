"""Dotted-path access into nested response and variable data.

``"json.items.0.id"`` walks mapping keys and list indices one segment at a
time. Objects exposing attributes (e.g. :class:`~callspec.client.response.ApiResponse`)
are walked by attribute name, and any :class:`~collections.abc.Mapping`
(including case-insensitive :class:`httpx.Headers`) by key.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

MISSING = object()
"""Sentinel returned by :func:`lookup` when a segment does not exist."""


def lookup(obj: Any, path: str) -> Any:
    """Return the value at *path* inside *obj*, or :data:`MISSING`.

    An empty path returns *obj* itself.
    """
    if path == "":
        return obj

    current = obj
    for segment in path.split("."):
        current = _step(current, segment)
        if current is MISSING:
            return MISSING
    return current


def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """Return the value at *path* inside *obj*, or *default* when absent."""
    value = lookup(obj, path)
    return default if value is MISSING else value


def has_path(obj: Any, path: str) -> bool:
    """Return True when every segment of *path* exists in *obj*."""
    return lookup(obj, path) is not MISSING


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        if segment in current:
            return current[segment]
        return MISSING

    if isinstance(current, (list, tuple)):
        try:
            index = int(segment)
        except ValueError:
            return MISSING
        if -len(current) <= index < len(current):
            return current[index]
        return MISSING

    if current is None or isinstance(current, (str, int, float, bool)):
        return MISSING

    if not segment.startswith("_") and hasattr(current, segment):
        return getattr(current, segment)
    return MISSING
