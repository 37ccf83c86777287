"""Inline internal ``$ref`` pointers of an OpenAPI document.

Operations often declare their parameters as
``{"$ref": "#/components/parameters/UserId"}``. Before the operation index
can validate a call's ``parameters`` block those pointers must be replaced by
the objects they point to.

Only internal pointers (``#/...``) are followed. External pointers
(``other.yaml#/...``) and pointers that close a cycle are kept as they are:
the runner never needs their targets, and a schema referencing itself is
legitimate OpenAPI.
"""

from __future__ import annotations

from typing import Any

from callspec.exceptions import SpecParseError


def resolve_refs(node: Any, root: dict[str, Any]) -> Any:
    """Return a copy of *node* with internal ``$ref`` pointers inlined.

    Args:
        node: Any part of the document (often the whole document).
        root: The document that pointers are resolved against.

    Raises:
        SpecParseError: If an internal pointer names a location that does
            not exist.
    """
    return _inline(node, root, frozenset())


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Return the object an internal JSON pointer such as ``#/components/schemas/Pet`` names.

    Segments are unescaped per RFC 6901 (``~1`` is ``/``, ``~0`` is ``~``).

    Raises:
        SpecParseError: If *ref* is not internal or a segment is missing.
    """
    if not ref.startswith("#/"):
        raise SpecParseError(f"Only internal references (#/...) can be resolved: {ref}")

    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            raise SpecParseError(f"Cannot resolve $ref '{ref}': '{segment}' not found")
    return current


def _inline(node: Any, root: dict[str, Any], active: frozenset[str]) -> Any:
    # ``active`` holds the pointers being expanded on the current branch only
    if isinstance(node, list):
        return [_inline(item, root, active) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/") and ref not in active:
        return _inline(resolve_pointer(ref, root), root, active | {ref})
    if isinstance(ref, str):
        return dict(node)

    return {key: _inline(value, root, active) for key, value in node.items()}
