"""Extract values from responses into the variable store.

Each entry of a call's ``save`` block names a variable and says where its
value comes from:

``name: json.user.id``
    A dotted path into the response (``status``, ``text``, ``header.*`` or
    ``json.*``). Stored verbatim.
``name: $file.fixtures/user#email``
    A value read from a data file instead of the response.
``name: {json.location: "$regex /users/(\\d+)$"}``
    A dotted path whose value is matched against a regular expression; see
    :func:`evaluate_response_data`.
"""

from __future__ import annotations

import re
from typing import Any, Union

from callspec.client.response import ApiResponse
from callspec.context import RunContext
from callspec.dotted import get_path
from callspec.exceptions import ExtractionError
from callspec.output import dump

_REGEX_DIRECTIVE = "$regex"
_REGEX_EXAMPLE = "Expecting like: '$regex ([a-z\\d]+)$'"


def save_values(
    save: dict[str, Union[str, dict[str, Any]]],
    response: ApiResponse,
    context: RunContext,
    print_values: bool = False,
) -> None:
    """Apply every ``save`` directive of a call, in declaration order.

    All values are extracted before any is written, so a directive that
    fails leaves the store untouched.

    Args:
        save: The call's ``save`` block.
        response: The verified response.
        context: Store the values are written to.
        print_values: Dump each saved value (calls declared with ``print``).

    Raises:
        ExtractionError: If a directive cannot be applied.
    """
    extracted: list[tuple[str, Any, bool]] = []
    for name, target in save.items():
        if isinstance(target, dict):
            extracted.append((name, evaluate_response_data(response, target), True))
        elif target.startswith("$file."):
            extracted.append((name, context.resolve(target), True))
        else:
            extracted.append((name, get_value_from_response(response, target), False))

    for name, value, evaluate in extracted:
        context.set(name, value, evaluate=evaluate)
        if print_values:
            dump(f"{name} =", value)


def evaluate_response_data(response: Any, save: dict[str, Any]) -> str:
    """Extract a value with a one-key ``{path: "$regex <pattern>"}`` directive.

    The value at *path* is searched with *pattern*. Without capture groups
    the whole match is returned; with exactly one group, that group.

    Raises:
        ExtractionError: If the directive has more than one key, is not a
            ``$regex`` directive, is not exactly ``$regex <pattern>``, the
            path yields no value, the pattern does not match, or it has more
            than one capture group.
    """
    if len(save) != 1:
        raise ExtractionError(f"Multiple keys do not support. '{save}'")

    key_name, directive = next(iter(save.items()))
    if not isinstance(directive, str) or not directive.startswith(_REGEX_DIRECTIVE):
        raise ExtractionError(f"Did not find '{_REGEX_DIRECTIVE}'. {_REGEX_EXAMPLE}")

    value = get_value_from_response(response, key_name)
    if not value:
        raise ExtractionError(f"Wrong key '{key_name}'")

    parts = directive.split(" ")
    if len(parts) != 2:
        raise ExtractionError(f"Wrong format: '{directive}'. {_REGEX_EXAMPLE}")

    pattern = parts[1]
    try:
        match = re.search(pattern, str(value))
    except re.error as exc:
        raise ExtractionError(f"Invalid regular expression '{pattern}': {exc}") from exc
    if match is None:
        raise ExtractionError(
            f"Did not parse from value '{value}' using regular expression '{pattern}'"
        )

    groups = match.groups()
    if not groups:
        return match.group(0)
    if len(groups) == 1:
        return groups[0]
    raise ExtractionError(
        f"Found multiple values '{[match.group(0), *groups]}' "
        f"using regular expression '{pattern}'"
    )


def get_value_from_response(response: Any, key: str) -> Any:
    """Return the value at dotted path *key* of *response*, or ``None``.

    *response* is normally an :class:`~callspec.client.response.ApiResponse`;
    plain mappings are walked the same way. Paths under ``json.`` require
    the body of an ``ApiResponse`` to be JSON.

    Raises:
        ExtractionError: If a ``json.`` path is read from a non-JSON body.
    """
    if key.startswith("json.") and isinstance(response, ApiResponse) and not response.is_json:
        raise ExtractionError(f"Cannot read '{key}': response body is not JSON")
    return get_path(response, key)
