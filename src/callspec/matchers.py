"""Matching of actual response values against declared expectations.

Two entry points back the ``expect`` block of a call:

* :func:`check_status` -- compares a status code (or an error description)
  with ``expect.status`` / ``expect.error``.
* :func:`check_expectation` -- compares a target (the parsed JSON body or
  the response headers) with one expectation entry, a mapping of dotted
  path to expected value.

Expected values are literals compared for equality, nested mappings
compared as subsets, or directive strings:

==================  =====================================================
``$exists``         the path is present
``$absent``         the path is not present
``$regex <re>``     ``re.search`` succeeds on the value rendered as text
``$type <name>``    JSON type: string, number, integer, boolean, array,
                    object or null
``$length <n>``     ``len(value) == n``
==================  =====================================================

Every mismatch raises :class:`~callspec.exceptions.ExpectationFailedError`.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Optional

from callspec.dotted import MISSING, lookup
from callspec.exceptions import ExpectationFailedError, MalformedExpectationError

_STATUS_CLASS = re.compile(r"^[1-5][xX]{2}$")
_DIRECTIVES = ("$exists", "$absent", "$regex", "$type", "$length")


def check_status(expected: Any, actual: Any) -> None:
    """Check *actual* against an expected status or error description.

    *expected* may be ``None`` (no check), an exact value, a status class
    such as ``"2xx"``, a ``$regex`` directive, or a list of any of these
    (any one matching is enough). Values are compared as text, so ``200``
    and ``"200"`` are equal.

    Raises:
        ExpectationFailedError: If *actual* does not match.
        MalformedExpectationError: If a ``$regex`` pattern does not compile.
    """
    if expected is None:
        return
    candidates = expected if isinstance(expected, list) else [expected]
    if any(_status_matches(candidate, actual) for candidate in candidates):
        return
    raise ExpectationFailedError(f"Expected {expected!r} but got {actual!r}")


def _status_matches(expected: Any, actual: Any) -> bool:
    actual_text = _as_text(actual)
    if isinstance(expected, str):
        if expected.startswith("$regex"):
            return _search(_directive_argument(expected), actual_text) is not None
        if _STATUS_CLASS.match(expected):
            return len(actual_text) == 3 and actual_text[0] == expected[0]
    return _as_text(expected) == actual_text


def check_expectation(target: Any, expectation: Any) -> None:
    """Check one expectation entry against *target*.

    A mapping entry checks each dotted path independently; any other entry
    is compared with the whole target.

    Raises:
        ExpectationFailedError: On the first mismatch.
    """
    if not isinstance(expectation, Mapping):
        match_value(target, expectation, "")
        return
    for path, expected in expectation.items():
        match_value(lookup(target, str(path)), expected, str(path))


def match_value(actual: Any, expected: Any, path: str) -> None:
    """Match a single value, where *actual* may be :data:`~callspec.dotted.MISSING`.

    Raises:
        ExpectationFailedError: If the value does not match.
        MalformedExpectationError: If a directive is malformed or its
            pattern does not compile.
    """
    where = f"'{path}'" if path else "value"

    if isinstance(expected, str) and expected.split(" ", 1)[0] in _DIRECTIVES:
        _match_directive(actual, expected, where)
        return

    if actual is MISSING:
        raise ExpectationFailedError(f"Expected {where} to be {expected!r} but it is missing")

    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            raise ExpectationFailedError(
                f"Expected {where} to be an object but got {_json_type(actual)}"
            )
        for key, sub_expected in expected.items():
            sub_path = f"{path}.{key}" if path else str(key)
            match_value(lookup(actual, str(key)), sub_expected, sub_path)
        return

    if not _equal(actual, expected):
        raise ExpectationFailedError(f"Expected {where} to be {expected!r} but got {actual!r}")


def _match_directive(actual: Any, directive: str, where: str) -> None:
    name = directive.split(" ", 1)[0]

    if name == "$exists":
        if actual is MISSING:
            raise ExpectationFailedError(f"Expected {where} to exist")
        return
    if name == "$absent":
        if actual is not MISSING:
            raise ExpectationFailedError(f"Expected {where} to be absent but got {actual!r}")
        return

    argument = _directive_argument(directive)
    if actual is MISSING:
        raise ExpectationFailedError(f"Expected {where} to match '{directive}' but it is missing")

    if name == "$regex":
        if _search(argument, _as_text(actual)) is None:
            raise ExpectationFailedError(
                f"Expected {where} to match /{argument}/ but got {actual!r}"
            )
    elif name == "$type":
        actual_type = _json_type(actual)
        if actual_type != argument and not (argument == "number" and actual_type == "integer"):
            raise ExpectationFailedError(
                f"Expected {where} to be of type {argument} but got {actual_type}"
            )
    else:
        try:
            length = int(argument)
        except ValueError:
            raise MalformedExpectationError(
                f"Wrong format: '{directive}'. Expecting like: '$length 3'"
            ) from None
        if not hasattr(actual, "__len__") or len(actual) != length:
            size = len(actual) if hasattr(actual, "__len__") else "no length"
            raise ExpectationFailedError(f"Expected {where} to have length {length} but got {size}")


def _search(pattern: str, text: str) -> Optional[re.Match[str]]:
    try:
        return re.search(pattern, text)
    except re.error as exc:
        raise MalformedExpectationError(
            f"Invalid regular expression '{pattern}': {exc}"
        ) from exc


def _directive_argument(directive: str) -> str:
    _, _, argument = directive.partition(" ")
    if not argument:
        raise MalformedExpectationError(
            f"Wrong format: '{directive}'. Expecting like: '{directive.split(' ')[0]} <argument>'"
        )
    return argument


def _equal(actual: Any, expected: Any) -> bool:
    # True == 1 in Python but not in JSON
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    return actual == expected


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__
