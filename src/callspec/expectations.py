"""Verify responses against the ``expect`` block of a call.

Only the keys in :data:`PROCESSED_EXPECTATIONS` are understood. A misspelt
key would otherwise silently skip a check, so any other key fails the call
before a single expectation is evaluated.
"""

from __future__ import annotations

from typing import Any, Optional

from callspec.client.response import ApiResponse
from callspec.context import RunContext
from callspec.exceptions import MalformedExpectationError, UnhandledResponseError

PROCESSED_EXPECTATIONS = ("status", "json", "headers", "error")


def verify_expect_structure(expect: Any) -> None:
    """Reject ``expect`` blocks with unknown keys or a non-list ``json``/``headers``.

    Raises:
        MalformedExpectationError: Naming the unknown keys or the actual type.
    """
    if not isinstance(expect, dict):
        raise MalformedExpectationError(
            f"expect must be a mapping of expectations. Found: {_type_name(expect)}"
        )

    unknown = [key for key in expect if key not in PROCESSED_EXPECTATIONS]
    if unknown:
        raise MalformedExpectationError(
            "Only certain expectations are processed - unknown ones have been detected: "
            + ",".join(str(key) for key in unknown)
        )

    for key in ("json", "headers"):
        if expect.get(key) is not None and not isinstance(expect[key], list):
            raise MalformedExpectationError(
                f"{key} must be an array of expectations. Found: {_type_name(expect[key])}"
            )


def verify_response(expect: dict[str, Any], response: ApiResponse, context: RunContext) -> None:
    """Check a successful response against *expect*.

    ``status`` is checked first, then every ``json`` entry against the
    parsed body, then every ``headers`` entry against the response headers.
    Each entry is independent; the first failing one raises.

    Raises:
        ExpectationFailedError: On the first unmet expectation.
    """
    context.expect_status(expect.get("status"), response.status)

    for expectation in expect.get("json") or []:
        context.expectation_on(response.json, expectation)

    for expected_header in expect.get("headers") or []:
        context.expectation_on(response.header, expected_header)


def verify_failure(
    expect: Optional[dict[str, Any]],
    failure: UnhandledResponseError,
    context: RunContext,
) -> None:
    """Absorb a failed exchange when the call expects it.

    If ``expect.status`` is set and the failure carries a status, that status
    is checked; otherwise, if ``expect.error`` is set and the failure carries
    an error description, that is checked.

    Raises:
        ExpectationFailedError: If the expected status/error does not match.
        UnhandledResponseError: *failure* itself, unmodified, when no
            expectation applies.
    """
    expect = expect or {}
    if expect.get("status") is not None and failure.status is not None:
        context.expect_status(expect["status"], failure.status)
    elif expect.get("error") is not None and failure.error is not None:
        context.expect_status(expect["error"], failure.error)
    else:
        raise failure


def _type_name(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__
