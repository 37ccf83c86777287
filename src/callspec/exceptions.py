"""Exception hierarchy for callspec.

All exceptions inherit from :class:`CallspecError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`callspec.exit_codes`.
The CLI entry point in :func:`callspec.app.main` catches ``CallspecError``
and exits with the appropriate code; inside pytest every error simply fails
the call item that raised it.

Subclass hierarchy::

    CallspecError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- SpecParseError             (exit 7)
    |   +-- FileParseError         (exit 7)
    +-- UnknownOperationError      (exit 4)
    +-- CallFailedError            (exit 3)
        +-- MalformedExpectationError
        +-- ExpectationFailedError
        +-- ExtractionError
        +-- InvalidParameterError
        +-- UnknownVariableError
        +-- UnhandledResponseError
            +-- HttpStatusError
            +-- TransportFailure   (exit 6)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from callspec.exit_codes import (
    EXIT_CALL_FAILED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PARSE_ERROR,
    EXIT_UNKNOWN_OPERATION,
)

if TYPE_CHECKING:
    from callspec.client.response import ApiResponse


class CallspecError(Exception):
    """Base exception for all callspec errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`callspec.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CallspecError):
    """Raised for invalid CLI arguments or missing required options."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(CallspecError):
    """Raised for configuration problems (invalid project config, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class SpecParseError(CallspecError):
    """Raised when the OpenAPI document cannot be loaded or indexed."""

    exit_code = EXIT_PARSE_ERROR


class FileParseError(SpecParseError):
    """Raised when a suite file or a ``$file`` data file cannot be read or parsed.

    The message always names the offending path.
    """

    def __init__(self, path: str, reason: str = ""):
        message = f"Error parsing the file {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class UnknownOperationError(CallspecError):
    """Raised when a call references an operationId missing from the OpenAPI document."""

    exit_code = EXIT_UNKNOWN_OPERATION

    def __init__(self, operation_id: str):
        super().__init__(f'No swagger operation exists with operationId "{operation_id}"')
        self.operation_id = operation_id


class CallFailedError(CallspecError):
    """Base class for errors that fail a single call but not the whole run."""

    exit_code = EXIT_CALL_FAILED


class MalformedExpectationError(CallFailedError):
    """Raised when an ``expect`` block has unknown keys or mistyped values."""


class ExpectationFailedError(CallFailedError, AssertionError):
    """Raised when a response does not meet a declared expectation.

    Also an :class:`AssertionError` so that pytest renders it as an
    assertion failure rather than an internal error.
    """


class ExtractionError(CallFailedError):
    """Raised when a ``save`` directive cannot extract its value."""


class InvalidParameterError(CallFailedError):
    """Raised when call ``parameters`` do not match the operation's parameter list."""


class UnknownVariableError(CallFailedError):
    """Raised when a reference expression names a variable that was never saved."""


class UnhandledResponseError(CallFailedError):
    """A failed HTTP exchange that no ``expect.status``/``expect.error`` absorbed.

    Carries the two attributes error expectations are matched against.

    Attributes:
        status: HTTP status code, or ``None`` when no response was received.
        error: Short error description, or ``None``.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.error = error


class HttpStatusError(UnhandledResponseError):
    """Raised by the client when the service answers with a 4xx/5xx status.

    ``error`` holds the response body text (``None`` when empty) and
    ``response`` the full :class:`~callspec.client.response.ApiResponse`.
    """

    def __init__(self, message: str, response: ApiResponse):
        super().__init__(message, status=response.status, error=response.text or None)
        self.response = response


class TransportFailure(UnhandledResponseError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    ``error`` is the name of the underlying :mod:`httpx` exception class,
    e.g. ``"ConnectError"`` or ``"ReadTimeout"``.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, error: str, cause: Optional[Any] = None):
        super().__init__(message, status=None, error=error)
        self.cause = cause
