"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~callspec.exceptions.CallspecError` subclass.
CI scripts can inspect the exit code of ``callspec run`` to tell a failed
expectation apart from a broken suite file or an unreachable service.

Example::

    $ callspec run users.calls.yaml
    $ echo $?
    3   # EXIT_CALL_FAILED -- at least one call did not meet its expectations
"""

EXIT_SUCCESS = 0
"""Every call completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required options."""

EXIT_CALL_FAILED = 3
"""At least one call failed its expectations, extraction, or parameter checks."""

EXIT_UNKNOWN_OPERATION = 4
"""A call referenced an operationId that the OpenAPI document does not define."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PARSE_ERROR = 7
"""A suite file, data file, or OpenAPI document could not be parsed."""
