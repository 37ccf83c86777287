"""Typer application and CLI entry point for callspec.

Two commands are provided:

``callspec run SUITE...``
    Run suite files in order against an OpenAPI service, sharing one
    variable store across all of them, and print a report.
``callspec operations``
    List the operations of the OpenAPI document by operationId.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It maps :class:`~callspec.exceptions.CallspecError` to
the exit codes of :mod:`callspec.exit_codes` and writes a crash log under
the data directory for anything unexpected.

See Also:
    :mod:`callspec.config`: Configuration resolution behind the options.
    :mod:`callspec.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, List, Optional

import typer

from callspec import __version__
from callspec.exit_codes import EXIT_CALL_FAILED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="callspec",
    help="Run declarative YAML call suites against OpenAPI services.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"callspec {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~callspec.output.OutputManager` from
    CLI flags.
    """
    from callspec.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


@app.command("run")
def run_command(
    suites: List[str] = typer.Argument(..., help="Suite files to run, in order."),
    openapi: Optional[str] = typer.Option(
        None, "--openapi", help="URL or file path of the OpenAPI document."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the server URL of the document."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Per-call timeout in seconds."
    ),
    variables: Optional[List[str]] = typer.Option(
        None, "--var", help="Initial variable as NAME=VALUE. Repeatable."
    ),
) -> None:
    """Run suite files against an OpenAPI service.

    Calls run one at a time in declaration order, and files run in the
    order given; values saved by one file are visible to the next. A failed
    call is reported and the run continues with the next call.

    Example::

        callspec run users.calls.yaml orders.calls.yaml --openapi openapi.yaml
    """
    from callspec.config import parse_variables, resolve_config
    from callspec.exceptions import InvalidUsageError
    from callspec.output import debug, error, get_output, info, print_table, success
    from callspec.parser import OperationIndex, load_spec, load_suite
    from callspec.runner import CallRunner

    config = resolve_config(
        cli_openapi=openapi,
        cli_base_url=base_url,
        cli_timeout=timeout,
        cli_variables=parse_variables(variables or []),
    )
    if config.openapi is None:
        raise InvalidUsageError(
            "No OpenAPI document configured. Pass --openapi or set CALLSPEC_OPENAPI."
        )

    # Load every file up front so a broken suite fails before any call is sent.
    loaded = [load_suite(path) for path in suites]
    index = OperationIndex.build(load_spec(config.openapi))
    debug(f"Indexed {len(index)} operations from {config.openapi}")

    rows: list[list[str]] = []
    failed = 0
    with CallRunner(config, index) as runner:
        for suite in loaded:
            info(f"Running {suite.source}")
            for result in runner.run_suite(suite):
                status = "PASS" if result.passed else "FAIL"
                detail = "" if result.passed else f"{type(result.error).__name__}: {result.error}"
                rows.append(
                    [status, result.call.display_name, result.call.call, f"{result.elapsed:.3f}s"]
                )
                if not result.passed:
                    failed += 1
                    error(f"{result.call.display_name}: {detail}")

    output = get_output()
    if not output.is_quiet or failed:
        print_table(["Result", "Call", "Operation", "Time"], rows, title="Calls")

    if failed:
        error(f"{failed} of {len(rows)} calls failed")
        raise typer.Exit(code=EXIT_CALL_FAILED)
    success(f"All {len(rows)} calls passed")


@app.command("operations")
def operations_command(
    openapi: Optional[str] = typer.Option(
        None, "--openapi", help="URL or file path of the OpenAPI document."
    ),
) -> None:
    """List the operations of the OpenAPI document.

    Shows every operation that can be named in a call's ``call`` key, with
    its HTTP method, path, and summary.
    """
    from callspec.config import resolve_config
    from callspec.exceptions import InvalidUsageError
    from callspec.output import print_table
    from callspec.parser import OperationIndex, load_spec

    config = resolve_config(cli_openapi=openapi)
    if config.openapi is None:
        raise InvalidUsageError(
            "No OpenAPI document configured. Pass --openapi or set CALLSPEC_OPENAPI."
        )

    index = OperationIndex.build(load_spec(config.openapi))
    rows = []
    for operation_id in sorted(index):
        op = index.get(operation_id)
        rows.append([operation_id, op.method.value.upper(), op.path, op.summary or ""])
    print_table(["Operation", "Method", "Path", "Summary"], rows, title="Operations")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from callspec.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``callspec`` console script.

    Unhandled :class:`~callspec.exceptions.CallspecError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from callspec.exceptions import CallspecError
        from callspec.output import error

        if isinstance(exc, CallspecError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
