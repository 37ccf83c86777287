"""callspec -- Run declarative YAML call suites against OpenAPI-described services.

A *suite* is a YAML file listing HTTP calls by OpenAPI ``operationId``.
Each call is executed in declaration order, its response is checked against
the declared expectations, and selected values are saved into a shared
variable store so that later calls can reference them.

Typical workflow::

    callspec operations --openapi openapi.yaml      # list known operationIds
    callspec run users.calls.yaml --openapi openapi.yaml

or, inside a pytest run, every ``*.calls.yaml`` file becomes a test module
with one test item per call (see :mod:`callspec.pytest_plugin`).

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Run configuration and precedence resolution.
    context: The variable store shared by all calls of a run.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    runner: The per-call load/resolve/execute/verify/extract pipeline.
"""

__version__ = "0.3.0"
