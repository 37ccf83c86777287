"""The variable store shared by all calls of one run.

:class:`RunContext` is created once per run (one ``callspec run`` invocation
or one pytest session) and passed by reference to every pipeline stage.
Calls read from it through reference expressions in their request data and
write to it through ``save`` directives.

Reference expressions are strings of one of these forms:

``$var.<name>[.<path>]``
    A saved variable, optionally a dotted path into it.
``$env.<NAME>``
    An environment variable.
``$file.<ref>[#<path>]``
    A data file loaded with :func:`~callspec.parser.loader.load_file`
    relative to the suite directory, optionally a dotted path into it. The
    loaded data is itself resolved, so data files may contain expressions.
``... {{name}} ...``
    Interpolation of saved variables into a longer string. A string that
    is exactly ``{{name}}`` yields the variable with its original type.

Any other string is a literal.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from callspec import matchers
from callspec.dotted import MISSING, lookup
from callspec.exceptions import InvalidParameterError, UnknownVariableError
from callspec.models import APIParameter
from callspec.parser.loader import load_file
from callspec.values import Deferred, evaluate_data

_INTERPOLATION = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


class RunContext:
    """Key/value store bridging data across the calls of one run.

    Args:
        variables: Initial variables (e.g. from ``--var`` options).
        base_dir: Directory relative ``$file`` references resolve against.
            The runner points it at the directory of the suite being run.
        environ: Environment used by ``$env`` expressions. Defaults to
            :data:`os.environ`.
    """

    def __init__(
        self,
        variables: Optional[dict[str, Any]] = None,
        base_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._variables: dict[str, Any] = dict(variables or {})
        self.base_dir = base_dir or Path.cwd()
        self._environ = os.environ if environ is None else environ

    @property
    def variables(self) -> dict[str, Any]:
        """A copy of every stored variable."""
        return dict(self._variables)

    # ------------------------------------------------------------------ #
    # Variables
    # ------------------------------------------------------------------ #

    def get(self, key: str, default: Any = None) -> Any:
        """Return the variable *key*, or *default* if it was never set."""
        return self._variables.get(key, default)

    def set(self, key: str, value: Any, evaluate: bool = True) -> None:
        """Store *value* under *key*.

        With ``evaluate=True`` reference expressions inside *value* are
        resolved first. Values taken verbatim from a response are stored
        with ``evaluate=False`` so that response text is never interpreted.
        """
        self._variables[key] = self.resolve_object(value) if evaluate else value

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def resolve(self, expr: Any) -> Any:
        """Evaluate one reference expression; non-strings are returned unchanged.

        Raises:
            UnknownVariableError: If a ``$var``, ``$env`` or ``{{...}}``
                reference names nothing.
            FileParseError: If a ``$file`` reference cannot be loaded.
        """
        if not isinstance(expr, str):
            return expr
        if expr.startswith("$var."):
            return self._variable_path(expr[len("$var."):])
        if expr.startswith("$env."):
            name = expr[len("$env."):]
            if name not in self._environ:
                raise UnknownVariableError(f"Environment variable '{name}' is not set")
            return self._environ[name]
        if expr.startswith("$file."):
            return self.resolve_object(self.get_data_from_file(expr[len("$file."):]))

        whole = _INTERPOLATION.fullmatch(expr)
        if whole:
            return self._variable_path(whole.group(1))
        if "{{" in expr:
            return _INTERPOLATION.sub(lambda m: _as_text(self._variable_path(m.group(1))), expr)
        return expr

    def resolve_object(self, obj: Any) -> Any:
        """Resolve every expression inside *obj*, at any nesting depth.

        Expression strings are first turned into :class:`~callspec.values.Deferred`
        leaves and the tree is then evaluated with
        :func:`~callspec.values.evaluate_data`, giving plain data of the same
        shape. ``None`` resolves to ``None``.
        """
        return evaluate_data(self._defer(obj))

    def _defer(self, obj: Any) -> Any:
        if isinstance(obj, str) and _is_expression(obj):
            return Deferred(lambda: self.resolve(obj))
        if isinstance(obj, dict):
            return {key: self._defer(value) for key, value in obj.items()}
        if isinstance(obj, list):
            return [self._defer(item) for item in obj]
        return obj

    def get_data_from_file(self, ref: str) -> Any:
        """Load the data a ``$file`` reference points to, without resolving it.

        *ref* is a path relative to :attr:`base_dir` (extension optional,
        see :func:`~callspec.parser.loader.load_file`), optionally followed
        by ``#`` and a dotted path selecting part of the file.

        Raises:
            FileParseError: If the file cannot be loaded.
            UnknownVariableError: If the selected path does not exist.
        """
        file_ref, _, selector = ref.partition("#")
        path = Path(file_ref)
        if not path.is_absolute():
            path = self.base_dir / path
        data = load_file(path)
        if not selector:
            return data
        value = lookup(data, selector)
        if value is MISSING:
            raise UnknownVariableError(f"'{selector}' not found in file {file_ref}")
        return value

    def _variable_path(self, dotted: str) -> Any:
        name, _, rest = dotted.partition(".")
        if name not in self._variables:
            raise UnknownVariableError(f"Variable '{name}' has not been saved")
        value = lookup(self._variables[name], rest)
        if value is MISSING:
            raise UnknownVariableError(f"Variable '{name}' has no '{rest}'")
        return value

    # ------------------------------------------------------------------ #
    # Checks
    # ------------------------------------------------------------------ #

    def validate_params(
        self,
        params_schema: list[APIParameter],
        supplied_params: Mapping[str, Any],
    ) -> None:
        """Check call parameters against the operation's parameter list.

        Rejects unknown names, missing required parameters, values whose
        type does not fit the declared schema type, and values outside a
        declared ``enum``.

        Raises:
            InvalidParameterError: Describing every problem found.
        """
        declared = {param.name: param for param in params_schema}
        problems: list[str] = []

        unknown = [name for name in supplied_params if name not in declared]
        if unknown:
            problems.append(f"unknown parameters: {', '.join(unknown)}")

        missing = [p.name for p in params_schema if p.required and p.name not in supplied_params]
        if missing:
            problems.append(f"missing required parameters: {', '.join(missing)}")

        for name, value in supplied_params.items():
            param = declared.get(name)
            if param is None or value is None:
                continue
            if not _fits_type(value, param.schema_type):
                problems.append(f"'{name}' must be of type {param.schema_type}, got {value!r}")
            elif param.enum_values and str(value) not in {str(v) for v in param.enum_values}:
                allowed = ", ".join(str(v) for v in param.enum_values)
                problems.append(f"'{name}' must be one of {allowed}, got {value!r}")

        if problems:
            raise InvalidParameterError("Invalid parameters: " + "; ".join(problems))

    def expect_status(self, expected: Any, actual: Any) -> None:
        """Check a status code or error description; see :func:`~callspec.matchers.check_status`.

        Reference expressions in *expected* are resolved first.
        """
        matchers.check_status(self.resolve_object(expected), actual)

    def expectation_on(self, target: Any, expectation: Any) -> None:
        """Check one expectation entry; see :func:`~callspec.matchers.check_expectation`.

        Reference expressions in the expected values are resolved first, so
        ``{id: $var.petId}`` compares against a saved variable.
        """
        matchers.check_expectation(target, self.resolve_object(expectation))


def _is_expression(value: str) -> bool:
    return value.startswith(("$var.", "$env.", "$file.")) or "{{" in value


def _as_text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _fits_type(value: Any, schema_type: str) -> bool:
    if schema_type == "integer":
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        return isinstance(value, str) and value.lstrip("-").isdigit()
    if schema_type == "number":
        if isinstance(value, bool):
            return False
        if isinstance(value, (int, float)):
            return True
        try:
            float(value)
        except (TypeError, ValueError):
            return False
        return True
    if schema_type == "boolean":
        return isinstance(value, bool) or str(value).lower() in ("true", "false")
    if schema_type == "array":
        return isinstance(value, list)
    if schema_type == "object":
        return isinstance(value, dict)
    return not isinstance(value, (dict, list))
