"""Turn a :class:`~callspec.models.CallSpec` into concrete request data.

:func:`build_request` resolves the ``header``, ``query``, ``data`` and
``basicAuth`` blocks of a call against the :class:`~callspec.context.RunContext`,
validates ``parameters`` against the operation, and routes each parameter
to the location the OpenAPI document declares for it:

* ``path`` parameters replace ``{name}`` placeholders in the route;
* ``query`` parameters join the query string (explicit ``query`` entries win);
* ``header`` parameters join the headers (explicit ``header`` entries win);
* ``cookie`` parameters are sent as cookies.

A ``$file`` key in ``data`` or ``basicAuth`` replaces the whole block with
the (resolved) contents of that file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

from callspec.context import RunContext
from callspec.exceptions import InvalidParameterError
from callspec.models import CallSpec, OperationInfo, ParameterLocation

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_FILE_KEY = "$file"


@dataclass
class ResolvedRequest:
    """Everything the client needs to send one call."""

    method: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    json_body: Any = None
    form_data: Optional[dict[str, Any]] = None
    auth: Optional[tuple[str, str]] = None


def build_request(
    call: CallSpec,
    operation: OperationInfo,
    context: RunContext,
) -> ResolvedRequest:
    """Resolve *call* into a :class:`ResolvedRequest` for *operation*.

    Raises:
        InvalidParameterError: If parameters do not fit the operation or
            ``basicAuth`` lacks a username.
        UnknownVariableError: If a reference expression names nothing.
        FileParseError: If a ``$file`` reference cannot be loaded.
    """
    parameters: dict[str, Any] = {}
    if call.parameters:
        parameters = context.resolve_object(dict(call.parameters))
        context.validate_params(operation.parameters, parameters)

    locations = {param.name: param.location for param in operation.parameters}
    path = operation.path
    params: dict[str, Any] = {}
    headers: dict[str, str] = {}
    cookies: dict[str, str] = {}

    for name, value in parameters.items():
        location = locations.get(name, ParameterLocation.QUERY)
        if location == ParameterLocation.PATH:
            path = path.replace("{" + name + "}", quote(_scalar_text(value), safe=""))
        elif location == ParameterLocation.HEADER:
            headers[name] = _scalar_text(value)
        elif location == ParameterLocation.COOKIE:
            cookies[name] = _scalar_text(value)
        elif value is not None:
            params[name] = value

    for name, value in (context.resolve_object(call.header) or {}).items():
        headers[str(name)] = _scalar_text(value)
    params.update(context.resolve_object(call.query) or {})

    body = _resolve_block(call.data, context)
    json_body: Any = None
    form_data: Optional[dict[str, Any]] = None
    if body is not None:
        if _is_form_only(operation) and isinstance(body, dict):
            form_data = body
        else:
            json_body = body

    return ResolvedRequest(
        method=operation.method.value.upper(),
        path=path,
        params=params,
        headers=headers,
        cookies=cookies,
        json_body=json_body,
        form_data=form_data,
        auth=_basic_auth(_resolve_block(call.basic_auth, context)),
    )


def _resolve_block(block: Any, context: RunContext) -> Any:
    """Resolve a ``data``/``basicAuth`` block, honouring a ``$file`` override."""
    if isinstance(block, dict) and _FILE_KEY in block:
        loaded = context.resolve_object(context.get_data_from_file(block[_FILE_KEY]))
        if isinstance(loaded, dict):
            loaded.pop(_FILE_KEY, None)
        return loaded
    return context.resolve_object(block)


def _basic_auth(credentials: Any) -> Optional[tuple[str, str]]:
    if not credentials:
        return None
    if not isinstance(credentials, dict) or not credentials.get("username"):
        raise InvalidParameterError("basicAuth must provide at least a 'username'")
    return str(credentials["username"]), str(credentials.get("password") or "")


def _is_form_only(operation: OperationInfo) -> bool:
    types = operation.request_content_types
    return bool(types) and all(t.startswith(_FORM_CONTENT_TYPE) for t in types)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)
