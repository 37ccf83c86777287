"""Index the operations of an OpenAPI document by ``operationId``.

:class:`OperationIndex` is built once per run from the loaded document. For
every path + HTTP method pair it keeps two views of the operation:

* a **fragment** -- a stand-alone OpenAPI document describing only that
  operation: the single ``paths`` entry plus every other top-level field of
  the source document (``openapi``, ``info``, ``servers``, ``components``,
  ...), so the operation can be handed on with all the context it needs;
* an :class:`~callspec.models.OperationInfo` -- the parsed path, method, and
  merged parameter list used to validate and route call parameters.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults and operation-level parameters override them when they
share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from callspec.exceptions import SpecParseError, UnknownOperationError
from callspec.models import APIParameter, HTTPMethod, OperationInfo, ParameterLocation
from callspec.output import warning
from callspec.parser.resolver import resolve_refs

logger = logging.getLogger(__name__)

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)


class OperationIndex:
    """Read-only mapping from ``operationId`` to operation fragment and metadata.

    Duplicate operationIds are resolved by keeping the last one declared and
    printing a warning; pass ``strict=True`` to :meth:`build` to reject the
    document instead.

    Example::

        index = OperationIndex.build(load_spec("openapi.yaml"))
        info = index.get("getUser")
        print(info.method.value.upper(), info.path)
    """

    def __init__(
        self,
        fragments: dict[str, dict[str, Any]],
        operations: dict[str, OperationInfo],
    ) -> None:
        self._fragments = fragments
        self._operations = operations

    @classmethod
    def build(cls, document: dict[str, Any], strict: bool = False) -> OperationIndex:
        """Build the index from a raw OpenAPI document.

        Args:
            document: The document as returned by
                :func:`~callspec.parser.loader.load_spec`.
            strict: Raise instead of warning when two operations share an
                operationId.

        Raises:
            SpecParseError: If ``paths`` is not a mapping, a ``$ref`` cannot
                be resolved, or (in strict mode) an operationId is duplicated.
        """
        paths = document.get("paths") or {}
        if not isinstance(paths, dict):
            raise SpecParseError("'paths' must be a mapping of routes")
        shared = {key: value for key, value in document.items() if key != "paths"}

        fragments: dict[str, dict[str, Any]] = {}
        operations: dict[str, OperationInfo] = {}

        for route, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            path_params = resolve_refs(path_item.get("parameters") or [], document)

            for method in path_item:
                if method not in _HTTP_METHODS:
                    continue
                details = path_item[method]
                if not isinstance(details, dict):
                    continue
                operation_id = details.get("operationId")
                if not operation_id:
                    logger.debug("Skipping %s %s: no operationId", method.upper(), route)
                    continue

                if operation_id in operations:
                    previous = operations[operation_id]
                    message = (
                        f"Duplicate operationId '{operation_id}': "
                        f"{method.upper()} {route} replaces "
                        f"{previous.method.value.upper()} {previous.path}"
                    )
                    if strict:
                        raise SpecParseError(message)
                    warning(message)

                fragments[operation_id] = {
                    **shared,
                    "paths": {route: {method: details}},
                }
                operations[operation_id] = _parse_operation(
                    operation_id, route, method, details, path_params, document
                )

        logger.debug("Indexed %d operations", len(operations))
        return cls(fragments, operations)

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._operations

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[str]:
        return iter(self._operations)

    def get(self, operation_id: str) -> OperationInfo:
        """Return the parsed metadata of *operation_id*.

        Raises:
            UnknownOperationError: If the document has no such operation.
        """
        try:
            return self._operations[operation_id]
        except KeyError:
            raise UnknownOperationError(operation_id) from None

    def fragment(self, operation_id: str) -> dict[str, Any]:
        """Return the single-operation OpenAPI fragment of *operation_id*.

        Raises:
            UnknownOperationError: If the document has no such operation.
        """
        try:
            return self._fragments[operation_id]
        except KeyError:
            raise UnknownOperationError(operation_id) from None


def _parse_operation(
    operation_id: str,
    route: str,
    method: str,
    details: dict[str, Any],
    path_params: list[dict[str, Any]],
    document: dict[str, Any],
) -> OperationInfo:
    op_params = resolve_refs(details.get("parameters") or [], document)
    request_body = resolve_refs(details.get("requestBody") or {}, document)
    content = request_body.get("content") if isinstance(request_body, dict) else None

    return OperationInfo(
        operation_id=operation_id,
        path=route,
        method=HTTPMethod(method),
        summary=details.get("summary"),
        parameters=_extract_parameters(_merge_parameters(path_params, op_params)),
        request_content_types=list(content or {}),
    )


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters, operation-level winning."""
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [
        p for p in path_params if (p.get("name", ""), p.get("in", "")) not in overridden
    ]
    merged.extend(op_params)
    return merged


def _extract_parameters(params_list: list[dict[str, Any]]) -> list[APIParameter]:
    """Convert raw parameter objects, skipping unknown locations.

    Path parameters are always required regardless of the ``required`` field.
    """
    parameters: list[APIParameter] = []

    for param in params_list:
        if not isinstance(param, dict) or "$ref" in param:
            continue
        try:
            location = ParameterLocation(param.get("in", "query"))
        except ValueError:
            continue

        schema = param.get("schema") if isinstance(param.get("schema"), dict) else {}
        required = bool(param.get("required", False)) or location == ParameterLocation.PATH

        parameters.append(
            APIParameter(
                name=param.get("name", ""),
                location=location,
                required=required,
                description=param.get("description"),
                schema_type=_extract_schema_type(schema),
                enum_values=schema.get("enum"),
            )
        )

    return parameters


def _extract_schema_type(schema: dict[str, Any]) -> str:
    """Return the schema type, taking the first non-null entry of an OpenAPI 3.1 type array."""
    type_value = schema.get("type", "string")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        return non_null[0] if non_null else "string"
    return str(type_value)
