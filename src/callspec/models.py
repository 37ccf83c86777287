"""Canonical Pydantic models shared across all callspec modules.

The models fall into three groups:

**Configuration** -- :class:`RunConfig`, resolved once per run by
:func:`~callspec.config.resolve_config`.

**Suite models** -- produced by :func:`~callspec.parser.loader.load_suite`
from a YAML test-definition file:
    :class:`CallSpec` and :class:`SuiteFile`.

**Operation metadata** -- produced by
:class:`~callspec.parser.operations.OperationIndex` from the OpenAPI
document: :class:`HTTPMethod`, :class:`ParameterLocation`,
:class:`APIParameter`, and :class:`OperationInfo`.

All models use Pydantic v2. Suite models are frozen: a call description is
never modified after loading, resolved request data lives in
:class:`~callspec.request_builder.ResolvedRequest` instead.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Run Config ---


class RunConfig(BaseModel):
    """Settings for a single run (one CLI invocation or one pytest session).

    See :func:`~callspec.config.resolve_config` for the precedence chain
    that produces this object.
    """

    openapi: Optional[str] = Field(
        default=None, description="URL or file path to the OpenAPI document"
    )
    base_url: Optional[str] = Field(
        default=None, description="Override the server URL declared by the document"
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-call timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    variables: dict[str, Any] = Field(
        default_factory=dict, description="Initial contents of the variable store"
    )


# --- Suite Models ---


class CallSpec(BaseModel):
    """One declarative HTTP call from the ``apiCalls.swagger`` list.

    Field names follow the YAML keys; ``basicAuth`` and ``print`` are exposed
    as :attr:`basic_auth` and :attr:`print_response`. Unknown keys are
    rejected at load time so that a misspelt key cannot silently disable
    part of a call.

    The ``expect`` block is kept as a raw mapping: its structure is checked
    when the call runs, by
    :func:`~callspec.expectations.verify_expect_structure`.

    Example::

        - call: getUser
          name: fetch the user we just created
          parameters:
            userId: $var.userId
          expect:
            status: 200
            json:
              - name: Alice
          save:
            email: json.email
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    call: str = Field(description="operationId of the OpenAPI operation to invoke")
    name: Optional[str] = None
    parameters: Optional[dict[str, Any]] = None
    data: Any = None
    basic_auth: Optional[dict[str, Any]] = Field(default=None, alias="basicAuth")
    header: Optional[dict[str, Any]] = None
    query: Optional[dict[str, Any]] = None
    print_response: bool = Field(default=False, alias="print")
    expect: Optional[dict[str, Any]] = None
    save: dict[str, Union[str, dict[str, Any]]] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Name used for test items and report lines."""
        return self.name or self.call


class SuiteFile(BaseModel):
    """A loaded test-definition file: its calls in declaration order."""

    model_config = ConfigDict(frozen=True)

    source: Optional[str] = Field(
        default=None, description="Path the suite was loaded from"
    )
    calls: list[CallSpec] = Field(default_factory=list)

    @property
    def base_dir(self) -> Path:
        """Directory that relative ``$file`` references resolve against."""
        if self.source is None:
            return Path.cwd()
        return Path(self.source).resolve().parent


# --- Operation Metadata ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised as operations inside an OpenAPI path item."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class APIParameter(BaseModel):
    """A single parameter declared by an OpenAPI operation.

    Used by :meth:`~callspec.context.RunContext.validate_params` to check the
    ``parameters`` block of a call and by the request builder to route each
    value to the path, query string, headers, or cookies.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_type: str = Field(default="string", description="JSON Schema type")
    enum_values: Optional[list[Any]] = None


class OperationInfo(BaseModel):
    """Parsed metadata for one operation of the OpenAPI document."""

    operation_id: str
    path: str
    method: HTTPMethod
    summary: Optional[str] = None
    parameters: list[APIParameter] = Field(default_factory=list)
    request_content_types: list[str] = Field(default_factory=list)
