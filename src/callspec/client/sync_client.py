"""Synchronous HTTP client that executes resolved calls.

This module provides :class:`SyncClient`, the call executor of the
pipeline. It wraps :class:`httpx.Client` and layers on:

- **URL construction** -- the configured ``base_url`` or the first
  ``servers`` entry of the operation's OpenAPI fragment (with server
  variables replaced by their defaults), joined with the operation path.
- **Error mapping** -- 4xx/5xx responses raise
  :class:`~callspec.exceptions.HttpStatusError` and network failures raise
  :class:`~callspec.exceptions.TransportFailure`. Both carry the
  ``status``/``error`` attributes that error expectations are matched
  against.

There are no retries: each call is sent exactly once with the configured
timeout.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Optional

import httpx

from callspec.client.response import ApiResponse
from callspec.exceptions import ConfigError, HttpStatusError, TransportFailure
from callspec.models import RunConfig
from callspec.output import get_output

if TYPE_CHECKING:
    from callspec.request_builder import ResolvedRequest

_SERVER_VARIABLE = re.compile(r"\{([^{}]+)\}")


class SyncClient:
    """Synchronous HTTP client for suite calls.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        config: Run configuration supplying ``base_url``, ``timeout`` and
            ``verify_ssl``.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with SyncClient(config) as client:
            response = client.send(index.fragment("getUser"), request)
    """

    def __init__(
        self,
        config: RunConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        self._client = httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def send(self, fragment: dict[str, Any], request: ResolvedRequest) -> ApiResponse:
        """Send *request* for the operation described by *fragment*.

        Args:
            fragment: Single-operation OpenAPI fragment from the
                :class:`~callspec.parser.operations.OperationIndex`.
            request: Fully resolved request data.

        Returns:
            The captured response (status < 400).

        Raises:
            HttpStatusError: On a 4xx/5xx response.
            TransportFailure: On timeout or connection errors.
            ConfigError: If no base URL can be determined.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        url = f"{self.base_url_for(fragment).rstrip('/')}{request.path}"
        output = get_output()
        output.debug(f"{request.method} {url}")

        headers = dict(request.headers)
        if request.cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in request.cookies.items())

        kwargs: dict[str, Any] = {
            "method": request.method,
            "url": url,
            "headers": headers,
            "params": request.params,
        }
        if request.auth is not None:
            kwargs["auth"] = httpx.BasicAuth(*request.auth)
        if request.form_data is not None:
            kwargs["data"] = request.form_data
        elif request.json_body is not None:
            kwargs["json"] = request.json_body

        try:
            raw = self._client.request(**kwargs)
        except httpx.TransportError as exc:
            output.debug(f"{request.method} {url} failed: {type(exc).__name__}")
            raise TransportFailure(
                f"{request.method} {url} failed: {type(exc).__name__}: {exc}",
                error=type(exc).__name__,
                cause=exc,
            ) from exc

        response = ApiResponse.from_httpx(raw)
        output.debug(f"{request.method} {url} -> HTTP {response.status}")

        if response.status >= 400:
            reason = raw.reason_phrase or ""
            raise HttpStatusError(
                f"{request.method} {url} returned HTTP {response.status} {reason}".rstrip(),
                response,
            )
        return response

    def base_url_for(self, fragment: dict[str, Any]) -> str:
        """Return the base URL calls of *fragment* are sent to.

        The configured ``base_url`` wins over the document's ``servers``.

        Raises:
            ConfigError: If neither is available.
        """
        if self._config.base_url:
            return self._config.base_url

        servers = fragment.get("servers") or []
        if servers and isinstance(servers[0], dict) and servers[0].get("url"):
            return _expand_server_url(servers[0])

        raise ConfigError(
            "No base URL: pass --base-url or declare 'servers' in the OpenAPI document"
        )


def _expand_server_url(server: dict[str, Any]) -> str:
    """Replace ``{name}`` server variables with their declared defaults."""
    variables = server.get("variables") or {}

    def _default(match: re.Match[str]) -> str:
        variable = variables.get(match.group(1)) or {}
        return str(variable.get("default", match.group(0)))

    return _SERVER_VARIABLE.sub(_default, server["url"])
