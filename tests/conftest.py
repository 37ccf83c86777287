"""Shared test fixtures for callspec.

Provides the petstore OpenAPI document and its operation index, a quiet
output manager, a :class:`~callspec.context.RunContext` rooted at the data
fixtures, and :class:`FakeService`, an in-memory HTTP service behind an
:class:`httpx.MockTransport`. These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest
import yaml

from callspec.context import RunContext
from callspec.models import RunConfig
from callspec.output import OutputManager, reset_output, set_output
from callspec.parser.operations import OperationIndex

pytest_plugins = ["pytester"]

FIXTURES_DIR = Path(__file__).parent / "fixtures"
DATA_DIR = FIXTURES_DIR / "data"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a plain, quiet OutputManager for the test."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# OpenAPI document
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_path() -> Path:
    return FIXTURES_DIR / "petstore.yaml"


@pytest.fixture
def petstore_raw(petstore_path: Path) -> dict[str, Any]:
    """Load the raw petstore document."""
    with open(petstore_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def petstore_index(petstore_raw: dict[str, Any]) -> OperationIndex:
    return OperationIndex.build(petstore_raw)


@pytest.fixture
def run_config(petstore_path: Path) -> RunConfig:
    return RunConfig(openapi=str(petstore_path))


# ---------------------------------------------------------------------------
# Variable store
# ---------------------------------------------------------------------------


@pytest.fixture
def context() -> RunContext:
    """RunContext resolving ``$file`` against the data fixtures."""
    return RunContext(base_dir=DATA_DIR, environ={"API_USER": "alice", "HOME": "/home/alice"})


# ---------------------------------------------------------------------------
# Fake HTTP service
# ---------------------------------------------------------------------------


Handler = Callable[[httpx.Request], httpx.Response]


class FakeService:
    """Routes requests by ``(METHOD, path)`` and records every request it sees.

    Unrouted requests get a JSON 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        text: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text, headers=headers)
            return httpx.Response(status, json=json, headers=headers)

        self.routes[(method.upper(), path)] = respond

    def add_handler(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method.upper(), path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        return route(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)


@pytest.fixture
def service() -> FakeService:
    return FakeService()
