"""Hook specifications added to pytest by :mod:`callspec.pytest_plugin`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import pytest

if TYPE_CHECKING:
    import httpx


@pytest.hookspec(firstresult=True)
def pytest_callspec_transport(config: pytest.Config) -> Optional[httpx.BaseTransport]:
    """Return the :mod:`httpx` transport suite calls are sent through.

    Implement this in a ``conftest.py`` to run suites against an in-process
    application (e.g. ``httpx.WSGITransport(app=app)``) or a mock. The first
    non-``None`` result wins; without one, calls go over the network.
    """
