"""HTTP client module for callspec.

Provides :class:`SyncClient`, the call executor that wraps :mod:`httpx`,
and :class:`ApiResponse`, the captured response every later pipeline stage
works with.

Example::

    from callspec.client import SyncClient

    with SyncClient(config) as client:
        response = client.send(fragment, request)
        print(response.status, response.json)
"""

from callspec.client.response import ApiResponse
from callspec.client.sync_client import SyncClient

__all__ = ["SyncClient", "ApiResponse"]
