"""Captured HTTP responses.

:class:`ApiResponse` is what every later pipeline stage sees of an HTTP
exchange: the status code, the raw body text, the headers, and the body
parsed as JSON on first access. Expectations and ``save`` paths address it
with dotted paths such as ``status``, ``header.content-type`` or
``json.items.0.id``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

_UNPARSED = object()


@dataclass
class ApiResponse:
    """Status, body and headers of one HTTP response.

    Attributes:
        status: HTTP status code.
        text: Decoded response body.
        header: Response headers; lookups are case-insensitive.
    """

    status: int
    text: str = ""
    header: httpx.Headers = field(default_factory=httpx.Headers)
    _json: Any = field(default=_UNPARSED, repr=False, compare=False)

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> ApiResponse:
        """Capture an :class:`httpx.Response`."""
        return cls(status=response.status_code, text=response.text, header=response.headers)

    @property
    def is_json(self) -> bool:
        """Whether the body parses as JSON."""
        if not self.text:
            return False
        try:
            json.loads(self.text)
        except ValueError:
            return False
        return True

    @property
    def json(self) -> Any:
        """The body parsed as JSON, or ``None`` when it is empty or not JSON.

        Parsing happens once, on first access.
        """
        if self._json is _UNPARSED:
            try:
                self._json = json.loads(self.text) if self.text else None
            except ValueError:
                self._json = None
        return self._json

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view used when dumping a response."""
        return {
            "status": self.status,
            "header": dict(self.header),
            "text": self.text,
            "json": self.json,
        }
