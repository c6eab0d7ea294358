"""
Test doubles for the aiohttp transport.
"""

import json
from typing import Any, Dict, Optional


class MockResponse:
    """Mock aiohttp response, usable as ``async with session.request(...)``."""

    def __init__(
        self,
        data: Any = None,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
        reason: str = "",
        body: Optional[bytes] = None,
    ) -> None:
        if body is None:
            body = b"" if data is None else json.dumps(data).encode()
        self._body = body
        self.status = status
        self.reason = reason
        self.headers = headers or {}

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> "MockResponse":
        return self

    async def __aexit__(self, *args: object) -> None:
        pass


def request_url(call: Any) -> str:
    """URL passed to a recorded ``session.request`` call."""
    return str(call.args[1])


def request_headers(call: Any) -> Dict[str, str]:
    return call.kwargs.get("headers", {})


def request_body(call: Any) -> Any:
    data = call.kwargs.get("data")
    return json.loads(data) if data else None
