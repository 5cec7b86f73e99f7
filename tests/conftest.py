"""Shared helpers for building requests without a server."""

from typing import Any

import pytest

from flux.context import Context
from flux.http.request import Request
from flux.http.response import ResponseWriter


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    headers: dict[str, str] | None = None,
    body: bytes = b"",
    chunks: list[bytes] | None = None,
) -> Request:
    """Build a Request whose receive() yields *body* (or *chunks*)."""
    parts = list(chunks) if chunks is not None else [body]
    calls = 0

    async def receive() -> dict[str, Any]:
        nonlocal calls
        calls += 1
        if parts:
            chunk = parts.pop(0)
            return {"type": "http.request", "body": chunk, "more_body": bool(parts)}
        return {"type": "http.disconnect"}

    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": [
            (k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()
        ],
        "query_string": b"",
    }
    return Request.from_asgi(scope, receive)


@pytest.fixture
def make_context():
    def factory(*chain: Any, request: Request | None = None, **kwargs: Any) -> Context:
        return Context(ResponseWriter(), request or make_request(), chain=tuple(chain), **kwargs)

    return factory
