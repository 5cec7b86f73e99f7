"""Inbound HTTP request.

Metadata is fixed when the request arrives. The body is pulled from the
ASGI receive channel on first use and kept, so body parsing, handlers and
panic recovery all read the same bytes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from flux._internal.asgi import Receive, Scope
from flux.http.headers import Headers
from flux.http.query import QueryParams


def _check_size(size: int, limit: int | None) -> None:
    if limit is not None and size > limit:
        msg = f"Request body exceeds {limit} bytes"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Request:
    """An HTTP request as seen by the dispatcher and the handlers."""

    method: str
    path: str
    headers: Headers
    query: QueryParams
    _receive: Receive = field(repr=False)
    # Mutable holder so the frozen request can still keep its body
    _buffered: dict[str, bytes] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers.from_asgi(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """Declared body size, or None when absent or not a number."""
        raw = self.headers.get("content-length")
        if raw is None or not raw.isdigit():
            return None
        return int(raw)

    @property
    def body_consumed(self) -> bool:
        return "body" in self._buffered

    async def body(self, *, limit: int | None = None) -> bytes:
        """Return the whole body, reading it from the transport only once.

        Raises:
            ValueError: If *limit* is given and the body (declared or
                actual) is larger.
            ConnectionResetError: If the client goes away mid-body.
        """
        if "body" in self._buffered:
            data = self._buffered["body"]
            _check_size(len(data), limit)
            return data

        _check_size(self.content_length or 0, limit)
        buf = bytearray()
        async for chunk in self.stream():
            buf += chunk
            _check_size(len(buf), limit)
        data = self._buffered["body"] = bytes(buf)
        return data

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield body chunks straight off the receive channel, uncached."""
        more = True
        while more:
            message: dict[str, Any] = dict(await self._receive())
            if message["type"] == "http.disconnect":
                msg = "Client disconnected before the request body was complete"
                raise ConnectionResetError(msg)
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            more = message.get("more_body", False)
