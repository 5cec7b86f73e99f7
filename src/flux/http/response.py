"""Response writing.

Handlers mutate a ``ResponseWriter``: set headers, write the status
once, append body bytes. The server flushes it to the transport after
the chain finishes. ``Response`` is the immutable snapshot the test
client hands back.
"""

import json
import logging
from dataclasses import dataclass

logger = logging.getLogger("flux.server")


class ResponseWriter:
    """Buffered, write-once-status response writer.

    Headers may be changed freely until the status is written; after
    that the header set is frozen, as with any HTTP/1.1 transport.
    A second ``write_header()`` is ignored and logged.
    """

    __slots__ = ("_chunks", "_headers", "_sent_headers", "_status")

    def __init__(self) -> None:
        self._headers: dict[str, str] = {}
        self._sent_headers: tuple[tuple[str, str], ...] = ()
        self._status: int | None = None
        self._chunks: list[bytes] = []

    # -- Headers --

    def set_header(self, name: str, value: str) -> None:
        """Set (replace) a response header."""
        self._headers[name.lower()] = value

    def get_header(self, name: str) -> str | None:
        """Return a pending response header, or None."""
        return self._headers.get(name.lower())

    def delete_header(self, name: str) -> None:
        self._headers.pop(name.lower(), None)

    # -- Status and body --

    def write_header(self, status: int) -> None:
        """Write the status line and freeze the headers."""
        if self._status is not None:
            logger.warning(
                "superfluous write_header call: status %d already written, ignoring %d",
                self._status,
                status,
            )
            return
        self._status = status
        self._sent_headers = tuple(self._headers.items())

    def write(self, data: bytes | str) -> int:
        """Append body bytes, writing an implicit 200 status first if needed."""
        if self._status is None:
            self.write_header(200)
        chunk = data.encode("utf-8") if isinstance(data, str) else data
        self._chunks.append(chunk)
        return len(chunk)

    @property
    def written(self) -> bool:
        """True once a status has been written."""
        return self._status is not None

    @property
    def status(self) -> int | None:
        return self._status

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        """The headers that will go on the wire."""
        if self._status is None:
            return tuple(self._headers.items())
        return self._sent_headers

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)


@dataclass(frozen=True, slots=True)
class Response:
    """A completed HTTP response, as received by a client."""

    status: int
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Return the first value of a header (case-insensitive), or None."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> object:
        """Body parsed as JSON."""
        return json.loads(self.body)
