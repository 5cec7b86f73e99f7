"""Flushing a ResponseWriter over ASGI."""

from flux._internal.asgi import Send
from flux.http.response import ResponseWriter


def allows_body(status: int) -> bool:
    """False for 1xx, 204 and 304, which never carry a message body."""
    return status >= 200 and status not in (204, 304)


async def send_response(writer: ResponseWriter, send: Send) -> None:
    """Send the writer's status, headers and buffered body.

    A writer nobody wrote to goes out as an implicit 200. The
    ``content-length`` header is always computed here; any value a
    handler set is dropped.
    """
    if not writer.written:
        writer.write_header(200)
    status = writer.status or 200
    body = writer.body if allows_body(status) else b""

    headers = [
        (name.encode("latin-1"), value.encode("latin-1"))
        for name, value in writer.headers
        if name != "content-length"
    ]
    headers.append((b"content-length", b"%d" % len(body)))

    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body})
