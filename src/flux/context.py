"""Per-request context and chain traversal.

A ``Context`` is built fresh for every dispatched request and handed to
each handler in the route's chain. It carries the request, the response
writer, the client identity filled in by the auth hook, the parsed body,
and a lock-guarded store for arbitrary per-request data.

Chain control:

- ``return Flow.CONTINUE``: proceed to the next handler.
- ``await ctx.next()``: run the rest of the chain now, then resume
  (for middleware that works before and after the handlers below it).
- ``return None`` (or ``Flow.STOP``): stop; the chain ends without being
  aborted, and ``next()`` loops further up the stack do not resume it.
- Sync handlers cannot await, so they return ``Flow.CONTINUE``; calling
  ``ctx.next()`` from one without awaiting it raises ``RuntimeError``.
- ``ctx.abort()``: no later handler runs, even from ``next()`` calls
  already on the stack.
"""

import dataclasses
import enum
import inspect
import json as json_module
import threading
import time
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeAlias

from flux._internal.invoke import invoke
from flux._internal.types import HandlerFunc
from flux.binding import Schema, bind_json, check_target
from flux.config import EngineConfig
from flux.errors import BodyParseError, SerializationError
from flux.http.forms import FormData, parse_media_type, parse_multipart, parse_urlencoded
from flux.http.query import QueryParams
from flux.http.request import Request
from flux.http.response import ResponseWriter

H: TypeAlias = dict[str, Any]
"""Shortcut for JSON payloads: ``ctx.json(200, H(status="ok"))``."""


class Flow(enum.Enum):
    """Signal a handler returns to steer chain traversal."""

    CONTINUE = "continue"
    STOP = "stop"


@dataclass(slots=True)
class Client:
    """Identity of the caller.

    The dispatcher fills in ``session_token`` from the ``Authorization``
    header; the auth hook (or a middleware) fills in the rest.
    """

    user_id: int = 0
    role_id: int = 0
    session_token: str = ""


class Context:
    """Mutable state for one request, owned by that request's task."""

    __slots__ = (
        "_custom_data",
        "_lock",
        "_max_multipart_size",
        "_next_call",
        "aborted",
        "allowed_roles",
        "body",
        "chain",
        "client",
        "created_at",
        "form",
        "full_path",
        "index",
        "multipart_form",
        "request",
        "status_code",
        "stopped",
        "writer",
    )

    def __init__(
        self,
        writer: ResponseWriter,
        request: Request,
        *,
        full_path: str = "",
        chain: tuple[HandlerFunc, ...] = (),
        client: Client | None = None,
        allowed_roles: frozenset[int] = frozenset(),
        config: EngineConfig | None = None,
    ) -> None:
        self.writer = writer
        self.request = request
        self.full_path = full_path
        self.client = client or Client()
        self.allowed_roles = allowed_roles

        # Populated by parse_body()
        self.body: bytes | None = None
        self.multipart_form: FormData | None = None
        self.form: FormData | None = None

        self.chain = chain
        self.index = 0
        self.aborted = False
        self.stopped = False
        self._next_call: Coroutine[Any, Any, None] | None = None
        self.status_code = 200
        self.created_at = time.time()

        self._lock = threading.Lock()
        self._custom_data: dict[str, Any] | None = None
        self._max_multipart_size = (config or EngineConfig()).max_multipart_size

    def __repr__(self) -> str:
        return (
            f"<Context {self.request.method} {self.full_path!r} "
            f"index={self.index}/{len(self.chain)} aborted={self.aborted}>"
        )

    # -- Chain control --

    def next(self) -> Coroutine[Any, Any, None]:
        """Run handlers from the cursor until one stops the chain.

        Must be awaited. The abort and stop flags are checked before every
        handler, so a handler that aborts or stops deep in the chain also
        halts the loops of ``next()`` calls further up the stack. Past the
        end of the chain, or once stopped, this is a no-op.

        Sync handlers return ``Flow.CONTINUE`` instead of calling this.
        """
        call = self._traverse()
        self._next_call = call
        return call

    async def _traverse(self) -> None:
        while self.index < len(self.chain) and not (self.aborted or self.stopped):
            handler = self.chain[self.index]
            self.index += 1
            self._next_call = None
            result = await invoke(handler, self)
            self._check_next_awaited(handler)
            if result is not Flow.CONTINUE:
                self.stopped = True
                return

    def _check_next_awaited(self, handler: HandlerFunc) -> None:
        call = self._next_call
        if call is not None and inspect.getcoroutinestate(call) == inspect.CORO_CREATED:
            call.close()
            name = getattr(handler, "__qualname__", repr(handler))
            msg = (
                f"{name} called ctx.next() without awaiting it. "
                "Sync handlers should return Flow.CONTINUE instead."
            )
            raise RuntimeError(msg)

    def abort(self) -> None:
        """Stop all pending handlers from executing."""
        self.aborted = True

    def abort_with_status(self, code: int) -> None:
        self.abort()
        self.status(code)

    def abort_with_status_json(self, code: int, payload: Any) -> None:
        self.abort()
        self.json(code, payload)

    # -- Custom data --

    def set(self, key: str, value: Any) -> None:
        """Store a value for later handlers of this request."""
        with self._lock:
            if self._custom_data is None:
                self._custom_data = {}
            self._custom_data[key] = value

    def get(self, key: str) -> tuple[Any, bool]:
        """Return ``(value, True)``, or ``(None, False)`` if *key* was never set."""
        with self._lock:
            if self._custom_data is None or key not in self._custom_data:
                return None, False
            return self._custom_data[key], True

    # -- Response --

    def status(self, code: int) -> None:
        """Record and write the HTTP status code. Call once per response."""
        self.status_code = code
        self.writer.write_header(code)

    def json(self, code: int, data: Any) -> None:
        """Write *data* as a JSON response with status *code*.

        The content type and status are written before encoding.

        Raises:
            SerializationError: If *data* cannot be encoded. Headers and
                status already written are left as they are.
        """
        self.writer.set_header("Content-Type", "application/json")
        self.status(code)
        try:
            encoded = json_module.dumps(
                data, separators=(",", ":"), allow_nan=False, default=_encode_default
            )
        except (TypeError, ValueError) as exc:
            msg = f"cannot encode {type(data).__name__} as JSON: {exc}"
            raise SerializationError(msg) from exc
        self.writer.write(encoded + "\n")

    # -- Request helpers --

    def header(self, name: str) -> str | None:
        """Return a request header value, or None."""
        return self.request.headers.get(name)

    @property
    def query(self) -> QueryParams:
        return self.request.query

    def elapsed(self) -> float:
        """Seconds since this context was created."""
        return time.time() - self.created_at

    # -- Binding --

    def bind_json(self, target: Any) -> Any:
        """Decode the cached body into *target* and return the bound object.

        *target* is a dataclass type (a new instance is returned), a
        mutable dataclass instance, or a dict (both updated in place).

        Raises:
            TypeError: If *target* is none of the above.
            DeserializationError: If the body is not valid JSON for *target*.
        """
        return bind_json(self.body, target)

    def should_bind_json(self, target: Any, schema: Schema | None = None) -> Any:
        """Bind like ``bind_json()``, then validate.

        Dataclass targets are checked against the rules declared with
        ``binding()``; pass *schema* to validate a dict target.

        Raises:
            TypeError: If *target* cannot be bound into.
            DeserializationError: If the body is not valid JSON for *target*.
            ValidationError: For the first failing rule, in field order.
        """
        check_target(target)
        obj = self.bind_json(target)
        if schema is None and dataclasses.is_dataclass(obj):
            schema = Schema.for_type(type(obj))
        if schema is not None:
            schema.validate(obj)
        return obj

    # -- Body parsing --

    async def parse_body(self) -> None:
        """Read and parse the request body once.

        ``multipart/form-data`` fills ``multipart_form`` (capped at the
        configured size) and leaves ``body`` unset. Anything else is
        buffered into ``body``; URL-encoded forms are also parsed into
        ``form``. A second call is a no-op.

        Raises:
            BodyParseError: For a malformed Content-Type, an oversized or
                malformed multipart body, or a failed read.
        """
        if self.body is not None or self.multipart_form is not None:
            return

        media_type = ""
        content_type = self.request.content_type
        if content_type:
            try:
                media_type, _ = parse_media_type(content_type)
            except ValueError as exc:
                raise BodyParseError(str(exc)) from exc

        try:
            if media_type == "multipart/form-data":
                raw = await self.request.body(limit=self._max_multipart_size)
                self.multipart_form = parse_multipart(raw, content_type or "")
                return

            raw = await self.request.body()
            if media_type == "application/x-www-form-urlencoded":
                self.form = parse_urlencoded(raw)
        except (ValueError, OSError) as exc:
            raise BodyParseError(str(exc)) from exc

        self.body = raw


def _encode_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
