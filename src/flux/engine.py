"""Flux engine and server.

``Engine`` is mutable during setup (routes, groups, middleware, auth hook).
``Engine.apply()`` freezes it into a ``Server``: an immutable ASGI
application holding its own dispatch table.
"""

from __future__ import annotations

import logging

from flux._internal.asgi import Receive, Scope, Send
from flux._internal.invoke import invoke
from flux._internal.types import AuthFunc, HandlerFunc
from flux.config import EngineConfig
from flux.context import Client, Context, H
from flux.errors import BodyParseError, ConfigurationError, HTTPError, NotFound
from flux.http.request import Request
from flux.http.response import ResponseWriter
from flux.middleware.cors import allow_all_cors
from flux.routing.group import RouteGroup
from flux.routing.route import METHODS, MountedRoute, Route
from flux.routing.table import RouteTable
from flux.server.sender import send_response

logger = logging.getLogger("flux.server")

_BEARER_PREFIX = "Bearer "


class Engine:
    """Route registration for a flux application.

    Usage::

        engine = Engine()
        engine.use_auth(load_client)

        engine.get("/health", health)

        api = engine.group("api")
        api.post("/posts", create_post).auth()

        server = engine.apply()   # ASGI app; serve with any ASGI server

    Top-level routes get only their own middlewares. Global middlewares
    reach routes through groups, which copy them when created.

    Thread safety:
        Registration is single-threaded setup work. After ``apply()`` the
        engine refuses further registration and the returned ``Server``
        is immutable.
    """

    __slots__ = (
        "_applied",
        "_auth_func",
        "_global_middlewares",
        "_route_groups",
        "_routes",
        "config",
    )

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config: EngineConfig = config or EngineConfig()
        self._routes: list[Route] = []
        self._route_groups: list[RouteGroup] = []
        self._auth_func: AuthFunc | None = None
        self._global_middlewares: list[HandlerFunc] = []
        self._applied = False

    # -- Auth and middleware --

    def use_auth(self, auth_func: AuthFunc) -> None:
        """Install the auth hook run before the chain of ``auth()`` routes.

        The hook receives the Context and fills in ``ctx.client``; it may
        abort the request. A second call replaces the first hook.
        """
        self._check_not_applied()
        self._auth_func = auth_func

    def allow_all_cors(self) -> None:
        """Put a permissive CORS handler ahead of all global middlewares.

        Like any global middleware it reaches only groups created afterwards.
        ``OPTIONS`` preflight is answered for the paths of those routes; other
        paths keep their normal 405.
        """
        self._check_not_applied()
        self._global_middlewares.insert(0, allow_all_cors)

    def use(self, *middlewares: HandlerFunc) -> None:
        """Append global middlewares (copied into groups created later)."""
        self._check_not_applied()
        self._global_middlewares.extend(middlewares)

    # -- Route registration --

    def register(self, path: str, method: str, handler: HandlerFunc) -> Route:
        """Register a top-level route with no middlewares and no auth.

        Raises:
            ConfigurationError: If *method* is not GET, POST, PUT, PATCH or DELETE.
        """
        self._check_not_applied()
        method = method.upper()
        if method not in METHODS:
            msg = f"Unsupported method {method!r} for route {path!r}."
            raise ConfigurationError(msg)
        route = Route(path, method, handler)
        self._routes.append(route)
        return route

    def get(self, path: str, handler: HandlerFunc) -> Route:
        return self.register(path, "GET", handler)

    def post(self, path: str, handler: HandlerFunc) -> Route:
        return self.register(path, "POST", handler)

    def put(self, path: str, handler: HandlerFunc) -> Route:
        return self.register(path, "PUT", handler)

    def patch(self, path: str, handler: HandlerFunc) -> Route:
        return self.register(path, "PATCH", handler)

    def delete(self, path: str, handler: HandlerFunc) -> Route:
        return self.register(path, "DELETE", handler)

    def group(self, prefix: str) -> RouteGroup:
        """Create a group mounted under ``"/" + prefix``.

        Pass the prefix without a leading slash: ``engine.group("api")``.
        """
        self._check_not_applied()
        group = RouteGroup("/" + prefix, self._global_middlewares)
        self._route_groups.append(group)
        return group

    # -- Freeze --

    def apply(self) -> Server:
        """Freeze the engine and return the server that dispatches its routes.

        Raises:
            ConfigurationError: If a (method, path) pair is registered twice.
            RuntimeError: If the engine was already applied.
        """
        self._check_not_applied()
        mounted = [route.mount() for route in self._routes]
        for group in self._route_groups:
            mounted.extend(route.mount(group.base_path) for route in group.routes)

        server = Server(
            RouteTable(mounted),
            auth_func=self._auth_func,
            config=self.config,
        )
        self._applied = True
        logger.debug("applied %d routes", len(mounted))
        return server

    def _check_not_applied(self) -> None:
        if self._applied:
            msg = (
                "Cannot modify the engine after apply(). "
                "Register routes, groups, and middleware before freezing."
            )
            raise RuntimeError(msg)


class Server:
    """The frozen, request-serving side of an engine.

    An ASGI 3.0 application. Each request gets a fresh ``Context``; the
    route table, auth hook, and config are shared read-only.
    """

    __slots__ = ("_auth_func", "_preflight_paths", "_table", "config")

    def __init__(
        self,
        table: RouteTable,
        *,
        auth_func: AuthFunc | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._table = table
        self._auth_func = auth_func
        # Paths where some route runs the CORS handler; only these answer preflight
        self._preflight_paths = frozenset(
            route.path for route in table.routes if allow_all_cors in route.chain
        )
        self.config = config or EngineConfig()

    @property
    def routes(self) -> tuple[MountedRoute, ...]:
        """Every mounted route, top-level routes first."""
        return self._table.routes

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        writer = ResponseWriter()

        if request.method == "OPTIONS" and request.path in self._preflight_paths:
            await self._serve_preflight(request, writer)
            await send_response(writer, send)
            return

        try:
            route = self._table.match(request.method, request.path)
        except HTTPError as exc:
            self._write_http_error(exc, request, writer)
            await send_response(writer, send)
            return

        try:
            await self._dispatch(route, request, writer)
        except Exception as exc:
            await self.recover_panic(request, exc)
            if not writer.written:
                # Nothing was written: completing the response is left to the transport
                return

        await send_response(writer, send)

    async def _dispatch(self, route: MountedRoute, request: Request, writer: ResponseWriter) -> None:
        ctx = self._new_context(writer, request, route)

        if route.require_auth and self._auth_func is not None:
            await invoke(self._auth_func, ctx)
            if ctx.aborted:
                return

        try:
            await ctx.parse_body()
        except BodyParseError as exc:
            logger.debug("body parse failed for %s %s: %s", request.method, request.path, exc)
            ctx.abort_with_status_json(500, H(error="couldn't parse request body"))
            return

        await ctx.next()

    def _new_context(self, writer: ResponseWriter, request: Request, route: MountedRoute) -> Context:
        return Context(
            writer,
            request,
            full_path=route.path,
            chain=route.chain,
            client=Client(session_token=extract_token(request.headers.get("authorization"))),
            allowed_roles=route.allowed_roles,
            config=self.config,
        )

    async def _serve_preflight(self, request: Request, writer: ResponseWriter) -> None:
        ctx = Context(writer, request, full_path=request.path, chain=(allow_all_cors,), config=self.config)
        ctx.set("flux.allowed_methods", self._table.allowed_methods(request.path))
        await ctx.next()

    def _write_http_error(self, exc: HTTPError, request: Request, writer: ResponseWriter) -> None:
        level = logging.INFO if self.config.debug else logging.DEBUG
        logger.log(level, "%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
        for name, value in exc.headers:
            writer.set_header(name, value)
        if isinstance(exc, NotFound):
            writer.set_header("Content-Type", "text/plain; charset=utf-8")
            writer.write_header(exc.status)
            writer.write(self.config.not_found_body)
        else:
            writer.write_header(exc.status)

    async def recover_panic(self, request: Request, exc: BaseException) -> None:
        """Log an exception that escaped the auth hook or a handler.

        The log carries the endpoint and the request body. Nothing is
        written to the client: whatever the handlers wrote before the
        failure is the final response.
        """
        try:
            if request.body_consumed:
                body = await request.body()
            else:
                # Unread bodies are logged only up to the multipart cap
                body = await request.body(limit=self.config.max_multipart_size)
        except Exception:  # noqa: BLE001
            body = b""
        logger.error(
            "[PANIC RECOVERED]:\n%s\nEndpoint: %s\nBody: %s\n",
            exc,
            request.path,
            body.decode("utf-8", errors="replace"),
            exc_info=exc,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Acknowledge the ASGI lifespan protocol; the server has no hooks."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


def extract_token(header: str | None) -> str:
    """Return the bearer token from an ``Authorization`` header value.

    The ``"Bearer "`` prefix is stripped only when something follows it;
    any other value is returned as-is.
    """
    if header is None:
        return ""
    if len(header) > len(_BEARER_PREFIX) and header.startswith(_BEARER_PREFIX):
        return header[len(_BEARER_PREFIX):]
    return header
