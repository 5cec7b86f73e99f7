"""Route groups — a path prefix plus a shared middleware list."""

from __future__ import annotations

from flux._internal.types import HandlerFunc
from flux.routing.route import Route


class RouteGroup:
    """Routes sharing a base path and a middleware list.

    The middleware list starts as a copy of the engine's global
    middlewares at the moment the group is created; later
    ``Engine.use()`` calls do not reach it. Each route in turn copies
    the group's list when it is registered, so ``group.use()`` affects
    only routes registered after the call.
    """

    __slots__ = ("base_path", "middlewares", "routes")

    def __init__(self, base_path: str, middlewares: list[HandlerFunc] | None = None) -> None:
        self.base_path = base_path
        self.middlewares: list[HandlerFunc] = list(middlewares or ())
        self.routes: list[Route] = []

    def __repr__(self) -> str:
        return f"<RouteGroup {self.base_path!r} routes={len(self.routes)}>"

    def use(self, *middlewares: HandlerFunc) -> RouteGroup:
        """Attach middlewares to routes registered on this group from now on."""
        self.middlewares.extend(middlewares)
        return self

    def get(self, path: str, handler: HandlerFunc) -> Route:
        return self._register(path, "GET", handler)

    def post(self, path: str, handler: HandlerFunc) -> Route:
        return self._register(path, "POST", handler)

    def put(self, path: str, handler: HandlerFunc) -> Route:
        return self._register(path, "PUT", handler)

    def patch(self, path: str, handler: HandlerFunc) -> Route:
        return self._register(path, "PATCH", handler)

    def delete(self, path: str, handler: HandlerFunc) -> Route:
        return self._register(path, "DELETE", handler)

    def _register(self, path: str, method: str, handler: HandlerFunc) -> Route:
        route = Route(path, method, handler, middlewares=list(self.middlewares))
        self.routes.append(route)
        return route
