"""Exact-match dispatch table.

Built once by ``Engine.apply()``; read-only afterwards, so concurrent
requests share it without locking.
"""

from collections.abc import Iterable
from types import MappingProxyType

from flux.errors import ConfigurationError, MethodNotAllowed, NotFound
from flux.routing.route import MountedRoute


class RouteTable:
    """Maps a literal path to its routes by HTTP method.

    No parameters, wildcards, or trailing-slash normalization: ``/users``
    and ``/users/`` are different paths.

    Usage::

        table = RouteTable([route.mount() for route in routes])
        mounted = table.match("GET", "/health")
    """

    __slots__ = ("_paths", "_routes")

    def __init__(self, routes: Iterable[MountedRoute]) -> None:
        paths: dict[str, dict[str, MountedRoute]] = {}
        ordered: list[MountedRoute] = []
        for route in routes:
            by_method = paths.setdefault(route.path, {})
            if route.method in by_method:
                msg = f"Duplicate route: {route.method} {route.path!r} is registered twice."
                raise ConfigurationError(msg)
            by_method[route.method] = route
            ordered.append(route)
        self._paths = MappingProxyType({p: MappingProxyType(m) for p, m in paths.items()})
        self._routes = tuple(ordered)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> tuple[MountedRoute, ...]:
        """All mounted routes in registration order."""
        return self._routes

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Methods registered for *path* (empty if the path is unknown)."""
        return frozenset(self._paths.get(path, ()))

    def match(self, method: str, path: str) -> MountedRoute:
        """Return the route for *method* and *path*.

        Raises ``NotFound`` if the path is not registered.
        Raises ``MethodNotAllowed`` if it is registered for other methods only.
        """
        by_method = self._paths.get(path)
        if by_method is None:
            raise NotFound(f"No route matches {method} {path!r}")
        route = by_method.get(method)
        if route is None:
            raise MethodNotAllowed(frozenset(by_method))
        return route
