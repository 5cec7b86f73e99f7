"""Route descriptor and its frozen, mounted form."""

from __future__ import annotations

from dataclasses import dataclass, field

from flux._internal.types import HandlerFunc

METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass(slots=True)
class Route:
    """One endpoint, mutable while the engine is being configured.

    Registration methods return the route so guards chain::

        engine.get("/admin/stats", stats).roles(ADMIN).use(audit)
    """

    path: str
    method: str
    handler: HandlerFunc
    middlewares: list[HandlerFunc] = field(default_factory=list)
    require_auth: bool = False
    allowed_roles: list[int] = field(default_factory=list)

    def auth(self) -> Route:
        """Guard the route with the engine's auth hook."""
        self.require_auth = True
        return self

    def roles(self, *roles: int) -> Route:
        """Record the roles allowed on this route; implies ``auth()``.

        The roles are exposed to the auth hook as ``ctx.allowed_roles``.
        """
        self.require_auth = True
        self.allowed_roles.extend(roles)
        return self

    def use(self, *middlewares: HandlerFunc) -> Route:
        """Attach middlewares that run after group/global ones, before the handler."""
        self.middlewares.extend(middlewares)
        return self

    def mount(self, prefix: str = "") -> MountedRoute:
        """Snapshot this route into its immutable serving form."""
        return MountedRoute(
            path=prefix + self.path,
            method=self.method,
            chain=(*self.middlewares, self.handler),
            require_auth=self.require_auth,
            allowed_roles=frozenset(self.allowed_roles),
        )


@dataclass(frozen=True, slots=True)
class MountedRoute:
    """A route as served: full path and the frozen handler chain."""

    path: str
    method: str
    chain: tuple[HandlerFunc, ...]
    require_auth: bool = False
    allowed_roles: frozenset[int] = frozenset()

    @property
    def handler(self) -> HandlerFunc:
        """The terminal handler (last in the chain)."""
        return self.chain[-1]
