"""Tests for flux.routing — route descriptors, groups, and the dispatch table."""

import pytest

from flux.errors import ConfigurationError, MethodNotAllowed, NotFound
from flux.routing import MountedRoute, Route, RouteGroup, RouteTable


def handler(ctx):
    return None


def mw_a(ctx):
    return None


def mw_b(ctx):
    return None


def mw_c(ctx):
    return None


class TestRoute:
    def test_defaults(self) -> None:
        route = Route("/health", "GET", handler)
        assert route.middlewares == []
        assert route.require_auth is False
        assert route.allowed_roles == []

    def test_auth_returns_route(self) -> None:
        route = Route("/x", "GET", handler)
        assert route.auth() is route
        assert route.require_auth is True

    def test_roles_imply_auth(self) -> None:
        route = Route("/x", "GET", handler).roles(1, 2)
        assert route.require_auth is True
        assert route.allowed_roles == [1, 2]

    def test_use_appends(self) -> None:
        route = Route("/x", "GET", handler, middlewares=[mw_a]).use(mw_b, mw_c)
        assert route.middlewares == [mw_a, mw_b, mw_c]

    def test_mount_builds_chain_with_handler_last(self) -> None:
        route = Route("/ping", "GET", handler, middlewares=[mw_a, mw_b]).roles(3)
        mounted = route.mount("/api")
        assert mounted == MountedRoute(
            path="/api/ping",
            method="GET",
            chain=(mw_a, mw_b, handler),
            require_auth=True,
            allowed_roles=frozenset({3}),
        )
        assert mounted.handler is handler

    def test_mount_is_a_snapshot(self) -> None:
        route = Route("/x", "GET", handler)
        mounted = route.mount()
        route.use(mw_a)
        assert mounted.chain == (handler,)


class TestRouteGroup:
    def test_copies_initial_middlewares(self) -> None:
        source = [mw_a]
        group = RouteGroup("/api", source)
        source.append(mw_b)
        assert group.middlewares == [mw_a]

    def test_use_returns_group(self) -> None:
        group = RouteGroup("/api")
        assert group.use(mw_a) is group

    def test_verbs(self) -> None:
        group = RouteGroup("/api")
        routes = [
            group.get("/r", handler),
            group.post("/r", handler),
            group.put("/r", handler),
            group.patch("/r", handler),
            group.delete("/r", handler),
        ]
        assert [r.method for r in routes] == ["GET", "POST", "PUT", "PATCH", "DELETE"]
        assert group.routes == routes

    def test_route_snapshots_group_middlewares(self) -> None:
        group = RouteGroup("/api", [mw_a])
        early = group.get("/early", handler)
        group.use(mw_b)
        late = group.get("/late", handler)

        assert early.middlewares == [mw_a]
        assert late.middlewares == [mw_a, mw_b]

    def test_route_use_does_not_leak_into_group(self) -> None:
        group = RouteGroup("/api", [mw_a])
        group.get("/one", handler).use(mw_c)
        other = group.get("/two", handler)
        assert group.middlewares == [mw_a]
        assert other.middlewares == [mw_a]


class TestRouteTable:
    def _table(self) -> RouteTable:
        return RouteTable(
            [
                Route("/users", "GET", handler).mount(),
                Route("/users", "POST", handler).mount(),
                Route("/health", "GET", handler).mount(),
            ]
        )

    def test_match(self) -> None:
        route = self._table().match("POST", "/users")
        assert route.method == "POST"
        assert route.path == "/users"

    def test_unknown_path(self) -> None:
        with pytest.raises(NotFound) as exc_info:
            self._table().match("GET", "/nope")
        assert exc_info.value.status == 404

    def test_exact_match_only(self) -> None:
        with pytest.raises(NotFound):
            self._table().match("GET", "/users/")

    def test_wrong_method(self) -> None:
        with pytest.raises(MethodNotAllowed) as exc_info:
            self._table().match("DELETE", "/users")
        assert exc_info.value.status == 405
        assert exc_info.value.headers == (("Allow", "GET, POST"),)

    def test_duplicate_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate route"):
            RouteTable([Route("/a", "GET", handler).mount(), Route("/a", "GET", handler).mount()])

    def test_introspection(self) -> None:
        table = self._table()
        assert len(table) == 3
        assert "/users" in table
        assert "/missing" not in table
        assert table.allowed_methods("/users") == frozenset({"GET", "POST"})
        assert table.allowed_methods("/missing") == frozenset()
        assert [r.path for r in table.routes] == ["/users", "/users", "/health"]
