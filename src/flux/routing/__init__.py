"""Routing — route descriptors, groups, and the exact-match dispatch table.

Routes are registered on an ``Engine`` during setup and snapshotted into
an immutable ``RouteTable`` when the engine is applied.
"""

from flux.routing.group import RouteGroup
from flux.routing.route import MountedRoute, Route
from flux.routing.table import RouteTable

__all__ = ["MountedRoute", "Route", "RouteGroup", "RouteTable"]
