"""Flux — a minimal HTTP routing and middleware-dispatch core.

Routes match by exact path and verb. Each request gets a mutable
``Context`` that flows through the route's handler chain with explicit
continue/abort control.

Basic usage::

    from flux import Engine, H

    engine = Engine()

    def health(ctx):
        ctx.json(200, H(status="ok"))

    engine.get("/health", health)

    api = engine.group("api")
    api.get("/ping", lambda ctx: ctx.json(200, H(pong=True)))

    server = engine.apply()  # ASGI app, serve with any ASGI server
"""

__version__ = "0.1.0-dev"
__all__ = [
    "BodyParseError",
    "Client",
    "ConfigurationError",
    "Context",
    "DeserializationError",
    "Engine",
    "EngineConfig",
    "Flow",
    "FluxError",
    "H",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
    "Route",
    "RouteGroup",
    "SerializationError",
    "Server",
    "ValidationError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import flux`` fast while providing a clean top-level API.
    """
    if name in ("Engine", "Server"):
        from flux import engine as _engine

        return getattr(_engine, name)

    if name == "EngineConfig":
        from flux.config import EngineConfig

        return EngineConfig

    if name in ("Client", "Context", "Flow", "H"):
        from flux import context as _ctx

        return getattr(_ctx, name)

    if name in ("Route", "RouteGroup"):
        from flux import routing as _routing

        return getattr(_routing, name)

    if name in (
        "BodyParseError",
        "ConfigurationError",
        "DeserializationError",
        "FluxError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "SerializationError",
        "ValidationError",
    ):
        from flux import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
