"""Flux exception hierarchy.

Shared across the engine, router, context, and binding layers so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class FluxError(Exception):
    """Base for all flux-specific errors."""


class ConfigurationError(FluxError):
    """Raised when route registration is invalid.

    Detected by ``Engine.apply()`` before the server starts serving.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(FluxError):
    """An error that maps directly to an HTTP status code.

    Raised by the route table when a request cannot be dispatched.
    The server turns these into responses before any handler runs.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route is registered for the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path is registered, but not for this HTTP method.

    Carries an ``Allow`` header listing the registered methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class BodyParseError(FluxError):
    """The request body could not be read or parsed.

    Raised by ``Context.parse_body()`` for a malformed ``Content-Type``,
    an oversized or malformed multipart body, or a transport read failure.
    """


class DeserializationError(FluxError):
    """The cached body is not valid JSON for the requested target."""


class SerializationError(FluxError):
    """A value passed to ``Context.json()`` could not be encoded."""


class ValidationError(FluxError):
    """A bound value failed a field-level validation rule.

    Attributes:
        field: Name of the failing field.
        rule: Name of the rule that failed (``"required"``, ``"email"``, ...).
    """

    def __init__(self, field: str, rule: str, message: str) -> None:
        self.field = field
        self.rule = rule
        super().__init__(message)
