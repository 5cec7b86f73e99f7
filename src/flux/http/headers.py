"""Case-insensitive request headers."""

from collections.abc import Iterable

from flux.http.multidict import MultiDict


class Headers(MultiDict):
    """Request headers; ``headers["Content-Type"]`` and ``headers["content-type"]`` agree."""

    __slots__ = ()

    @staticmethod
    def _fold(key: str) -> str:
        return key.lower()

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> "Headers":
        """Decode the ``(name, value)`` byte pairs of an ASGI scope."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)
