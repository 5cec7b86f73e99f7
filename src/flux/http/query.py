"""URL query string parameters."""

from urllib.parse import parse_qsl

from flux.http.multidict import MultiDict


class QueryParams(MultiDict):
    """Parsed query string. Blank values (``?flag=``) are kept."""

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qsl(query_string.decode("latin-1"), keep_blank_values=True))
        self._raw = query_string

    @property
    def raw(self) -> bytes:
        """The query string as it arrived."""
        return self._raw
