"""Read-only multi-value mapping shared by headers, query strings, and forms."""

from collections.abc import Iterable, Iterator, Mapping


class MultiDict(Mapping[str, str]):
    """Maps each key to one or more string values, in arrival order.

    Indexing returns the first value; ``get_list`` returns all of them.
    Subclasses may fold keys (headers lowercase them).
    """

    __slots__ = ("_values",)

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        grouped: dict[str, list[str]] = {}
        for key, value in pairs:
            grouped.setdefault(self._fold(key), []).append(value)
        self._values = grouped

    @staticmethod
    def _fold(key: str) -> str:
        return key

    def __getitem__(self, key: str) -> str:
        return self._values[self._fold(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*; empty if there is none."""
        return list(self._values.get(self._fold(key), ()))
