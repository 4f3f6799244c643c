"""Read-only multi-value mapping shared by headers and query strings."""

from collections.abc import Iterable, Iterator, Mapping


class MultiMapping(Mapping[str, str]):
    """Ordered ``(key, value)`` pairs, looked up by key.

    Indexing returns the first value for a key; ``get_list`` returns all
    of them. Subclasses decide how keys compare by overriding ``fold``.
    """

    __slots__ = ("_index", "_pairs")

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        self._pairs = tuple(pairs)
        index: dict[str, list[str]] = {}
        for key, value in self._pairs:
            index.setdefault(self.fold(key), []).append(value)
        self._index = index

    @staticmethod
    def fold(key: str) -> str:
        return key

    def __getitem__(self, key: str) -> str:
        return self._index[self.fold(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.fold(key) in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._pairs)!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._index.get(self.fold(key), ()))

    def pairs(self) -> tuple[tuple[str, str], ...]:
        """Every pair, repeated keys included, in original order."""
        return self._pairs
