"""Request headers, case-insensitive."""

from collections.abc import Iterable, Mapping

from wren.http._multi import MultiMapping


class Headers(MultiMapping):
    """Case-insensitive request headers.

    ``headers["Content-Type"]`` and ``headers["content-type"]`` are the
    same lookup. Repeated headers are kept; see ``get_list``.
    """

    __slots__ = ()

    @staticmethod
    def fold(key: str) -> str:
        return key.lower()

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> "Headers":
        """Decode the ``headers`` list of an ASGI scope (latin-1, per HTTP)."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> "Headers":
        return cls(headers.items())
