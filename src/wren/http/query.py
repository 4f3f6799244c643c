"""Query string parameters."""

from urllib.parse import parse_qsl

from wren.http._multi import MultiMapping


class QueryParams(MultiMapping):
    """Parsed query string. Blank values are kept, as ``""``.

    ``QueryParams(b"tag=a&tag=b")["tag"]`` is ``"a"``;
    ``get_list("tag")`` is ``["a", "b"]``.
    """

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        super().__init__(parse_qsl(query_string.decode("latin-1"), keep_blank_values=True))

    @property
    def raw(self) -> bytes:
        """The query string exactly as received."""
        return self._raw
