"""Wren exception hierarchy.

Shared across the registry, compiler, wrappers and middleware so every
module raises and catches the same types.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when modules or the app are configured incorrectly.

    Raised at boot (alias collisions, duplicate routes, malformed route
    declarations). The app never starts serving after one of these.
    """


class ApiError(WrenError):
    """A named error that maps onto the error taxonomy.

    The ``name`` is looked up in the app's error kinds to pick the HTTP
    status. When it is known, ``message``, ``data`` and ``path`` are sent
    to the client as-is, so only put safe-to-expose values here::

        raise ApiError("notfound", "No such article.")
        raise ApiError("required", path="title")
    """

    def __init__(
        self,
        name: str,
        message: str = "",
        data: Mapping[str, Any] | None = None,
        *,
        path: str | None = None,
    ) -> None:
        super().__init__(message or name)
        self.name = name
        self.message = message or name
        self.data: dict[str, Any] = dict(data or {})
        self.path = path

    def __repr__(self) -> str:
        return f"ApiError({self.name!r}, {self.message!r})"


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router or middleware. Normalized like any other error;
    the status is taken from the taxonomy when ``name`` is known, and
    from ``status`` otherwise.
    """

    name: ClassVar[str] = "http"

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    name: ClassVar[str] = "notfound"

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    name: ClassVar[str] = "method-not-allowed"

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


# Error name -> HTTP status. Names outside this mapping are "unknown"
# and always answered with a generic 500.
DEFAULT_ERROR_STATUSES: Mapping[str, int] = {
    "invalid": 400,
    "required": 400,
    "min": 400,
    "max": 400,
    "forbidden": 403,
    "notfound": 404,
    "method-not-allowed": 405,
    "conflict": 409,
    "locked": 409,
    "unprocessable": 422,
    "unimplemented": 501,
}
