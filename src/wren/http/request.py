"""Incoming requests, and the response state handlers build up beside them."""

from __future__ import annotations

import json as jsonlib
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from wren._internal.types import Receive
from wren.http.cookies import parse_cookies
from wren.http.headers import Headers
from wren.http.query import QueryParams

if TYPE_CHECKING:
    from wren.http.response import Response
    from wren.modules.registry import ModuleRegistry


_BODY = "body"


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(slots=True)
class PendingResponse:
    """Status and headers decided before the response is built.

    Handlers and the cache controller annotate this; the route wrapper
    copies it onto the single ``Response`` that is sent.
    """

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)

    def set_header(self, name: str, value: str) -> None:
        # Header names are case-insensitive; keep one entry per name.
        for existing in list(self.headers):
            if existing.lower() == name.lower():
                del self.headers[existing]
        self.headers[name] = value

    def get_header(self, name: str) -> str | None:
        for existing, value in self.headers.items():
            if existing.lower() == name.lower():
                return value
        return None

    def apply(self, response: Response) -> Response:
        """Copy the pending status and headers onto *response*.

        A status or header the response already carries wins.
        """
        if self.status != 200 and response.status == 200:
            response = response.with_status(self.status)
        for name, value in self.headers.items():
            if response.header(name) is None:
                response = response.with_header(name, value)
        return response


@dataclass(frozen=True, slots=True)
class Request:
    """One incoming request.

    The fields are frozen; middleware that learns something (the session,
    the user) hands a ``dataclasses.replace()`` copy down the chain.
    ``session``, ``data`` and ``response`` are containers a handler fills
    in place. The body is read lazily, once, with ``await request.body()``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    path_params: dict[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)

    session: dict[str, Any] = field(default_factory=dict)
    user: Any = None
    scene: str = "public"

    data: dict[str, Any] = field(default_factory=dict)
    response: PendingResponse = field(default_factory=PendingResponse)

    modules: ModuleRegistry | None = field(default=None, repr=False, compare=False)

    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)
    # Holds the body once read; copies made by replace() share it.
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(
        cls,
        scope: Mapping[str, Any],
        receive: Receive,
        *,
        modules: ModuleRegistry | None = None,
    ) -> Request:
        headers = Headers.from_asgi(scope.get("headers", ()))
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            modules=modules,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        query = self.query.raw.decode("latin-1")
        return f"{self.path}?{query}" if query else self.path

    async def stream(self) -> AsyncGenerator[bytes]:
        """Body chunks straight from the server. Bypasses the body cache."""
        more = True
        while more:
            message = await self._receive()
            if chunk := message.get("body", b""):
                yield chunk
            more = message.get("more_body", False)

    async def body(self) -> bytes:
        if _BODY not in self._cache:
            self._cache[_BODY] = b"".join([chunk async for chunk in self.stream()])
        return self._cache[_BODY]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """The body decoded as JSON; ``None`` when there is no body."""
        raw = await self.body()
        return jsonlib.loads(raw) if raw else None
