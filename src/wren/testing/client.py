"""In-process client for exercising an App over ASGI without a socket."""

import json as jsonlib
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from wren.app import App
from wren.events import Event
from wren.http.response import Response

Message = dict[str, Any]


def _encode_headers(headers: dict[str, str] | None) -> list[tuple[bytes, bytes]]:
    return [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]


def http_scope(method: str, target: str, headers: dict[str, str] | None) -> Message:
    """An ASGI ``http`` scope for ``method target``; *target* may carry a query."""
    path, _, query = target.partition("?")
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": query.encode("latin-1"),
        "root_path": "",
        "headers": _encode_headers(headers),
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 0),
    }


@dataclass(slots=True)
class _Exchange:
    """One request body going in, the response messages coming out."""

    body: bytes
    delivered: bool = False
    status: int = 500
    raw_headers: list[tuple[bytes, bytes]] = field(default_factory=list)
    chunks: list[bytes] = field(default_factory=list)

    async def receive(self) -> Message:
        if self.delivered:
            return {"type": "http.disconnect"}
        self.delivered = True
        return {"type": "http.request", "body": self.body, "more_body": False}

    async def send(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
            self.raw_headers = list(message.get("headers", ()))
        elif message["type"] == "http.response.body":
            self.chunks.append(message.get("body", b""))

    def to_response(self) -> Response:
        content_type = "text/html; charset=utf-8"
        headers: list[tuple[str, str]] = []
        for raw_name, raw_value in self.raw_headers:
            name, value = raw_name.decode("latin-1"), raw_value.decode("latin-1")
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                headers.append((name, value))
        return Response(
            body=b"".join(self.chunks),
            status=self.status,
            content_type=content_type,
            headers=tuple(headers),
        )


class TestClient:
    """Drive an App in-process and get production ``Response`` objects back.

    Entering the client boots the app, so a ``ConfigurationError`` is
    raised from ``async with``; leaving it emits ``destroy``::

        async with TestClient(app) as client:
            response = await client.post("/api/v1/article", json={"title": "Hi"})
            assert response.status == 200

    Response header names come back lowercased, ``set-cookie`` included.
    """

    __test__ = False

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> "TestClient":
        await self.app.boot()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.app.bus.emit(Event.DESTROY)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        exchange = _Exchange(body or b"")
        await self.app(http_scope(method, path, headers), exchange.receive, exchange.send)
        return exchange.to_response()

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
    ) -> Response:
        if query:
            path = f"{path}?{urlencode(query)}"
        return await self.request("GET", path, headers=headers)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("DELETE", path, headers=headers)

    async def post(self, path: str, **kwargs: Any) -> Response:
        return await self._send_body("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Response:
        return await self._send_body("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Response:
        return await self._send_body("PATCH", path, **kwargs)

    async def _send_body(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response:
        """``json=`` wins over ``body=`` and sets the content type, unless overridden."""
        merged = dict(headers or {})
        if json is not None:
            body = jsonlib.dumps(json).encode("utf-8")
            merged = {"content-type": "application/json", **merged}
        return await self.request(method, path, headers=merged, body=body)
