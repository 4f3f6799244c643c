"""Outgoing responses.

A ``Response`` is a frozen value; ``with_*`` methods return modified
copies. Route wrappers build exactly one per request and the sender
writes it out.
"""

from __future__ import annotations

import json as jsonlib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from wren.http.cookies import SetCookie

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"
BINARY_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class Response:
    """Status, body, headers and cookies::

        Response("<h1>Gone</h1>", status=410).with_header("X-Reason", "archived")

    ``headers`` keeps repeats and their order. ``body`` may be text (sent
    as UTF-8) or bytes.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = HTML_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return self.with_headers({name: value})

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Append *headers*; existing entries with the same names stay."""
        return replace(self, headers=self.headers + tuple(headers.items()))

    def without_header(self, name: str) -> Response:
        folded = name.lower()
        return replace(self, headers=tuple(h for h in self.headers if h[0].lower() != folded))

    def with_cookie(self, name: str, value: str, **attributes: Any) -> Response:
        """Append a ``Set-Cookie``; *attributes* are ``SetCookie`` fields."""
        return replace(self, cookies=(*self.cookies, SetCookie(name, value, **attributes)))

    def header(self, name: str) -> str | None:
        """First value of *name*, compared case-insensitively."""
        folded = name.lower()
        return next((value for key, value in self.headers if key.lower() == folded), None)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body if isinstance(self.body, str) else self.body.decode("utf-8")

    def json(self) -> Any:
        return jsonlib.loads(self.body_bytes)


def json_response(value: Any, *, status: int = 200) -> Response:
    """*value* as JSON. Values ``json`` can't encode (dates, ids) go through ``str``."""
    return Response(jsonlib.dumps(value, default=str), status, JSON_CONTENT_TYPE)


def to_response(value: Any) -> Response:
    """Turn whatever a plain route returned into a ``Response``.

    ``None`` is an empty HTML page, ``str`` is HTML, ``bytes`` is
    ``application/octet-stream`` and anything else is encoded as JSON.
    A ``Response`` is returned as is.
    """
    match value:
        case Response():
            return value
        case None:
            return Response()
        case str():
            return Response(value)
        case bytes():
            return Response(value, content_type=BINARY_CONTENT_TYPE)
        case _:
            return json_response(value)
