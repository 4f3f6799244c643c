"""Write a ``Response`` to the ASGI ``send`` channel."""

from wren._internal.types import Send
from wren.http.response import Response

# Informational statuses (1xx) are bodiless too; see ``has_body``.
_BODYLESS = frozenset({204, 304})


def has_body(status: int) -> bool:
    return status >= 200 and status not in _BODYLESS


def response_headers(response: Response, body: bytes) -> list[tuple[bytes, bytes]]:
    """Encoded header list: content type, response headers, cookies, length."""
    pairs = [("content-type", response.content_type)]
    pairs.extend((name.lower(), value) for name, value in response.headers)
    pairs.extend(("set-cookie", cookie.to_header_value()) for cookie in response.cookies)
    pairs.append(("content-length", str(len(body))))
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send) -> None:
    body = response.body_bytes if has_body(response.status) else b""
    start = {
        "type": "http.response.start",
        "status": response.status,
        "headers": response_headers(response, body),
    }
    await send(start)
    await send({"type": "http.response.body", "body": body})
