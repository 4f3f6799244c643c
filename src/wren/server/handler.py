"""ASGI handler — translates ASGI scope/messages to wren types.

The only component that touches raw ASGI directly. Converts the scope to
a typed Request, dispatches through app middleware and the compiled
route table, and sends the Response back through ASGI send().
"""

import logging
from collections.abc import Callable
from contextvars import Token
from dataclasses import replace
from typing import Any

from wren._internal.types import Receive, Scope, Send
from wren.context import request_var
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import chain
from wren.modules.registry import ModuleRegistry
from wren.routing.router import Router
from wren.server.errors import ErrorNormalizer
from wren.server.sender import send_response

logger = logging.getLogger("wren.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    normalizer: ErrorNormalizer,
    modules: ModuleRegistry,
    max_content_length: int,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive, modules=modules)
    token: Token[Request] = request_var.set(request)

    try:

        async def dispatch(req: Request) -> Response:
            length = req.headers.get("content-length")
            if length is not None and length.isdigit() and int(length) > max_content_length:
                raise HTTPError(413, "Request body too large")
            match = router.match(req.method, req.path)
            return await match.route.handler(replace(req, path_params=dict(match.path_params)))

        response = await chain(middleware, dispatch)(request)

    except Exception as exc:
        # Errors from plain routes, middleware and the router itself
        logger.debug("%s %s raised %r", request.method, request.path, exc)
        response = normalizer.send(request, exc)
    finally:
        request_var.reset(token)

    await send_response(response, send)
