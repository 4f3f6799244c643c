"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The same shape is used for app-wide middleware
and for the leading entries of a route's handler chain.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from wren.http.request import Request
from wren.http.response import Response

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for wren middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RateLimiter:
            async def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...


def chain(middleware: tuple[Callable[..., object], ...], endpoint: Next) -> Next:
    """Compose *middleware* around *endpoint*, outermost first."""
    handler = endpoint
    for mw in reversed(middleware):
        outer = handler

        async def make_next(
            req: Request, _mw: Callable[..., object] = mw, _next: Next = outer
        ) -> Response:
            return await _mw(req, _next)  # type: ignore[misc]

        handler = make_next
    return handler
