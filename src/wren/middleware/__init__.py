"""App-wide middleware.

Anything shaped ``async (request, next) -> Response`` qualifies; there
is no base class. Two ship with wren: ``SessionMiddleware`` keeps a
signed-cookie session on ``request.session`` and ``AuthMiddleware``
resolves ``request.user`` from that session or a bearer token.
"""

from wren.middleware.auth import AuthConfig, AuthMiddleware
from wren.middleware.protocol import Middleware, Next
from wren.middleware.sessions import SessionConfig, SessionMiddleware

__all__ = [
    "AuthConfig",
    "AuthMiddleware",
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
]
