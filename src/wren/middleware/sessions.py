"""Signed-cookie sessions.

The whole session is a JSON dict signed with ``itsdangerous`` and kept
in one cookie; it is readable by the client, only tamper-proof. Handlers
see it as ``request.session`` and may mutate it in place. It is written
back on every response.
"""

from dataclasses import dataclass, replace
from time import time
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next

CREATED_AT_KEY = "__created_at"
LAST_SEEN_AT_KEY = "__last_seen_at"

# Maintained here, not by handlers; the cache controller ignores them.
SESSION_BOOKKEEPING_KEYS: frozenset[str] = frozenset({CREATED_AT_KEY, LAST_SEEN_AT_KEY})


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Cookie and expiry settings.

    ``max_age`` bounds the cookie's signature age in seconds.
    ``idle_timeout_seconds``, when set, also drops a session that has not
    been seen for that long, and turns on the bookkeeping keys.
    """

    secret_key: str
    cookie_name: str = "wren_session"
    max_age: int = 24 * 60 * 60
    idle_timeout_seconds: int | None = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class SessionMiddleware:
    """Attach ``request.session``::

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key=SECRET)))

    A missing, forged, expired or idle cookie yields an empty session.
    """

    __slots__ = ("_config", "_signer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._signer = URLSafeTimedSerializer(config.secret_key)

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            data = self._signer.loads(token, max_age=self._config.max_age)
        except BadData:
            return {}
        return data if isinstance(data, dict) else {}

    def _is_idle(self, session: dict[str, Any], now: float) -> bool:
        limit = self._config.idle_timeout_seconds
        if limit is None or LAST_SEEN_AT_KEY not in session:
            return False
        try:
            return now - float(session[LAST_SEEN_AT_KEY]) > limit
        except (TypeError, ValueError):
            return True

    def load(self, request: Request) -> dict[str, Any]:
        token = request.cookies.get(self._config.cookie_name)
        session = self._decode(token) if token else {}
        if self._config.idle_timeout_seconds is None:
            return session

        now = time()
        if self._is_idle(session, now):
            session = {}
        session.setdefault(CREATED_AT_KEY, now)
        session[LAST_SEEN_AT_KEY] = now
        return session

    def store(self, response: Response, session: dict[str, Any]) -> Response:
        cfg = self._config
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self._signer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        session = self.load(request)
        response = await next(replace(request, session=session))
        return self.store(response, session)
