"""Authentication middleware — session user id or bearer token.

Resolves the current user and hands it down the pipeline as
``request.user``. Authenticated requests are moved into the ``apos``
scene, which is what browser data and caching decisions key off.

Usage::

    app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
    app.add_middleware(AuthMiddleware(AuthConfig(
        load_user=my_load_user,       # async (id: str) -> User | None
        verify_token=my_verify_token, # async (token: str) -> User | None
    )))
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any, Protocol, runtime_checkable

from wren._internal.invoke import invoke
from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next


@runtime_checkable
class User(Protocol):
    """Minimal user protocol.

    Any object with ``id`` and ``is_authenticated`` satisfies this.
    """

    @property
    def id(self) -> str: ...

    @property
    def is_authenticated(self) -> bool: ...


def is_authenticated(request: Request) -> bool:
    """True if *request* carries a logged-in user."""
    user = request.user
    if user is None:
        return False
    return bool(getattr(user, "is_authenticated", True))


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Authentication middleware configuration.

    At least one of ``load_user`` (session auth) or ``verify_token``
    (bearer token auth) is required.
    """

    load_user: Callable[[str], Awaitable[Any] | Any] | None = None
    verify_token: Callable[[str], Awaitable[Any] | Any] | None = None
    session_key: str = "user_id"
    token_scheme: str = "Bearer"


def login(request: Request, user: Any, *, session_key: str = "user_id") -> None:
    """Remember *user* in the session for subsequent requests."""
    request.session.clear()
    request.session[session_key] = user.id


def logout(request: Request) -> None:
    """Forget the session entirely."""
    request.session.clear()


class AuthMiddleware:
    """Dual-mode authentication middleware."""

    __slots__ = ("_config",)

    def __init__(self, config: AuthConfig) -> None:
        if config.load_user is None and config.verify_token is None:
            msg = "AuthConfig requires load_user, verify_token, or both."
            raise ConfigurationError(msg)
        self._config = config

    async def _resolve_user(self, request: Request) -> Any:
        cfg = self._config
        authorization = request.headers.get("authorization", "")
        prefix = f"{cfg.token_scheme} "
        if cfg.verify_token is not None and authorization.startswith(prefix):
            return await invoke(cfg.verify_token, authorization[len(prefix):].strip())

        if cfg.load_user is not None:
            user_id = request.session.get(cfg.session_key)
            if user_id:
                return await invoke(cfg.load_user, str(user_id))
        return None

    async def __call__(self, request: Request, next: Next) -> Response:
        user = await self._resolve_user(request)
        if user is None:
            return await next(request)
        return await next(replace(request, user=user, scene="apos"))
