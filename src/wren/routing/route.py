"""Route declaration, handler chain and compiled route types."""

import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, TypeAlias

from wren._internal.types import Handler
from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.http.response import Response
from wren.routing.params import extract_params

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")


class RouteKind(StrEnum):
    """The three route sections a module can declare, named as declared."""

    PLAIN = "routes"
    RENDER = "renderRoutes"
    API = "apiRoutes"


# Compilation order. API routes go last so the ``:_id`` wildcards from
# REST shorthand never shadow a named route.
SECTION_ORDER: tuple[RouteKind, ...] = (RouteKind.PLAIN, RouteKind.RENDER, RouteKind.API)


@dataclass(frozen=True, slots=True)
class RouteConfig:
    """A route value with extra settings.

    ``before`` names another route of the same module and method that
    this one must be matched ahead of::

        "routes": {
            "get": {
                "latest": RouteConfig(latest, before=":slug"),
                ":slug": show,
            }
        }
    """

    route: Handler | list[Handler] | tuple[Handler, ...]
    before: str | None = None


@dataclass(frozen=True, slots=True)
class HandlerChain:
    """Route middleware followed by one terminal handler.

    Built once at compile time and never mutated afterwards.
    """

    middleware: tuple[Callable[..., Any], ...]
    terminal: Handler

    @classmethod
    def from_value(cls, value: Any, *, where: str) -> "HandlerChain":
        """Build a chain from a declared route value.

        Accepts a callable, or a list/tuple whose last entry is the
        terminal handler and whose other entries are middleware.
        Raises ``ConfigurationError`` for anything else.
        """
        if isinstance(value, HandlerChain):
            return value
        if isinstance(value, (list, tuple)):
            if not value:
                msg = f"{where}: empty handler chain."
                raise ConfigurationError(msg)
            *middleware, terminal = value
            for index, mw in enumerate(middleware):
                if not callable(mw):
                    msg = f"{where}: middleware #{index} is not callable ({mw!r})."
                    raise ConfigurationError(msg)
        else:
            middleware, terminal = [], value
        if not callable(terminal):
            msg = f"{where}: the route handler is not callable ({terminal!r})."
            raise ConfigurationError(msg)
        return cls(middleware=tuple(middleware), terminal=terminal)

    def with_terminal(self, terminal: Handler) -> "HandlerChain":
        """Same middleware, different terminal handler."""
        return replace(self, terminal=terminal)


@dataclass(frozen=True, slots=True)
class RouteDeclaration:
    """One route as a module declared it, before URL derivation."""

    module: str
    method: str
    name: str
    kind: RouteKind
    chain: HandlerChain
    before: str | None = None


Endpoint: TypeAlias = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A route in the final dispatch table.

    ``handler`` is the fully composed endpoint: route middleware around
    the wrapped terminal handler.
    """

    method: str
    url: str
    handler: Endpoint
    module: str
    name: str
    kind: RouteKind
    position: int
    pattern: re.Pattern[str] = field(compare=False, repr=False)

    def match(self, path: str) -> dict[str, str] | None:
        """Return path parameters if *path* matches this route's URL."""
        return extract_params(self.pattern, path)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: CompiledRoute
    path_params: Mapping[str, str]
