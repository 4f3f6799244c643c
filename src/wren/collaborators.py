"""Collaborator protocols and their default implementations.

The core only talks to these narrow interfaces. Pass your own to
``App(...)`` to replace a default::

    app = App(
        config,
        permissions=RolePermissions(),
        error_kinds=ErrorKinds({**DEFAULT_ERROR_STATUSES, "too-large": 413}),
    )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from wren.errors import DEFAULT_ERROR_STATUSES
from wren.middleware.auth import is_authenticated

if TYPE_CHECKING:
    from wren.http.request import Request
    from wren.modules.module import Module


@runtime_checkable
class Renderer(Protocol):
    """Turns a template name and data into markup for a module.

    Template names resolve through the module's definition chain, so a
    more specific layer can override a base layer's template.
    """

    def render(
        self, request: Request, name: str, data: Mapping[str, Any], module: Module
    ) -> Any: ...

    def render_string(
        self, request: Request, source: str, data: Mapping[str, Any], module: Module
    ) -> Any: ...


@runtime_checkable
class PermissionChecker(Protocol):
    def can(self, request: Request, action: str) -> Any: ...


@runtime_checkable
class AssetResolver(Protocol):
    def release_id(self) -> str: ...


@runtime_checkable
class StructuredLogger(Protocol):
    def log(self, level: int, event_key: str, message: str, fields: Mapping[str, Any]) -> None: ...


@runtime_checkable
class Emailer(Protocol):
    """Sends email rendered from a module's templates."""

    def email_for_module(
        self,
        request: Request,
        template: str,
        data: Mapping[str, Any],
        options: Mapping[str, Any],
        module: Module,
    ) -> Any: ...


class ErrorKinds:
    """Error name to HTTP status mapping.

    Names not in the mapping are unknown errors.
    """

    __slots__ = ("_statuses",)

    def __init__(self, statuses: Mapping[str, int] | None = None) -> None:
        self._statuses: dict[str, int] = dict(
            DEFAULT_ERROR_STATUSES if statuses is None else statuses
        )

    def status_for(self, name: str) -> int | None:
        return self._statuses.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._statuses

    def items(self) -> tuple[tuple[str, int], ...]:
        return tuple(self._statuses.items())


class AuthenticatedPermissions:
    """Any authenticated user may do anything; anonymous users nothing."""

    __slots__ = ()

    def can(self, request: Request, action: str) -> bool:
        return is_authenticated(request)


class StaticRelease:
    """A fixed release id, usually ``AppConfig.release_id``."""

    __slots__ = ("_release_id",)

    def __init__(self, release_id: str) -> None:
        self._release_id = release_id

    def release_id(self) -> str:
        return self._release_id


class LoggingStructuredLogger:
    """Structured logger writing through the standard ``logging`` module.

    The event key and fields travel in ``extra`` so handlers and
    formatters can pick them up::

        record.event   -> "api-error-notfound"
        record.fields  -> {"name": "notfound", "status": 404, ...}
    """

    __slots__ = ("_logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("wren.api")

    def log(self, level: int, event_key: str, message: str, fields: Mapping[str, Any]) -> None:
        self._logger.log(
            level,
            "%s: %s",
            event_key,
            message,
            extra={"event": event_key, "fields": dict(fields)},
        )
