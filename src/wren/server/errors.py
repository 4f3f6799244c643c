"""Error normalization for API and render routes.

Every error a route raises ends up here and becomes one JSON response::

    {"name": "notfound", "data": {}, "message": "No such article."}

Errors whose name is in the error kinds are *known*: their message,
data and path are meant for the client and sent as-is. Everything else
is *unknown*: the client gets a 500 with a fixed message, and the real
error only goes to the log.

A list of errors (field validation, typically) is sent as a single
``invalid`` error whose ``data.errors`` holds each normalized entry.
"""

from __future__ import annotations

import logging
import sys
import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from wren.errors import ApiError, HTTPError
from wren.http.response import Response, json_response

if TYPE_CHECKING:
    from wren.collaborators import ErrorKinds, StructuredLogger
    from wren.http.request import Request
    from wren.modules.module import Module

UNKNOWN_ERROR_NAME = "error"
UNKNOWN_ERROR_MESSAGE = "An error occurred."


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """A normalized error.

    ``level`` and ``headers`` never reach the response body.
    """

    name: str
    code: int
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    path: str | None = None
    level: int = logging.INFO
    headers: tuple[tuple[str, str], ...] = ()

    def to_body(self) -> dict[str, Any]:
        """The response body: exactly name, data and message."""
        return {"name": self.name, "data": self.data, "message": self.message}

    def to_entry(self) -> dict[str, Any]:
        """One entry of a composite error's ``data.errors``."""
        return {
            "name": self.name,
            "code": self.code,
            "message": self.message,
            "data": self.data,
            "path": self.path,
        }


def _attributes(err: Any) -> tuple[str | None, Any, str | None]:
    """Pull name, data and path from an error or an entry mapping."""
    if isinstance(err, Mapping):
        return err.get("name"), err.get("data"), err.get("path")
    if isinstance(err, ApiError):
        return err.name, err.data, err.path
    if isinstance(err, HTTPError):
        return err.name, None, None
    return getattr(err, "name", None), getattr(err, "data", None), getattr(err, "path", None)


def _client_message(err: Any) -> str:
    """The message of a known error. Unknown errors never need one."""
    if isinstance(err, Mapping):
        return str(err.get("message") or "")
    if isinstance(err, ApiError):
        return err.message
    if isinstance(err, HTTPError):
        return err.detail
    return getattr(err, "message", None) or str(err)


def _flatten(errors: list[Any] | tuple[Any, ...]) -> list[Any]:
    # Nested sequences are flattened one level.
    flat: list[Any] = []
    for err in errors:
        if isinstance(err, (list, tuple)):
            flat.extend(err)
        else:
            flat.append(err)
    return flat


class ErrorNormalizer:
    """Classifies errors, logs them and builds the error response.

    Usage::

        normalizer = ErrorNormalizer(ErrorKinds(), LoggingStructuredLogger())
        response = normalizer.send(request, exc)
    """

    __slots__ = ("_kinds", "_logger")

    def __init__(self, kinds: ErrorKinds, logger: StructuredLogger) -> None:
        self._kinds = kinds
        self._logger = logger

    # -- Classification --

    def normalize(self, err: Any) -> ErrorResponse:
        """Normalize a single error or a list of errors."""
        if isinstance(err, (list, tuple)):
            err = self.composite(err)
        return self._single(err)

    def composite(self, errors: list[Any] | tuple[Any, ...]) -> ApiError:
        """Wrap a list of errors in one ``invalid`` error."""
        entries = [self._single(sub).to_entry() for sub in _flatten(errors)]
        return ApiError("invalid", data={"errors": entries})

    def _single(self, err: Any) -> ErrorResponse:
        name, data, path = _attributes(err)
        status = self._kinds.status_for(name) if isinstance(name, str) else None
        if status is None and isinstance(err, HTTPError) and err.status < 500:
            status = err.status
        if status is None:
            return ErrorResponse(
                name=UNKNOWN_ERROR_NAME,
                code=500,
                message=UNKNOWN_ERROR_MESSAGE,
                path=path,
                level=logging.ERROR,
            )

        data = dict(data) if isinstance(data, Mapping) else {}
        if name == "invalid" and isinstance(data.get("errors"), (list, tuple)):
            # Sub-errors get the same treatment before they reach the client
            data["errors"] = [self._single(sub).to_entry() for sub in data["errors"]]
        return ErrorResponse(
            name=name,
            code=status,
            message=_client_message(err),
            data=data,
            path=path,
            level=logging.INFO,
            headers=err.headers if isinstance(err, HTTPError) else (),
        )

    # -- Logging --

    def log(
        self,
        request: Request | None,
        response: ErrorResponse,
        err: Any,
        *,
        module: Module | None = None,
    ) -> None:
        """Log *err* under ``api-error`` or ``api-error-<name>``.

        Never raises: a failing logger is reported on stderr instead.
        """
        trail = "" if response.code == 500 else f"-{response.name}"
        try:
            # Unknown errors log the real message, not the one sent to the client.
            message = str(err) if response.code == 500 else response.message
            fields: dict[str, Any] = {}
            if module is not None:
                fields["module"] = module.name
            if request is not None:
                fields["method"] = request.method
                fields["path"] = request.path
            cause = getattr(err, "__cause__", None)
            fields.update(
                name=response.name,
                status=response.code,
                stack=_trimmed_stack(err),
                cause=repr(cause) if cause is not None else None,
                error_path=response.path,
                data=response.data,
            )
            self._logger.log(response.level, f"api-error{trail}", message, fields)
        except Exception as exc:
            print(f"Structured logging error: {exc}", file=sys.stderr)
            traceback.print_exception(exc, file=sys.stderr)

    # -- Response --

    def send(self, request: Request | None, err: Any, *, module: Module | None = None) -> Response:
        """Normalize, log and return the error response for *err*."""
        response = self.normalize(err)
        self.log(request, response, err, module=module)
        result = json_response(response.to_body(), status=response.code)
        for name, value in response.headers:
            result = result.with_header(name, value)
        return result


def _trimmed_stack(err: Any) -> list[str]:
    """Traceback lines of *err* without the outermost frame.

    The outermost frame is the route wrapper that caught the error.
    """
    tb = getattr(err, "__traceback__", None)
    if tb is None:
        return []
    frames = traceback.format_tb(tb)[1:]
    return [line.strip() for frame in frames for line in frame.splitlines() if line.strip()]
