"""The request being handled by the current task."""

from contextvars import ContextVar

from wren.http.request import Request

# Bound by ``handle_request`` for the duration of one dispatch.
request_var: ContextVar[Request] = ContextVar("wren_request")


def get_request() -> Request:
    """The in-flight request. ``LookupError`` outside of one.

    Lets helpers that are not handed the request (template globals,
    structured log fields) still reach it.
    """
    return request_var.get()
