"""HTTP primitives — immutable request, chainable response, headers, cookies."""

from wren.http.request import PendingResponse, Request
from wren.http.response import Response

__all__ = ["PendingResponse", "Request", "Response"]
