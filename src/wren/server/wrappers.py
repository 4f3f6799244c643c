"""Route wrappers — turn a module's handler into an endpoint.

One wrapper per route kind:

- ``routes`` (plain): the handler's return value goes through
  ``to_response``; errors propagate to the app's safety net.
- ``apiRoutes``: 200 with the returned value as JSON. Authenticated
  GETs are never cached. Errors are normalized by the module.
- ``renderRoutes``: the returned data is rendered with the template
  named after the route. Errors are normalized by the module.

Exactly one ``Response`` comes out of every wrapped call. Handlers
influence it through ``request.response`` (status and headers), never by
sending anything themselves.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from wren._internal.invoke import invoke
from wren.http.request import Request
from wren.http.response import Response, json_response, to_response
from wren.middleware.auth import is_authenticated
from wren.routing.route import Endpoint, RouteKind

if TYPE_CHECKING:
    from wren.modules.module import Module
    from wren.server.errors import ErrorNormalizer


def wrap_plain_route(module: Module, name: str, handler: Callable[..., Any]) -> Endpoint:
    async def plain_route(request: Request) -> Response:
        result = await invoke(handler, request)
        return request.response.apply(to_response(result))

    plain_route.__qualname__ = f"{module.name}.routes.{name}"
    return plain_route


def wrap_api_route(
    module: Module,
    name: str,
    handler: Callable[..., Any],
    normalizer: ErrorNormalizer,
) -> Endpoint:
    async def api_route(request: Request) -> Response:
        try:
            result = await invoke(handler, request)
        except Exception as exc:
            return normalizer.send(request, exc, module=module)

        response = result if isinstance(result, Response) else json_response(result)
        response = request.response.apply(response).with_status(200)
        if request.method == "GET" and is_authenticated(request):
            # Overrides any Cache-Control the handler chose.
            response = response.without_header("Cache-Control").with_header(
                "Cache-Control", "no-store"
            )
        return response

    api_route.__qualname__ = f"{module.name}.apiRoutes.{name}"
    return api_route


def wrap_render_route(
    module: Module,
    name: str,
    handler: Callable[..., Any],
    normalizer: ErrorNormalizer,
) -> Endpoint:
    async def render_route(request: Request) -> Response:
        try:
            result = await invoke(handler, request)
            markup = await module.render(request, name, result)
        except Exception as exc:
            return normalizer.send(request, exc, module=module)
        return request.response.apply(Response(body=markup))

    render_route.__qualname__ = f"{module.name}.renderRoutes.{name}"
    return render_route


class RouteWrappers:
    """Picks the wrapper for a route kind.

    Passed to ``compile_routes`` as its ``wrap`` callable.
    """

    __slots__ = ("_normalizer",)

    def __init__(self, normalizer: ErrorNormalizer) -> None:
        self._normalizer = normalizer

    def __call__(
        self, kind: RouteKind, module: Module, name: str, handler: Callable[..., Any]
    ) -> Endpoint:
        match kind:
            case RouteKind.API:
                return wrap_api_route(module, name, handler, self._normalizer)
            case RouteKind.RENDER:
                return wrap_render_route(module, name, handler, self._normalizer)
            case _:
                return wrap_plain_route(module, name, handler)
