"""Tests for wren.server.wrappers — one response per wrapped route call."""

from collections.abc import Mapping
from typing import Any

from wren.app import App
from wren.errors import ApiError
from wren.http.request import Request
from wren.http.response import Response
from wren.modules.definition import ModuleDefinition
from wren.modules.module import Module
from wren.routing.route import RouteKind
from wren.server.wrappers import (
    RouteWrappers,
    wrap_api_route,
    wrap_plain_route,
    wrap_render_route,
)


class Member:
    id = "u1"
    is_authenticated = True


class EchoRenderer:
    def render(self, request: Request, name: str, data: Mapping[str, Any], module: Any) -> str:
        return f"{name}:{sorted(data)}"

    def render_string(
        self, request: Request, source: str, data: Mapping[str, Any], module: Any
    ) -> str:
        return source


def _module() -> Module:
    return Module((ModuleDefinition(name="article"),), App(renderer=EchoRenderer()))


def _get(**kwargs: Any) -> Request:
    return Request(method="GET", path="/api/v1/article/x", **kwargs)


class TestPlainRoute:
    async def test_result_converted(self) -> None:
        endpoint = wrap_plain_route(_module(), "x", lambda request: {"ok": True})
        response = await endpoint(_get())
        assert response.json() == {"ok": True}

    async def test_pending_status_applied(self) -> None:
        def not_modified(request: Request) -> None:
            request.response.status = 304

        response = await wrap_plain_route(_module(), "x", not_modified)(_get())
        assert response.status == 304

    def test_qualname(self) -> None:
        endpoint = wrap_plain_route(_module(), "feed", lambda request: "")
        assert endpoint.__qualname__ == "article.routes.feed"


class TestApiRoute:
    async def test_json_body(self) -> None:
        module = _module()
        endpoint = wrap_api_route(module, "x", lambda r: [1, 2], module.app.normalizer)
        response = await endpoint(_get())
        assert response.status == 200
        assert response.json() == [1, 2]

    async def test_response_passthrough_forced_to_200(self) -> None:
        module = _module()
        endpoint = wrap_api_route(
            module, "x", lambda r: Response(body="raw", status=202), module.app.normalizer
        )
        response = await endpoint(_get())
        assert response.status == 200
        assert response.text == "raw"

    async def test_authenticated_get_no_store(self) -> None:
        module = _module()
        endpoint = wrap_api_route(module, "x", lambda r: {}, module.app.normalizer)
        response = await endpoint(_get(user=Member()))
        assert response.header("Cache-Control") == "no-store"

    async def test_authenticated_get_overrides_handler_cache_control(self) -> None:
        def cached(request: Request) -> Response:
            return Response("{}").with_header("Cache-Control", "max-age=600")

        module = _module()
        endpoint = wrap_api_route(module, "x", cached, module.app.normalizer)
        response = await endpoint(_get(user=Member()))
        assert [v for n, v in response.headers if n.lower() == "cache-control"] == ["no-store"]

    async def test_anonymous_get_keeps_handler_cache_control(self) -> None:
        def cached(request: Request) -> Response:
            return Response("{}").with_header("Cache-Control", "max-age=600")

        module = _module()
        response = await wrap_api_route(module, "x", cached, module.app.normalizer)(_get())
        assert response.header("Cache-Control") == "max-age=600"

    async def test_error_normalized(self) -> None:
        def missing(request: Request) -> None:
            raise ApiError("notfound", "Gone.")

        module = _module()
        request = _get()
        request.response.set_header("Cache-Control", "max-age=60")
        response = await wrap_api_route(module, "x", missing, module.app.normalizer)(request)
        assert response.status == 404
        assert response.json()["message"] == "Gone."
        assert response.header("Cache-Control") is None


class TestRenderRoute:
    async def test_renders_route_name(self) -> None:
        module = _module()
        endpoint = wrap_render_route(
            module, "dashboard", lambda r: {"b": 1, "a": 2}, module.app.normalizer
        )
        response = await endpoint(_get())
        assert response.text == "dashboard:['a', 'b']"
        assert response.content_type.startswith("text/html")

    async def test_error_normalized(self) -> None:
        def broken(request: Request) -> None:
            raise KeyError("x")

        module = _module()
        response = await wrap_render_route(module, "page", broken, module.app.normalizer)(_get())
        assert response.status == 500


class TestRouteWrappers:
    def test_dispatch_by_kind(self) -> None:
        module = _module()
        wrappers = RouteWrappers(module.app.normalizer)
        handler = lambda r: None  # noqa: E731
        assert wrappers(RouteKind.API, module, "a", handler).__qualname__ == "article.apiRoutes.a"
        assert wrappers(RouteKind.RENDER, module, "b", handler).__qualname__ == (
            "article.renderRoutes.b"
        )
        assert wrappers(RouteKind.PLAIN, module, "c", handler).__qualname__ == "article.routes.c"
