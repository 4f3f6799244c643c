"""Wren — module composition and request handling for ASGI.

Independently authored modules declare routes, event handlers, helpers
and tasks. Wren merges each module's definition chain, drives every
module through one boot lifecycle, compiles all routes into a single
ordered dispatch table, and turns every handler result or error into a
well-formed response.

Basic usage::

    from wren import App, ModuleDefinition

    async def list_articles(request):
        return {"results": []}

    app = App()
    app.module(ModuleDefinition(
        name="article",
        rest_api_routes={"getAll": list_articles},
    ))

    app.run()   # GET /api/v1/article -> {"results": []}

Default templates (``pip install wren[templates]``) render with kida.
"""

__version__ = "0.1.0-dev"
__all__ = [
    "ApiError",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Event",
    "HTTPError",
    "Module",
    "ModuleDefinition",
    "NotFound",
    "Request",
    "Response",
    "RouteConfig",
    "Task",
    "WrenError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Event":
        from wren.events import Event

        return Event

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name in ("Module", "ModuleDefinition", "Task"):
        from wren import modules as _modules

        return getattr(_modules, name)

    if name == "RouteConfig":
        from wren.routing.route import RouteConfig

        return RouteConfig

    if name in ("WrenError", "ConfigurationError", "ApiError", "HTTPError", "NotFound"):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
