"""Route compilation — module route sections to one dispatch table.

Each module declares routes in up to four sections::

    routes          {"get": {"feed": handler}}           plain handlers
    renderRoutes    {"get": {"dashboard": handler}}      data -> template
    apiRoutes       {"post": {"saveArea": handler}}      data -> JSON
    restApiRoutes   {"getAll": fn, "getOne": fn, ...}    CRUD shorthand

Compilation runs once, on the compile-routes lifecycle event:

1. REST shorthand is expanded into ``apiRoutes``.
2. Each route name becomes a URL under the module's action prefix.
3. Sections compile in a fixed order: every module's ``routes``, then
   ``renderRoutes``, then ``apiRoutes``, so the ``:_id`` wildcards of
   REST routes never shadow a named route.
4. ``before`` hints move a route ahead of a named sibling.

Any duplicate or malformed declaration raises ``ConfigurationError`` and
the app never starts serving.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

from wren._internal.invoke import invoke
from wren._internal.names import css_name
from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.middleware.protocol import chain
from wren.routing.params import compile_pattern
from wren.routing.route import (
    HTTP_METHODS,
    SECTION_ORDER,
    CompiledRoute,
    Endpoint,
    HandlerChain,
    RouteConfig,
    RouteDeclaration,
    RouteKind,
)
from wren.routing.router import Router

if TYPE_CHECKING:
    from wren.modules.module import Module

logger = logging.getLogger("wren.server")

# REST shorthand -> (method, route name, takes the id)
REST_SHORTHAND: dict[str, tuple[str, str, bool]] = {
    "getAll": ("get", "", False),
    "getOne": ("get", ":_id", True),
    "delete": ("delete", ":_id", True),
    "patch": ("patch", ":_id", True),
    "put": ("put", ":_id", True),
    "post": ("post", "", False),
}

# (kind, module, route name, terminal) -> wrapped endpoint
Wrap: TypeAlias = Callable[[RouteKind, Any, str, Callable[..., Any]], Endpoint]


def get_route_url(action: str, name: str) -> str:
    """Turn a route name into a URL.

    - ``/custom``   -> ``/custom`` (site-relative, used verbatim)
    - ``foo/:id``   -> ``<action>/foo/:id`` (already URL-shaped)
    - ``saveArea``  -> ``<action>/save-area``
    """
    if name.startswith("/"):
        return name
    if any(char in name for char in "/:*"):
        return f"{action}/{name}"
    return f"{action}/{css_name(name)}"


def _wrap_id(terminal: Callable[..., Any]) -> Callable[..., Any]:
    """Call *terminal* with the ``_id`` path parameter as second argument."""

    async def with_id(request: Request) -> Any:
        return await invoke(terminal, request, request.path_params["_id"])

    with_id.__name__ = getattr(terminal, "__name__", "with_id")
    with_id.__qualname__ = getattr(terminal, "__qualname__", "with_id")
    return with_id


def expand_rest_routes(
    api_routes: Mapping[str, Mapping[str, Any]],
    rest_api_routes: Mapping[str, Any],
    *,
    where: str = "restApiRoutes",
) -> dict[str, dict[str, Any]]:
    """Merge REST shorthand into a copy of *api_routes*.

    ``getOne``, ``put``, ``patch`` and ``delete`` are mounted at ``:_id``
    and their terminal handler receives the id as a second argument.
    Route middleware is kept as declared.
    """
    expanded = {method: dict(routes) for method, routes in api_routes.items()}
    for shorthand, value in rest_api_routes.items():
        if shorthand not in REST_SHORTHAND:
            msg = (
                f"{where}: unknown REST route {shorthand!r}; "
                f"expected one of {sorted(REST_SHORTHAND)}."
            )
            raise ConfigurationError(msg)
        method, name, takes_id = REST_SHORTHAND[shorthand]
        before = None
        if isinstance(value, RouteConfig):
            value, before = value.route, value.before
        if takes_id:
            handlers = HandlerChain.from_value(value, where=f"{where}.{shorthand}")
            value = handlers.with_terminal(_wrap_id(handlers.terminal))
        if before is not None:
            value = RouteConfig(value, before=before)
        expanded.setdefault(method, {})[name] = value
    return expanded


def _split_config(value: Any) -> tuple[Any, str | None]:
    if isinstance(value, RouteConfig):
        return value.route, value.before
    if isinstance(value, Mapping):
        if "route" not in value:
            msg = f"Route config mapping needs a 'route' key, got {value!r}."
            raise ConfigurationError(msg)
        return value["route"], value.get("before")
    return value, None


def declarations_for(module: Module) -> list[RouteDeclaration]:
    """Every route *module* declares, in section then declaration order."""
    sections = module.route_sections()
    sections["apiRoutes"] = expand_rest_routes(
        sections["apiRoutes"],
        sections["restApiRoutes"],
        where=f"{module.name}.restApiRoutes",
    )
    declarations: list[RouteDeclaration] = []
    for kind in SECTION_ORDER:
        for method, routes in sections[kind.value].items():
            upper = method.upper()
            if upper not in HTTP_METHODS:
                msg = f"{module.name}.{kind.value}: unsupported HTTP method {method!r}."
                raise ConfigurationError(msg)
            for name, value in routes.items():
                where = f"{module.name}.{kind.value}.{method}[{name!r}]"
                route, before = _split_config(value)
                declarations.append(
                    RouteDeclaration(
                        module=module.name,
                        method=upper,
                        name=name,
                        kind=kind,
                        chain=HandlerChain.from_value(route, where=where),
                        before=before,
                    )
                )
    return declarations


def _apply_before(declarations: list[RouteDeclaration]) -> list[RouteDeclaration]:
    """Move routes with a ``before`` hint ahead of their named sibling.

    The sibling must belong to the same module and HTTP method.
    """
    ordered = [d for d in declarations if d.before is None]
    pending = [d for d in declarations if d.before is not None]

    def target_index(declaration: RouteDeclaration) -> int | None:
        for index, other in enumerate(ordered):
            if (
                other.module == declaration.module
                and other.method == declaration.method
                and other.name == declaration.before
            ):
                return index
        return None

    # A hint may point at another hinted route, so place in rounds.
    while pending:
        unplaced = []
        for declaration in pending:
            index = target_index(declaration)
            if index is None:
                unplaced.append(declaration)
            else:
                ordered.insert(index, declaration)
        if len(unplaced) == len(pending):
            declaration = unplaced[0]
            msg = (
                f"{declaration.module}: route {declaration.method} {declaration.name!r} "
                f"should come before {declaration.before!r}, which is not declared "
                "or forms a cycle."
            )
            raise ConfigurationError(msg)
        pending = unplaced
    return ordered


def _normalize(url: str) -> str:
    return url.rstrip("/") or "/"


def compile_routes(modules: Iterable[Module], wrap: Wrap) -> list[CompiledRoute]:
    """Compile every module's route sections into dispatch order.

    ``wrap`` turns a terminal handler into an endpoint for its route
    kind. Route middleware is composed around the wrapped handler.
    """
    modules = list(modules)
    by_name = {module.name: module for module in modules}
    per_module = [declarations_for(module) for module in modules]

    # Global order is section-major: all plain routes, then render, then api.
    declarations: list[RouteDeclaration] = []
    for kind in SECTION_ORDER:
        for module_declarations in per_module:
            declarations.extend(d for d in module_declarations if d.kind is kind)
    declarations = _apply_before(declarations)

    compiled: list[CompiledRoute] = []
    seen: dict[tuple[str, str], RouteDeclaration] = {}
    for declaration in declarations:
        module = by_name[declaration.module]
        url = module.get_route_url(declaration.name)
        key = (declaration.method, _normalize(url))
        if key in seen:
            first = seen[key]
            msg = (
                f"Duplicate route {declaration.method} {url}: declared by "
                f"{first.module}.{first.kind.value}[{first.name!r}] and "
                f"{declaration.module}.{declaration.kind.value}[{declaration.name!r}]."
            )
            raise ConfigurationError(msg)
        seen[key] = declaration
        try:
            pattern = compile_pattern(url)
        except ValueError as exc:
            raise ConfigurationError(f"{declaration.module}: {exc}") from exc

        endpoint = wrap(declaration.kind, module, declaration.name, declaration.chain.terminal)
        compiled.append(
            CompiledRoute(
                method=declaration.method,
                url=url,
                handler=chain(declaration.chain.middleware, endpoint),
                module=declaration.module,
                name=declaration.name,
                kind=declaration.kind,
                position=len(compiled),
                pattern=pattern,
            )
        )
    logger.debug("Compiled %d routes from %d modules", len(compiled), len(modules))
    return compiled


def build_router(routes: Iterable[CompiledRoute]) -> Router:
    """Load compiled routes into a frozen ``Router``."""
    router = Router()
    for route in routes:
        router.add(route)
    router.compile()
    return router
