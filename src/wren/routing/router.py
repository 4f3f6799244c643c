"""Ordered dispatch table with first-match semantics.

Routes are added in compilation order and matched in that same order,
so earlier routes win. The table is frozen by ``compile()``; there is
no request-time writer.
"""

from wren.errors import MethodNotAllowed, NotFound
from wren.routing.route import CompiledRoute, RouteMatch


class Router:
    """First-match router over compiled routes.

    Usage::

        router = Router()
        for route in compiled:
            router.add(route)
        router.compile()
        match = router.match("GET", "/api/v1/article/42")
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        self._routes: list[CompiledRoute] = []
        self._compiled = False

    def add(self, route: CompiledRoute) -> None:
        """Append a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        self._routes.append(route)

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        """All routes in dispatch order."""
        return tuple(self._routes)

    @property
    def compiled(self) -> bool:
        return self._compiled

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against the table.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        allowed: set[str] = set()
        for route in self._routes:
            params = route.match(path)
            if params is None:
                continue
            if route.method == method:
                return RouteMatch(route=route, path_params=params)
            allowed.add(route.method)

        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")
