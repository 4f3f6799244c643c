"""Wren application class.

Mutable during setup (modules, middleware). Booted once, on the first
ASGI lifespan or HTTP event: modules are constructed from their
definition chains, driven through the lifecycle, and their routes
compiled into a frozen dispatch table. Nothing changes after that.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from wren._internal.types import Receive, Scope, Send
from wren.cache import CacheController
from wren.collaborators import (
    AssetResolver,
    AuthenticatedPermissions,
    Emailer,
    ErrorKinds,
    LoggingStructuredLogger,
    PermissionChecker,
    Renderer,
    StaticRelease,
    StructuredLogger,
)
from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.events import Event, EventBus
from wren.http.request import Request
from wren.lifecycle import Lifecycle
from wren.middleware.protocol import Middleware
from wren.modules.definition import ModuleDefinition
from wren.modules.module import Module
from wren.modules.registry import ModuleRegistry
from wren.routing.compiler import build_router, compile_routes
from wren.routing.route import CompiledRoute
from wren.routing.router import Router
from wren.server.errors import ErrorNormalizer
from wren.server.handler import handle_request
from wren.server.wrappers import RouteWrappers
from wren.templating.renderer import KidaRenderer

logger = logging.getLogger("wren.server")


class App:
    """The wren application.

    Usage::

        app = App(AppConfig(release_id="2026.10"))
        app.module(piece_base, ModuleDefinition(name="article", options={"alias": "article"}))
        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))

    Collaborators default to the built-in implementations; pass your own
    to replace them. ``argv`` names the task to run at boot, if any
    (``["article:reindex", ...]``).
    """

    __slots__ = (
        "_boot_lock",
        "_booted",
        "_definitions",
        "_middleware",
        "_middleware_list",
        "_router",
        "argv",
        "assets",
        "bus",
        "cache",
        "config",
        "emailer",
        "error_kinds",
        "lifecycle",
        "modules",
        "normalizer",
        "permissions",
        "renderer",
        "structured_logger",
        "task_ran",
        "tasks_ran",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        renderer: Renderer | None = None,
        permissions: PermissionChecker | None = None,
        error_kinds: ErrorKinds | None = None,
        assets: AssetResolver | None = None,
        structured_logger: StructuredLogger | None = None,
        emailer: Emailer | None = None,
        argv: Sequence[str] = (),
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.renderer: Renderer = renderer or KidaRenderer(self.config)
        self.permissions: PermissionChecker = permissions or AuthenticatedPermissions()
        self.error_kinds: ErrorKinds = error_kinds or ErrorKinds()
        self.assets: AssetResolver = assets or StaticRelease(self.config.release_id)
        self.structured_logger: StructuredLogger = structured_logger or LoggingStructuredLogger()
        self.emailer: Emailer | None = emailer
        self.argv: tuple[str, ...] = tuple(argv)

        self.bus = EventBus()
        self.modules = ModuleRegistry()
        self.lifecycle = Lifecycle(self.bus)
        self.cache = CacheController(self.assets)
        self.normalizer = ErrorNormalizer(self.error_kinds, self.structured_logger)
        self.task_ran = False
        self.tasks_ran: set[str] = set()

        self._definitions: list[tuple[ModuleDefinition, ...]] = []
        self._middleware_list: list[Middleware] = []
        self._middleware: tuple[Middleware, ...] = ()
        self._router: Router | None = None
        self._booted = False
        self._boot_lock = asyncio.Lock()

        # The compiler runs on the compile-routes event, ahead of any
        # module handlers registered later for the same event.
        self.bus.on(Event.COMPILE_ROUTES, "compile_all_routes", self._compile_routes, owner="app")

    # -- Setup --

    def module(self, *chain: ModuleDefinition) -> None:
        """Add a module, given its definition chain from base to override."""
        self._check_not_booted()
        if not chain:
            msg = "app.module() needs at least one ModuleDefinition."
            raise ConfigurationError(msg)
        self._definitions.append(chain)

    def add_middleware(self, middleware: Middleware) -> None:
        """Add an app-wide middleware. The first added runs outermost."""
        self._check_not_booted()
        self._middleware_list.append(middleware)

    @property
    def definitions(self) -> tuple[tuple[ModuleDefinition, ...], ...]:
        """Definition chains added with ``module()``, in order."""
        return tuple(self._definitions)

    # -- Boot --

    @property
    def booted(self) -> bool:
        return self._booted

    @property
    def router(self) -> Router:
        if self._router is None:
            msg = "Routes are compiled at boot; await app.boot() first."
            raise RuntimeError(msg)
        return self._router

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        """The compiled dispatch table, in match order."""
        return self.router.routes

    async def boot(self) -> None:
        """Construct modules, run the lifecycle and compile routes.

        Runs once; concurrent callers wait for the first boot. A
        ``ConfigurationError`` here means the app must not serve.
        """
        if self._booted:
            return
        async with self._boot_lock:
            if self._booted:
                return
            for chain in self._definitions:
                self.modules.register(Module(chain, self))
            await self.lifecycle.run(self.modules)
            self._middleware = tuple(self._middleware_list)
            self._booted = True

    def _compile_routes(self) -> None:
        routes = compile_routes(self.modules, RouteWrappers(self.normalizer))
        self._router = build_router(routes)
        self.modules.freeze()
        logger.info("Compiled %d routes", len(routes))

    async def exit(self, code: int = 0) -> None:
        """Emit ``DESTROY`` and leave the process."""
        await self.bus.emit(Event.DESTROY)
        raise SystemExit(code)

    # -- Request helpers --

    async def browser_data(self, request: Request) -> dict[str, Any]:
        """Collect every module's browser data for *request*."""
        data: dict[str, Any] = {"modules": {}}
        await self.bus.emit(Event.ADD_BODY_DATA, request, data)
        return data

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the app with uvicorn. Boot happens in the lifespan startup."""
        import uvicorn

        uvicorn.run(
            self,
            host=host or self.config.host,
            port=port or self.config.port,
            log_level=self.config.log_level,
            lifespan="on",
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        await self.boot()
        await handle_request(
            scope,
            receive,
            send,
            router=self.router,
            middleware=self._middleware,
            normalizer=self.normalizer,
            modules=self.modules,
            max_content_length=self.config.max_content_length,
        )

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol: boot at startup, destroy at shutdown."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.boot()
                except Exception as exc:
                    logger.exception("Boot failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.bus.emit(Event.DESTROY)
                await send({"type": "lifespan.shutdown.complete"})
                return

    def _check_not_booted(self) -> None:
        if self._booted:
            msg = (
                "Cannot modify the app after it has booted. "
                "Add modules and middleware before serving requests."
            )
            raise RuntimeError(msg)
