"""Runtime module built from a definition chain.

A ``Module`` is created once at boot, registered in the app's
``ModuleRegistry`` and frozen when routes are compiled. Everything a
module needs (bus, registry, collaborators) is reached through the
``app`` it was constructed with, never through globals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

from wren._internal.invoke import invoke
from wren.errors import ConfigurationError
from wren.events import Event
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.auth import is_authenticated
from wren.modules.definition import (
    ModuleDefinition,
    Task,
    merge_chain,
    merge_flat,
    merge_nested,
    resolve_section,
)
from wren.routing.compiler import get_route_url

if TYPE_CHECKING:
    from wren.app import App

logger = logging.getLogger("wren.lifecycle")
tracer = trace.get_tracer("wren")

BROWSER_DATA_SCENES = frozenset({"apos", "public"})

_MISSING = object()

Fields = Mapping[str, Any] | None


class Module:
    """One module of the application.

    Attributes:
        name: Module name, from the most specific definition.
        alias: Optional second lookup key in the registry.
        action: URL prefix for the module's routes.
        options: Options merged along the definition chain.
        chain: The definition layers, most general first.
    """

    def __init__(self, chain: Sequence[ModuleDefinition], app: App) -> None:
        name, options = merge_chain(chain)
        self._frozen = False
        self.app = app
        self.name = name
        self.chain: tuple[ModuleDefinition, ...] = tuple(chain)
        self.options: dict[str, Any] = options
        self.alias: str | None = options.get("alias")
        self.action: str = options.get("action") or f"{app.config.api_prefix}/{name}"
        self.template_data: dict[str, Any] = dict(options.get("template_data") or {})
        self.enabled_browser_data: str | None = None
        self.helpers: dict[str, Callable[..., Any]] = {}
        self._install_methods()

    def __repr__(self) -> str:
        return f"<Module {self.name!r}>"

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            msg = f"Module {self.name!r} is frozen; it cannot change once routes are compiled."
            raise AttributeError(msg)
        object.__setattr__(self, name, value)

    def freeze(self) -> None:
        object.__setattr__(self, "_frozen", True)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def dirnames(self) -> tuple[str, ...]:
        """Definition directories, most specific first."""
        return tuple(layer.dirname for layer in reversed(self.chain) if layer.dirname)

    def _install_methods(self) -> None:
        # Later layers replace earlier methods; extend_methods wrap them.
        for layer in self.chain:
            for method_name, fn in layer.methods.items():
                setattr(self, method_name, partial(fn, self))
            for method_name, fn in layer.extend_methods.items():
                previous = getattr(self, method_name, None)
                if previous is None:
                    msg = (
                        f"Module {self.name!r}: cannot extend {method_name!r}, "
                        "no earlier definition provides it."
                    )
                    raise ConfigurationError(msg)
                setattr(self, method_name, partial(fn, self, previous))

    # -- Lifecycle --

    async def run_init(self) -> None:
        """Run each layer's ``init`` hook, most general first."""
        for layer in self.chain:
            if layer.init is not None:
                await invoke(layer.init, self)

    def _merged(self, section: str) -> list[Mapping[str, Any]]:
        return [resolve_section(getattr(layer, section), self) for layer in self.chain]

    def route_sections(self) -> dict[str, Any]:
        """Merged route sections, keyed by their declared section name."""
        return {
            "routes": merge_nested(self._merged("routes")),
            "renderRoutes": merge_nested(self._merged("render_routes")),
            "apiRoutes": merge_nested(self._merged("api_routes")),
            "restApiRoutes": merge_flat(self._merged("rest_api_routes")),
        }

    def tasks(self) -> dict[str, Task]:
        tasks = merge_flat(self._merged("tasks"))
        for task_name, task in tasks.items():
            if not isinstance(task, Task):
                msg = f"Module {self.name!r}: task {task_name!r} must be a Task, got {task!r}."
                raise ConfigurationError(msg)
        return tasks

    def add_helpers(self, helpers: Mapping[str, Callable[..., Any]]) -> None:
        self.helpers.update(helpers)

    def add_handlers(self, handlers: Mapping[str, Mapping[str, Callable[..., Any]]]) -> None:
        """Register ``{event: {handler name: fn}}`` on the event bus."""
        for event_name, named in handlers.items():
            for handler_name, handler in named.items():
                self.on(event_name, handler_name, handler)

    def add_sections(self) -> None:
        """Bring the helper and handler sections to life.

        Also registers the handlers every module has: pushing helpers to
        the renderer, running after-ready tasks, and contributing
        browser data when enabled.
        """
        self.add_helpers(merge_flat(self._merged("helpers")))
        self.add_handlers(merge_nested(self._merged("handlers")))
        self.on(Event.MODULES_REGISTERED, "add_helpers", self._push_helpers)
        self.on(Event.MODULE_READY, "execute_after_module_ready_task", self._after_module_ready)
        if self.enabled_browser_data:
            self.on(Event.ADD_BODY_DATA, "add_browser_data_to_body", self._add_browser_data)

    async def _push_helpers(self) -> None:
        add_helpers = getattr(self.app.renderer, "add_helpers", None)
        if add_helpers is not None:
            await invoke(add_helpers, self, dict(self.helpers))

    async def _after_module_ready(self) -> None:
        await self.execute_after_module_task("after_module_ready")

    async def execute_after_module_task(self, when: str) -> None:
        """Run the task named on the command line if it belongs to *when*.

        *when* is ``after_module_init`` or ``after_module_ready``. The
        command name is ``<module>:<task>`` and must be ``argv[0]``.
        """
        argv = self.app.argv
        if not argv:
            return
        for task_name, task in self.tasks().items():
            command = f"{self.name}:{task_name}"
            if not getattr(task, when) or argv[0] != command:
                continue
            if command in self.app.tasks_ran:
                continue
            with tracer.start_as_current_span(f"task:{command}") as span:
                span.set_attribute("code.function", f"execute_{when}_task")
                span.set_attribute("code.namespace", "wren.modules.module")
                span.set_attribute("wren.target.namespace", self.name)
                span.set_attribute("wren.target.function", task_name)
                logger.info("Running task %s", command)
                await invoke(task.task, list(argv))
            if task.exit_after:
                await self.app.exit()
            else:
                self.app.tasks_ran.add(command)
                self.app.task_ran = True

    # -- Routes --

    def get_route_url(self, name: str) -> str:
        return get_route_url(self.action, name)

    # -- Events --

    def qualify(self, event: str) -> str:
        """Event names without a namespace belong to this module."""
        event = str(event)
        if ":" in event:
            return event
        return f"{self.name}:{event}"

    def on(self, event: str, handler_name: str, handler: Callable[..., Any]) -> None:
        self.app.bus.on(self.qualify(event), handler_name, handler, owner=self.name)

    async def emit(self, event: str, *args: Any, **kwargs: Any) -> None:
        await self.app.bus.emit(self.qualify(event), *args, **kwargs)

    # -- Options --

    def get_option(
        self, request: Request, path: str | Sequence[str], default: Any = None
    ) -> Any:
        """Read an option by dotted path or key sequence.

        ``request`` is required so option lookups can depend on the
        request in overrides::

            module.get_option(request, "flavors.grape.sweetness", 0)
            module.get_option(request, ["flavors", "grape"])
        """
        if not isinstance(request, Request):
            msg = "get_option() needs the current request as its first argument."
            raise TypeError(msg)
        keys = path.split(".") if isinstance(path, str) else list(path)
        value: Any = self.options
        for key in keys:
            if not isinstance(value, Mapping):
                return default
            value = value.get(key, _MISSING)
            if value is _MISSING:
                return default
        return value

    def get_component_name(self, name: str, default: str | None = None) -> str | None:
        components = self.options.get("components") or {}
        return components.get(name, default)

    # -- Rendering --

    def _template_context(self, request: Request, data: Mapping[str, Any] | None) -> dict[str, Any]:
        return {**self.template_data, **request.data, **(data or {})}

    async def render(
        self, request: Request, name: str, data: Mapping[str, Any] | None = None
    ) -> str:
        """Render template *name* with this module's template lookup."""
        context = self._template_context(request, data)
        return await invoke(self.app.renderer.render, request, name, context, self)

    async def render_string(
        self, request: Request, source: str, data: Mapping[str, Any] | None = None
    ) -> str:
        context = self._template_context(request, data)
        return await invoke(self.app.renderer.render_string, request, source, context, self)

    async def send(
        self, request: Request, name: str, data: Mapping[str, Any] | None = None
    ) -> Response:
        """Render *name* and return it as the response."""
        markup = await self.render(request, name, data)
        return request.response.apply(Response(body=markup))

    async def render_page(
        self, request: Request, template: str, data: Mapping[str, Any] | None = None
    ) -> str:
        """Render a complete page.

        Emits this module's ``beforeSend`` event first, then renders with
        ``user``, ``query`` and browser data available to the template.
        """
        await self.emit("beforeSend", request)
        page_data = {
            "user": request.user,
            "query": dict(request.query.items()),
            "browser_data": await self.app.browser_data(request),
            **(data or {}),
        }
        return await self.render(request, template, page_data)

    async def send_page(
        self, request: Request, template: str, data: Mapping[str, Any] | None = None
    ) -> Response:
        with tracer.start_as_current_span(f"module:{self.name}:send_page") as span:
            span.set_attribute("wren.target.namespace", self.name)
            span.set_attribute("wren.template", template)
            markup = await self.render_page(request, template, data)
        return request.response.apply(Response(body=markup))

    def set_template(self, request: Request, name: str) -> None:
        """Record the template a page route should render."""
        request.data["template"] = f"{self.name}:{name}"

    # -- Browser data --

    def enable_browser_data(self, scene: str = "apos") -> None:
        """Opt in to sending browser data, for ``apos`` or ``public`` scenes."""
        if scene not in BROWSER_DATA_SCENES:
            msg = f"Module {self.name!r}: unknown browser data scene {scene!r}."
            raise ConfigurationError(msg)
        self.enabled_browser_data = scene

    def get_browser_data(self, request: Request) -> dict[str, Any]:
        return {}

    async def _add_browser_data(self, request: Request, data: dict[str, Any]) -> None:
        if self.enabled_browser_data == "apos" and request.scene != "apos":
            return
        mine = await invoke(self.get_browser_data, request)
        if not mine:
            return
        if self.alias:
            mine = {**mine, "alias": self.alias}
        data.setdefault("modules", {})[self.name] = mine

    # -- Access --

    async def can_access_api(self, request: Request) -> bool:
        """Whether *request* may use this module's API without restriction."""
        if self.options.get("guest_api_access"):
            return is_authenticated(request)
        return bool(await invoke(self.app.permissions.can, request, "view-draft"))

    def is_share_draft_request(self, request: Request) -> bool:
        share_id = request.query.get("aposShareId")
        share_key = request.query.get("aposShareKey")
        return bool(
            isinstance(share_id, str) and share_id and isinstance(share_key, str) and share_key
        )

    # -- Email --

    async def email(
        self,
        request: Request,
        template: str,
        data: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Any:
        """Render *template* and hand it to the emailer."""
        emailer = self.app.emailer
        if emailer is None:
            msg = "No emailer is configured; pass emailer= to App()."
            raise ConfigurationError(msg)
        return await invoke(
            emailer.email_for_module, request, template, dict(data or {}), dict(options or {}), self
        )

    # -- Structured logging --

    def _log(
        self,
        level: int,
        request: Request | None,
        event_key: str,
        message: str = "",
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        merged: dict[str, Any] = {"module": self.name}
        if request is not None:
            merged["method"] = request.method
            merged["path"] = request.path
        merged.update(fields or {})
        self.app.structured_logger.log(level, event_key, message, merged)

    def log_debug(
        self, request: Request | None, event_key: str, message: str = "", fields: Fields = None
    ) -> None:
        self._log(logging.DEBUG, request, event_key, message, fields)

    def log_info(
        self, request: Request | None, event_key: str, message: str = "", fields: Fields = None
    ) -> None:
        self._log(logging.INFO, request, event_key, message, fields)

    def log_warn(
        self, request: Request | None, event_key: str, message: str = "", fields: Fields = None
    ) -> None:
        self._log(logging.WARNING, request, event_key, message, fields)

    def log_error(
        self, request: Request | None, event_key: str, message: str = "", fields: Fields = None
    ) -> None:
        self._log(logging.ERROR, request, event_key, message, fields)
