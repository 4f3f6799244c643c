"""Tests for wren.lifecycle — boot order and module tasks."""

from typing import Any

import pytest

from wren.app import App
from wren.errors import ConfigurationError
from wren.events import Event, EventBus
from wren.lifecycle import Lifecycle, LifecycleState
from wren.modules.definition import ModuleDefinition, Task

BOOT_EVENTS = (
    Event.INITIALIZED,
    Event.ALL_SECTIONS_READY,
    Event.READY_TASK_EXECUTED,
    Event.MODULES_REGISTERED,
    Event.COMPILE_ROUTES,
    Event.MODULE_READY,
)


class TestAdvance:
    def test_in_order(self) -> None:
        lifecycle = Lifecycle(EventBus())
        for state in LifecycleState:
            lifecycle.advance(state)
        assert lifecycle.state is LifecycleState.MODULE_READY

    def test_skipping_a_state(self) -> None:
        lifecycle = Lifecycle(EventBus())
        lifecycle.advance(LifecycleState.CONSTRUCTED)
        with pytest.raises(RuntimeError, match="CONSTRUCTED to ALL_SECTIONS_READY"):
            lifecycle.advance(LifecycleState.ALL_SECTIONS_READY)

    def test_entering_twice(self) -> None:
        lifecycle = Lifecycle(EventBus())
        lifecycle.advance(LifecycleState.CONSTRUCTED)
        with pytest.raises(RuntimeError):
            lifecycle.advance(LifecycleState.CONSTRUCTED)

    def test_must_start_constructed(self) -> None:
        with pytest.raises(RuntimeError, match="from none"):
            Lifecycle(EventBus()).advance(LifecycleState.INITIALIZED)


class TestBootOrder:
    async def test_events_and_hooks_in_order(self) -> None:
        calls: list[str] = []
        app = App()
        for event in BOOT_EVENTS:
            app.bus.on(event, "record", lambda event=event: calls.append(str(event)))

        for name in ("page", "article"):
            app.module(
                ModuleDefinition(
                    name=name,
                    init=lambda self: calls.append(f"init:{self.name}"),
                    handlers={
                        Event.MODULE_READY.value: {
                            "ready": lambda name=name: calls.append(f"ready:{name}")
                        }
                    },
                )
            )

        await app.boot()
        assert calls == [
            "init:page",
            "init:article",
            "wren:initialized",
            "wren:allSectionsReady",
            "wren:readyTaskExecuted",
            "wren:modulesRegistered",
            "wren:compileRoutes",
            "wren:moduleReady",
            "ready:page",
            "ready:article",
        ]
        assert app.lifecycle.state is LifecycleState.MODULE_READY

    async def test_routes_compiled_before_compile_routes_listeners(self) -> None:
        app = App()
        seen: list[int] = []
        app.bus.on(Event.COMPILE_ROUTES, "count", lambda: seen.append(len(app.routes)))
        app.module(
            ModuleDefinition(name="article", api_routes={"get": {"count": lambda request: 0}})
        )
        await app.boot()
        assert seen == [1]

    async def test_modules_frozen_when_ready(self) -> None:
        app = App()
        app.module(ModuleDefinition(name="article"))
        await app.boot()
        assert app.modules.frozen
        assert app.modules.article.frozen

    async def test_helpers_pushed_on_modules_registered(self) -> None:
        class Renderer:
            def __init__(self) -> None:
                self.helpers: dict[str, Any] = {}

            def render(self, *args: Any) -> str:
                return ""

            def render_string(self, *args: Any) -> str:
                return ""

            def add_helpers(self, module: Any, helpers: Any) -> None:
                self.helpers[module.name] = dict(helpers)

        renderer = Renderer()
        app = App(renderer=renderer)
        app.module(ModuleDefinition(name="article", helpers={"excerpt": str.upper}))
        await app.boot()
        assert renderer.helpers == {"article": {"excerpt": str.upper}}

    async def test_init_error_aborts_boot(self) -> None:
        def broken(self: Any) -> None:
            raise ConfigurationError("bad options")

        app = App()
        app.module(ModuleDefinition(name="article", init=broken))
        with pytest.raises(ConfigurationError, match="bad options"):
            await app.boot()
        assert app.booted is False

    async def test_boot_runs_once(self) -> None:
        calls: list[str] = []
        app = App()
        app.module(ModuleDefinition(name="article", init=lambda self: calls.append("init")))
        await app.boot()
        await app.boot()
        assert calls == ["init"]


class TestTasks:
    async def test_task_exits_after(self) -> None:
        received: list[list[str]] = []
        destroyed: list[bool] = []
        app = App(argv=["article:reindex", "--all"])
        app.bus.on(Event.DESTROY, "record", lambda: destroyed.append(True))
        app.module(
            ModuleDefinition(name="article", tasks={"reindex": Task(task=received.append)})
        )
        with pytest.raises(SystemExit) as exc_info:
            await app.boot()
        assert exc_info.value.code == 0
        assert received == [["article:reindex", "--all"]]
        assert destroyed == [True]

    async def test_after_ready_task_sees_compiled_routes(self) -> None:
        states: list[Any] = []
        app = App(argv=["article:check"])
        app.module(
            ModuleDefinition(
                name="article",
                api_routes={"get": {"count": lambda request: 0}},
                tasks={
                    "check": Task(
                        task=lambda argv: states.append((app.lifecycle.state, len(app.routes))),
                        exit_after=False,
                    )
                },
            )
        )
        await app.boot()
        assert states == [(LifecycleState.MODULE_READY, 1)]
        assert app.task_ran is True

    async def test_after_init_task_runs_before_routes(self) -> None:
        states: list[Any] = []
        app = App(argv=["article:migrate"])
        app.module(
            ModuleDefinition(
                name="article",
                tasks={
                    "migrate": Task(
                        task=lambda argv: states.append(app.lifecycle.state),
                        after_module_init=True,
                        after_module_ready=False,
                        exit_after=False,
                    )
                },
            )
        )
        await app.boot()
        assert states == [LifecycleState.ALL_SECTIONS_READY]

    async def test_task_flagged_for_both_runs_once(self) -> None:
        calls: list[str] = []
        app = App(argv=["article:migrate"])
        app.module(
            ModuleDefinition(
                name="article",
                tasks={
                    "migrate": Task(
                        task=lambda argv: calls.append("run"),
                        after_module_init=True,
                        exit_after=False,
                    )
                },
            )
        )
        await app.boot()
        assert calls == ["run"]
        assert app.tasks_ran == {"article:migrate"}

    async def test_other_module_task_not_run(self) -> None:
        calls: list[str] = []
        app = App(argv=["page:reindex"])
        app.module(
            ModuleDefinition(
                name="article", tasks={"reindex": Task(task=lambda argv: calls.append("run"))}
            )
        )
        await app.boot()
        assert calls == []
        assert app.task_ran is False

    async def test_async_task(self) -> None:
        calls: list[list[str]] = []

        async def reindex(argv: list[str]) -> None:
            calls.append(argv)

        app = App(argv=["article:reindex"])
        app.module(
            ModuleDefinition(
                name="article", tasks={"reindex": Task(task=reindex, exit_after=False)}
            )
        )
        await app.boot()
        assert calls == [["article:reindex"]]

    async def test_invalid_task_value(self) -> None:
        app = App(argv=["article:reindex"])
        app.module(ModuleDefinition(name="article", tasks={"reindex": print}))
        with pytest.raises(ConfigurationError, match="must be a Task"):
            await app.boot()
