"""Boot lifecycle — strictly ordered states driven by the event bus.

::

    CONSTRUCTED          every module built from its definition chain
    INITIALIZED          every module's init hooks ran
    ALL_SECTIONS_READY   helpers and handlers registered
    READY_TASK_EXECUTED  after-init task for argv[0] ran, if any
    MODULE_READY         routes compiled, after-ready tasks ran

Between READY_TASK_EXECUTED and MODULE_READY the bus emits
``MODULES_REGISTERED`` and then ``COMPILE_ROUTES``, which is where the
dispatch table gets built.
"""

import logging
from enum import IntEnum

from wren.events import Event, EventBus
from wren.modules.registry import ModuleRegistry

logger = logging.getLogger("wren.lifecycle")


class LifecycleState(IntEnum):
    CONSTRUCTED = 1
    INITIALIZED = 2
    ALL_SECTIONS_READY = 3
    READY_TASK_EXECUTED = 4
    MODULE_READY = 5


class Lifecycle:
    """Moves an app's modules through the boot states, in order."""

    __slots__ = ("_bus", "state")

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self.state: LifecycleState | None = None

    def advance(self, state: LifecycleState) -> None:
        """Enter *state*. States can only be entered in order, once."""
        expected = 1 if self.state is None else self.state + 1
        if state != expected:
            current = self.state.name if self.state is not None else "none"
            msg = f"Lifecycle cannot move from {current} to {state.name}."
            raise RuntimeError(msg)
        self.state = state
        logger.debug("Lifecycle: %s", state.name.lower())

    async def run(self, modules: ModuleRegistry) -> None:
        """Drive every registered module from constructed to ready.

        Any exception, including ``SystemExit`` from a task, aborts the
        boot and propagates.
        """
        self.advance(LifecycleState.CONSTRUCTED)

        for module in modules:
            await module.run_init()
        self.advance(LifecycleState.INITIALIZED)
        await self._bus.emit(Event.INITIALIZED)

        for module in modules:
            module.add_sections()
        self.advance(LifecycleState.ALL_SECTIONS_READY)
        await self._bus.emit(Event.ALL_SECTIONS_READY)

        for module in modules:
            await module.execute_after_module_task("after_module_init")
        self.advance(LifecycleState.READY_TASK_EXECUTED)
        await self._bus.emit(Event.READY_TASK_EXECUTED)

        await self._bus.emit(Event.MODULES_REGISTERED)
        await self._bus.emit(Event.COMPILE_ROUTES)

        self.advance(LifecycleState.MODULE_READY)
        await self._bus.emit(Event.MODULE_READY)
        logger.info("%d modules ready", len(modules))
