"""Event bus — ordered, sequential publish/subscribe.

Drives the boot lifecycle and lets modules hook into each other.

Ordering guarantees:
    - Listeners for an event run strictly in registration order.
    - Each listener is fully awaited before the next one starts.
    - A listener that raises aborts the rest of that emission and the
      exception propagates to whoever called ``emit()``.

Listeners are identified by ``(owner, handler_name)``. Registering the
same pair again for the same event replaces the earlier function in its
original slot, which is how a more specific module layer overrides a
handler it inherited.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from wren._internal.invoke import invoke
from wren._internal.types import Listener

logger = logging.getLogger("wren.events")


class Event(StrEnum):
    """Framework events, emitted by the app in this order at boot."""

    INITIALIZED = "wren:initialized"
    ALL_SECTIONS_READY = "wren:allSectionsReady"
    READY_TASK_EXECUTED = "wren:readyTaskExecuted"
    MODULES_REGISTERED = "wren:modulesRegistered"
    COMPILE_ROUTES = "wren:compileRoutes"
    MODULE_READY = "wren:moduleReady"

    # Request time, called with (request, data): modules add their browser data
    ADD_BODY_DATA = "wren:addBodyData"

    # Shutdown
    DESTROY = "wren:destroy"


@dataclass(frozen=True, slots=True)
class EventRegistration:
    """One listener registered for one event."""

    event_name: str
    handler_name: str
    owner: str | None
    handler: Listener


class EventBus:
    """Per-event ordered listener lists.

    Usage::

        bus = EventBus()
        bus.on(Event.COMPILE_ROUTES, "compileAllRoutes", compile_all, owner="app")
        await bus.emit(Event.COMPILE_ROUTES)
    """

    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventRegistration]] = {}

    def on(
        self,
        event: Event | str,
        handler_name: str,
        handler: Listener,
        *,
        owner: str | None = None,
    ) -> EventRegistration:
        """Register *handler* for *event*.

        Returns the registration. A second registration with the same
        ``owner`` and ``handler_name`` replaces the first in place.
        """
        if not callable(handler):
            msg = f"Handler {handler_name!r} for event {str(event)!r} is not callable."
            raise TypeError(msg)

        registration = EventRegistration(
            event_name=str(event),
            handler_name=handler_name,
            owner=owner,
            handler=handler,
        )
        listeners = self._listeners.setdefault(registration.event_name, [])
        for index, existing in enumerate(listeners):
            if existing.owner == owner and existing.handler_name == handler_name:
                listeners[index] = registration
                return registration
        listeners.append(registration)
        return registration

    def listeners(self, event: Event | str) -> tuple[EventRegistration, ...]:
        """Registrations for *event*, in the order they will run."""
        return tuple(self._listeners.get(str(event), ()))

    def has_listeners(self, event: Event | str) -> bool:
        return bool(self._listeners.get(str(event)))

    async def emit(self, event: Event | str, *args: Any, **kwargs: Any) -> None:
        """Run every listener for *event*, one after another."""
        name = str(event)
        # Snapshot: listeners registered during this emission run next time.
        for registration in tuple(self._listeners.get(name, ())):
            logger.debug("%s -> %s.%s", name, registration.owner, registration.handler_name)
            await invoke(registration.handler, *args, **kwargs)
