"""Shared type aliases used across wren modules."""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# ASGI 3.0 callables and scope
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# Route handler: called with the request
Handler: TypeAlias = Callable[..., Any]

# Event listener: called with whatever the emitter passes
Listener: TypeAlias = Callable[..., Any]
