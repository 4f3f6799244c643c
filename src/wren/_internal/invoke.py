"""Call handlers that may be plain functions or coroutines."""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """``handler(*args, **kwargs)``, awaited when it returns an awaitable.

    Route handlers, listeners, init hooks and tasks all go through here,
    so each of them may be ``def`` or ``async def``.
    """
    outcome = handler(*args, **kwargs)
    return await outcome if inspect.isawaitable(outcome) else outcome
