"""Turn ``"package.module:attr"`` into an App."""

import importlib
from collections.abc import Sequence

from wren.app import App


def resolve_app(target: str, *, argv: Sequence[str] = ()) -> App:
    """Import *target* and return the App it names.

    ``attr`` defaults to ``app``. If it names a factory rather than an
    App, the factory is called, with ``argv=`` when *argv* is non-empty so
    a task can be picked before boot. ``ModuleNotFoundError`` and
    ``AttributeError`` propagate from the import and lookup; anything
    else wrong comes out as ``TypeError``.
    """
    module_name, _, attr = target.partition(":")
    found = getattr(importlib.import_module(module_name), attr or "app")

    if not isinstance(found, App) and callable(found):
        kwargs = {"argv": list(argv)} if argv else {}
        try:
            found = found(**kwargs)
        except Exception as exc:
            msg = f"Factory function {target!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if isinstance(found, App):
        return found
    msg = f"{target!r} resolved to {type(found).__name__}, not a wren.App instance"
    raise TypeError(msg)
