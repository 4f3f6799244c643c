"""Kida renderer with per-module template lookup.

Each module gets its own kida Environment whose loader searches the
module's definition chain, most specific layer first, then the app's
template directory::

    <project override dirname>/views/show.html
    <base module dirname>/views/show.html
    <template_dir>/show.html

A template name of ``other-module:name`` renders from that module's
lookup instead. Names without an extension get ``.html``.

kida is an optional dependency (``pip install "wren[templates]"``); it
is imported the first time something is rendered.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from wren.config import AppConfig
from wren.errors import ConfigurationError

if TYPE_CHECKING:
    from kida import Environment

    from wren.http.request import Request
    from wren.modules.module import Module


def _import_kida() -> Any:
    try:
        import kida
    except ImportError as exc:
        msg = 'The default renderer needs kida. Install it with: pip install "wren[templates]"'
        raise ConfigurationError(msg) from exc
    return kida


def template_file(name: str) -> str:
    """``show`` -> ``show.html``; names with an extension are kept."""
    return name if Path(name).suffix else f"{name}.html"


class KidaRenderer:
    """Renderer collaborator backed by kida.

    Helpers pushed by modules at boot are available in every template
    as ``helpers[<alias or module name>]``.
    """

    __slots__ = ("_config", "_environments", "_helpers")

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._environments: dict[str, Environment] = {}
        self._helpers: dict[str, dict[str, Any]] = {}

    def add_helpers(self, module: Module, helpers: Mapping[str, Any]) -> None:
        self._helpers.setdefault(module.alias or module.name, {}).update(helpers)

    def environment(self, module: Module) -> Environment:
        """The (cached) kida Environment for *module*."""
        env = self._environments.get(module.name)
        if env is not None:
            return env
        kida = _import_kida()
        loaders = [
            kida.FileSystemLoader(str(Path(dirname) / "views")) for dirname in module.dirnames
        ]
        loaders.append(kida.FileSystemLoader(str(self._config.template_dir)))
        env = kida.Environment(
            loader=kida.ChoiceLoader(loaders),
            autoescape=self._config.autoescape,
            auto_reload=self._config.debug,
        )
        env.add_global("helpers", self._helpers)
        self._environments[module.name] = env
        return env

    def _resolve(self, request: Request, name: str, module: Module) -> tuple[Module, str]:
        owner, sep, local = name.partition(":")
        if not sep:
            return module, name
        target = request.modules.lookup(owner) if request.modules is not None else None
        if target is None:
            msg = f"Template {name!r} names an unknown module {owner!r}."
            raise ConfigurationError(msg)
        return target, local

    def _context(self, request: Request, data: Mapping[str, Any], module: Module) -> dict[str, Any]:
        return {"request": request, "module": module, "data": dict(data), **data}

    def render(self, request: Request, name: str, data: Mapping[str, Any], module: Module) -> str:
        target, local = self._resolve(request, name, module)
        template = self.environment(target).get_template(template_file(local))
        return template.render(self._context(request, data, module))

    def render_string(
        self, request: Request, source: str, data: Mapping[str, Any], module: Module
    ) -> str:
        template = self.environment(module).from_string(source)
        return template.render(self._context(request, data, module))
