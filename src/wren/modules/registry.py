"""Module registry — every module of the app, by name and alias.

Written once at boot, read-only afterwards. Requests reach it as
``request.modules``::

    article = request.modules.lookup("article")
    article = request.modules.article      # by name or alias
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from wren.errors import ConfigurationError

if TYPE_CHECKING:
    from wren.modules.module import Module


class ModuleRegistry:
    """Ordered table of modules, keyed by name with optional aliases.

    Names and aliases share one namespace, so a module can never be
    shadowed by another module's alias. Names of the registry's own
    attributes are reserved.
    """

    __slots__ = ("_actions", "_aliases", "_frozen", "_modules")

    def __init__(self) -> None:
        self._modules: dict[str, Module] = {}
        self._aliases: dict[str, Module] = {}
        self._actions: dict[str, Module] = {}
        self._frozen = False

    def _taken(self, key: str) -> bool:
        return key in self._modules or key in self._aliases or hasattr(type(self), key)

    def register(self, module: Module) -> None:
        """Add *module*.

        Raises ``ConfigurationError`` if its name or alias collides with
        a module registered earlier or with a registry attribute, or if
        another module already serves its action prefix.
        """
        if self._frozen:
            msg = "Cannot register modules after routes are compiled."
            raise RuntimeError(msg)
        if self._taken(module.name):
            msg = f"The module {module.name!r} conflicts with a module registered earlier."
            raise ConfigurationError(msg)
        alias = module.alias
        if alias is not None and (alias == module.name or self._taken(alias)):
            msg = (
                f"The module {module.name!r} has an alias, {alias!r}, that conflicts "
                "with a module registered earlier or a core feature."
            )
            raise ConfigurationError(msg)
        action = module.action.rstrip("/") or "/"
        owner = self._actions.get(action)
        if owner is not None:
            msg = (
                f"The module {module.name!r} uses the action prefix {action!r}, "
                f"which the module {owner.name!r} already uses."
            )
            raise ConfigurationError(msg)
        self._modules[module.name] = module
        if alias is not None:
            self._aliases[alias] = module
        self._actions[action] = module

    def lookup(self, name_or_alias: str) -> Module | None:
        """Return the module registered under *name_or_alias*, or ``None``."""
        return self._modules.get(name_or_alias) or self._aliases.get(name_or_alias)

    def __getattr__(self, name: str) -> Module:
        if name.startswith("_"):
            raise AttributeError(name)
        module = self.lookup(name)
        if module is None:
            msg = f"No module named {name!r}"
            raise AttributeError(msg)
        return module

    def __getitem__(self, name: str) -> Module:
        module = self.lookup(name)
        if module is None:
            raise KeyError(name)
        return module

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"ModuleRegistry({list(self._modules)!r})"

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Stop accepting modules and freeze every registered one."""
        self._frozen = True
        for module in self._modules.values():
            module.freeze()
