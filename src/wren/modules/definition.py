"""Module definitions and definition-chain merging.

A module is described by one or more ``ModuleDefinition`` layers, from
the most general (a shared base) to the most specific (a project
override). The layers are merged once, at construction, and the most
specific layer wins on conflicting keys::

    base = ModuleDefinition(
        name="piece",
        options={"per_page": 10},
        rest_api_routes=lambda self: {"getAll": self.list_pieces},
    )
    article = ModuleDefinition(name="article", options={"alias": "article"})

    app.module(base, article)

Sections that need the module itself (to close over its methods) may be
given as a callable taking the module, the same way a section can be a
plain mapping.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from wren.errors import ConfigurationError
from wren.routing.route import RouteConfig

__all__ = [
    "ModuleDefinition",
    "RouteConfig",
    "Section",
    "Task",
    "merge_chain",
    "merge_flat",
    "merge_nested",
    "merge_options",
    "resolve_section",
]

# A section value: a mapping, or a factory called with the module.
Section: TypeAlias = Mapping[str, Any] | Callable[[Any], Mapping[str, Any]] | None


@dataclass(frozen=True, slots=True)
class Task:
    """A command-line task a module offers.

    Invoked as ``<module>:<name>``. Tasks flagged ``after_module_init``
    run as soon as every module has registered its handlers; otherwise
    they run once every module is ready. The process exits after the
    task unless ``exit_after`` is false.
    """

    task: Callable[..., Any]
    usage: str = ""
    after_module_init: bool = False
    after_module_ready: bool = True
    exit_after: bool = True


@dataclass(frozen=True, slots=True)
class ModuleDefinition:
    """One layer of a module's definition chain.

    Route sections map an HTTP method to ``{route name: route value}``.
    ``rest_api_routes`` is the CRUD shorthand
    (``getAll``/``getOne``/``post``/``put``/``patch``/``delete``).
    ``handlers`` maps an event name to ``{handler name: callable}``.
    ``methods`` become module attributes, called with the module first.
    ``extend_methods`` are called with the module and then the previous
    implementation::

        def get_browser_data(self, _super, request):
            return {**_super(request), "per_page": self.options["per_page"]}
    """

    name: str
    options: Mapping[str, Any] = field(default_factory=dict)
    routes: Section = None
    render_routes: Section = None
    api_routes: Section = None
    rest_api_routes: Section = None
    handlers: Section = None
    helpers: Section = None
    tasks: Section = None
    methods: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    extend_methods: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    init: Callable[[Any], Any] | None = None
    dirname: str | None = None


def merge_options(layers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge option mappings, later layers winning.

    Nested mappings are merged key by key; any other value replaces
    what the earlier layer had.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = merge_options((current, value))
            else:
                merged[key] = value
    return merged


def merge_chain(chain: Sequence[ModuleDefinition]) -> tuple[str, dict[str, Any]]:
    """Validate a definition chain and return its name and merged options.

    The module takes the name of the most specific layer.
    """
    if not chain:
        msg = "A module needs at least one definition."
        raise ConfigurationError(msg)
    for layer in chain:
        if not isinstance(layer, ModuleDefinition):
            msg = f"Module definitions must be ModuleDefinition instances, got {layer!r}."
            raise ConfigurationError(msg)
    name = chain[-1].name
    if not name:
        msg = "A module definition needs a name."
        raise ConfigurationError(msg)
    return name, merge_options(layer.options for layer in chain)


def resolve_section(value: Section, module: Any) -> Mapping[str, Any]:
    """Evaluate a section for *module*: call factories, default to ``{}``."""
    if value is None:
        return {}
    if callable(value):
        value = value(module)
    if not isinstance(value, Mapping):
        msg = f"Module {module.name!r}: a section must be a mapping, got {value!r}."
        raise ConfigurationError(msg)
    return value


def merge_flat(layers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge one-level sections (``helpers``, ``tasks``, REST shorthand)."""
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer)
    return merged


def merge_nested(layers: Iterable[Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    """Merge two-level sections (route sections, ``handlers``).

    The outer key is an HTTP method or an event name. Inner keys keep
    first-declaration order; a later layer redefining a key replaces the
    value in place.
    """
    merged: dict[str, dict[str, Any]] = {}
    for layer in layers:
        for outer, inner in layer.items():
            if not isinstance(inner, Mapping):
                msg = f"Expected a mapping under {outer!r}, got {inner!r}."
                raise ConfigurationError(msg)
            merged.setdefault(outer, {}).update(inner)
    return merged
