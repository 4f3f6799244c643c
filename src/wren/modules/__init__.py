"""Module composition — definitions, runtime modules and the registry."""

from wren.modules.definition import ModuleDefinition, RouteConfig, Task, merge_chain
from wren.modules.module import Module
from wren.modules.registry import ModuleRegistry

__all__ = [
    "Module",
    "ModuleDefinition",
    "ModuleRegistry",
    "RouteConfig",
    "Task",
    "merge_chain",
]
