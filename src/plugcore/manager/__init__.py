"""plugcore module manager.

Provides module registration, dependency resolution, activation, and
extension aggregation.

Usage::

    from plugcore.manager import ModuleManager

    manager = ModuleManager()
    await manager.register_module(blog)
    await manager.activate_module("blog")
"""

from __future__ import annotations

from plugcore.manager.dependencies import find_dependents, resolve_dependencies
from plugcore.manager.extensions import collect_components, collect_hooks, collect_routes, dispatch_hook
from plugcore.manager.manager import ModuleManager

__all__ = [
    "ModuleManager",
    "collect_components",
    "collect_hooks",
    "collect_routes",
    "dispatch_hook",
    "find_dependents",
    "resolve_dependencies",
]
