"""Extension aggregation: routes, components and hook dispatch for active modules."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Callable

from plugcore.module import Component, Hook, Route
from plugcore.utils.invoke import invoke_callback

logger = logging.getLogger(__name__)

__all__ = ["collect_components", "collect_hooks", "collect_routes", "dispatch_hook"]

HookErrorCallback = Callable[[str, Hook, Exception], None]


def _contributions(modules: Iterable[Any], attr: str) -> list[Any]:
    result: list[Any] = []
    for module in modules:
        result.extend(getattr(module, attr, None) or [])
    return result


def collect_routes(modules: Iterable[Any]) -> list[Route]:
    """Concatenate the routes of modules, preserving declared and module order."""
    return _contributions(modules, "routes")


def collect_components(modules: Iterable[Any]) -> list[Component]:
    """Concatenate the components of modules, preserving declared and module order."""
    return _contributions(modules, "components")


def collect_hooks(modules: Iterable[Any], name: str | None = None) -> list[tuple[str, Hook]]:
    """Return (module_id, hook) pairs, optionally filtered by hook name.

    Entries without a ``name`` attribute are logged and skipped.
    """
    result: list[tuple[str, Hook]] = []
    for module in modules:
        for hook in getattr(module, "hooks", None) or []:
            hook_name = getattr(hook, "name", None)
            if hook_name is None:
                logger.error("Skipping malformed hook %r in module '%s'", hook, module.id)
                continue
            if name is None or hook_name == name:
                result.append((module.id, hook))
    return result


async def dispatch_hook(
    subscriptions: list[tuple[str, Hook]],
    context: Any,
    *,
    concurrent: bool = False,
    on_error: HookErrorCallback | None = None,
) -> int:
    """Invoke every subscribed handler with context, isolating failures.

    A handler that raises is reported to ``on_error`` and never stops the
    remaining handlers. With ``concurrent=True`` all handlers are started
    together with ``asyncio.gather``; otherwise they run one after another
    in subscription order.

    Returns:
        Number of handlers that failed.
    """

    async def run(module_id: str, hook: Hook) -> bool:
        try:
            await invoke_callback(hook.handler, context)
        except Exception as e:
            if on_error is not None:
                on_error(module_id, hook, e)
            else:
                logger.error("Hook '%s' handler failed in module '%s': %s", hook.name, module_id, e, exc_info=True)
            return False
        return True

    if concurrent:
        outcomes = await asyncio.gather(*(run(module_id, hook) for module_id, hook in subscriptions))
    else:
        outcomes = [await run(module_id, hook) for module_id, hook in subscriptions]
    return sum(1 for ok in outcomes if not ok)
