"""The @hook decorator for declaring hook handlers on Module subclasses."""

from __future__ import annotations

from typing import Any, Callable

__all__ = ["hook", "collect_hooks"]

_HOOK_ATTR = "__plugcore_hooks__"


def hook(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a method as a handler for the named hook.

    The decorator may be stacked to subscribe one method to several hooks::

        class AuditModule(Module):
            id = "audit"

            @hook("user:created")
            @hook("user:deleted")
            async def record(self, context):
                ...
    """
    if not name:
        raise ValueError("hook name must be a non-empty string")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        names: list[str] = list(getattr(func, _HOOK_ATTR, []))
        # Stacked decorators apply bottom-up; keep the top-down reading order.
        names.insert(0, name)
        setattr(func, _HOOK_ATTR, names)
        return func

    return decorator


def collect_hooks(instance: Any) -> list[tuple[str, Callable[..., Any]]]:
    """Return (hook_name, bound_method) pairs for decorated methods of instance.

    Methods are returned in class definition order, base classes first. A
    method overridden in a subclass is collected once, using the override's
    hook names.
    """
    seen: dict[str, list[str]] = {}
    for klass in reversed(type(instance).__mro__):
        for attr, value in vars(klass).items():
            names = getattr(value, _HOOK_ATTR, None)
            if names:
                seen.pop(attr, None)
                seen[attr] = names
            elif attr in seen:
                # Overridden without the decorator: no longer a hook.
                del seen[attr]

    result: list[tuple[str, Callable[..., Any]]] = []
    for attr, names in seen.items():
        bound = getattr(instance, attr)
        for hook_name in names:
            result.append((hook_name, bound))
    return result
