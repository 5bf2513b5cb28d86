"""Helpers for calling callbacks that may be sync or async."""

from __future__ import annotations

import inspect
from typing import Any, Callable

__all__ = ["invoke_callback"]


async def invoke_callback(callback: Callable[..., Any] | None, *args: Any) -> Any:
    """Call callback with args, awaiting the result if it is awaitable.

    A ``None`` callback is treated as a no-op, so optional lifecycle methods
    can be passed straight from ``getattr(module, name, None)``.
    """
    if callback is None:
        return None
    if not callable(callback):
        raise TypeError(f"Callback {callback!r} is not callable")
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
