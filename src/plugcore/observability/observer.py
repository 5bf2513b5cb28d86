"""Lifecycle observer base class and the structured logging observer."""

from __future__ import annotations

import logging
from typing import Any

__all__ = ["LifecycleObserver", "LoggingObserver"]


class LifecycleObserver:
    """Base observer class with default no-op implementations.

    Subclass and override the methods you need. Observers are notified by the
    ModuleManager after each successful transition and for every failing
    hook handler. Exceptions raised by an observer are logged and ignored.
    """

    def on_registered(self, module_id: str, module: Any) -> None:
        """Called after a module was installed and added to the registry."""

    def on_unregistered(self, module_id: str, module: Any) -> None:
        """Called after a module was uninstalled and removed from the registry."""

    def on_activated(self, module_id: str, module: Any) -> None:
        """Called after a module's activate callback completed."""

    def on_deactivated(self, module_id: str, module: Any) -> None:
        """Called after a module's deactivate callback completed."""

    def on_hook_error(self, hook_name: str, module_id: str, error: Exception, context: Any) -> None:
        """Called when a hook handler raised during dispatch."""


class LoggingObserver(LifecycleObserver):
    """Logs lifecycle transitions and hook failures with structured ``extra`` fields."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.INFO,
        log_hook_errors: bool = True,
    ) -> None:
        self._logger = logger or logging.getLogger("plugcore.observability.lifecycle")
        self._level = level
        self._log_hook_errors = log_hook_errors

    def _transition(self, transition: str, module_id: str, module: Any) -> None:
        self._logger.log(
            self._level,
            f"{transition.upper()} {module_id}",
            extra={
                "module_id": module_id,
                "transition": transition,
                "version": getattr(module, "version", None),
            },
        )

    def on_registered(self, module_id: str, module: Any) -> None:
        self._transition("registered", module_id, module)

    def on_unregistered(self, module_id: str, module: Any) -> None:
        self._transition("unregistered", module_id, module)

    def on_activated(self, module_id: str, module: Any) -> None:
        self._transition("activated", module_id, module)

    def on_deactivated(self, module_id: str, module: Any) -> None:
        self._transition("deactivated", module_id, module)

    def on_hook_error(self, hook_name: str, module_id: str, error: Exception, context: Any) -> None:
        if self._log_hook_errors:
            self._logger.error(
                f"HOOK ERROR {hook_name} in {module_id}: {error}",
                extra={"module_id": module_id, "hook": hook_name, "error": str(error)},
                exc_info=(type(error), error, error.__traceback__),
            )
