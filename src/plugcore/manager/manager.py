"""Module manager: registration, dependency-ordered activation, and extension aggregation."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from plugcore.errors import (
    ActiveDependentsExistError,
    DependentModulesExistError,
    DuplicateModuleError,
    InvalidInputError,
    NotRegisteredError,
)
from plugcore.manager.dependencies import find_dependents, resolve_dependencies
from plugcore.manager.extensions import collect_components, collect_hooks, collect_routes, dispatch_hook
from plugcore.module import Component, Hook, ModuleConfig, Route, coerce_config
from plugcore.observability.observer import LifecycleObserver
from plugcore.utils.invoke import invoke_callback

if TYPE_CHECKING:
    from plugcore.config import Config

logger = logging.getLogger(__name__)

__all__ = ["ModuleManager"]


class ModuleManager:
    """Owns an in-memory registry of modules and drives their lifecycle.

    Each manager is independent; there is no process-wide registry. Modules
    are any objects exposing ``id``, ``dependencies`` and ``config`` (see
    :class:`plugcore.Module`). The lifecycle callbacks ``install``,
    ``uninstall``, ``activate`` and ``deactivate`` are optional and may be
    plain functions or coroutines.
    """

    def __init__(
        self,
        config: Config | None = None,
        observers: list[LifecycleObserver] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config: Optional Config supplying ``modules.enabled``,
                ``modules.settings`` and ``hooks.concurrent``.
            observers: Observers notified of transitions and hook failures.
        """
        self._modules: dict[str, Any] = {}
        # IDs whose install() is in flight; reserved against duplicate registration.
        self._pending: set[str] = set()
        self._lock = threading.RLock()
        self._observers: list[LifecycleObserver] = list(observers or [])
        self._config = config
        self._concurrent_hooks = bool(config.get("hooks.concurrent", False)) if config is not None else False

    # ----- Registration -----

    async def register_module(self, module: Any) -> None:
        """Install a module and add it to the registry.

        Raises:
            InvalidInputError: If the module has no usable id or a hook entry
                lacks a string ``name`` or a callable ``handler``.
            DuplicateModuleError: If the id is already registered.
            ConfigError: If the module's config does not validate.
            Exception: Whatever ``install()`` raises; the module is not added
                and its original ``config`` is put back.
        """
        module_id = getattr(module, "id", None)
        if not isinstance(module_id, str) or not module_id:
            raise InvalidInputError(message="Module id must be a non-empty string")

        with self._lock:
            if module_id in self._modules or module_id in self._pending:
                raise DuplicateModuleError(module_id=module_id)
            self._pending.add(module_id)

        try:
            self._check_hooks(module_id, getattr(module, "hooks", None))
            original_config = getattr(module, "config", None)
            module.config = self._initial_config(module_id, original_config)
            try:
                await invoke_callback(getattr(module, "install", None))
            except Exception:
                module.config = original_config
                raise
            with self._lock:
                self._modules[module_id] = module
        finally:
            with self._lock:
                self._pending.discard(module_id)

        logger.info(
            "Registered module '%s' (version=%s, enabled=%s)",
            module_id,
            getattr(module, "version", None),
            module.config.enabled,
        )
        self._notify("on_registered", module_id, module)

    async def unregister_module(self, module_id: str) -> None:
        """Uninstall a module and remove it from the registry.

        Raises:
            NotRegisteredError: If the module is not registered.
            DependentModulesExistError: If any registered module, active or
                not, depends on it.
            Exception: Whatever ``uninstall()`` raises; the module stays registered.
        """
        with self._lock:
            module = self._require(module_id)
            dependents = find_dependents(module_id, self._graph())
        if dependents:
            raise DependentModulesExistError(module_id=module_id, dependents=dependents)

        await invoke_callback(getattr(module, "uninstall", None))
        with self._lock:
            self._modules.pop(module_id, None)

        logger.info("Unregistered module '%s'", module_id)
        self._notify("on_unregistered", module_id, module)

    async def uninstall_module(self, module_id: str) -> None:
        """Deactivate a module if it is active, then unregister it.

        Dependents are checked up front so a module that cannot be
        unregistered is left untouched.
        """
        with self._lock:
            module = self._require(module_id)
            dependents = find_dependents(module_id, self._graph())
        if dependents:
            raise DependentModulesExistError(module_id=module_id, dependents=dependents)
        if module.config.enabled:
            await self.deactivate_module(module_id)
        await self.unregister_module(module_id)

    # ----- Dependency resolution -----

    def resolve_dependencies(self, module_id: str) -> list[str]:
        """Return the activation order for ``module_id``, dependencies first.

        Raises:
            NotRegisteredError: If ``module_id`` is not registered.
            MissingDependencyError: If a transitive dependency is not registered.
            CircularDependencyError: If the dependency graph has a cycle
                reachable from ``module_id``.
        """
        with self._lock:
            self._require(module_id)
            graph = self._graph()
        return resolve_dependencies(module_id, graph)

    def dependents_of(self, module_id: str) -> list[str]:
        """IDs of registered modules listing ``module_id`` as a direct dependency."""
        with self._lock:
            return find_dependents(module_id, self._graph())

    # ----- Activation -----

    async def activate_module(self, module_id: str) -> None:
        """Activate a module and, first, every inactive module it depends on.

        Modules that are already active are skipped, so their ``activate``
        callback never runs twice. A failing callback stops the chain;
        modules activated earlier in the chain stay active.

        Raises:
            NotRegisteredError: If the module is not registered.
            MissingDependencyError: If a dependency is not registered.
            CircularDependencyError: If the dependencies form a cycle.
            Exception: Whatever an ``activate()`` callback raises.
        """
        await self._activate_chain(module_id)

    async def _activate_chain(self, module_id: str) -> list[str]:
        order = self.resolve_dependencies(module_id)
        activated: list[str] = []
        for mid in order:
            with self._lock:
                module = self._require(mid)
            if module.config.enabled:
                continue
            await self._transition(mid, module, enable=True)
            activated.append(mid)
        if not activated:
            logger.debug("Module '%s' and its dependencies are already active", module_id)
        return activated

    async def deactivate_module(self, module_id: str) -> None:
        """Deactivate a module.

        Deactivating an inactive module is a no-op.

        Raises:
            NotRegisteredError: If the module is not registered.
            ActiveDependentsExistError: If an active module depends on it.
            Exception: Whatever ``deactivate()`` raises; the module stays active.
        """
        with self._lock:
            module = self._require(module_id)
            active_dependents = [
                mid for mid in find_dependents(module_id, self._graph()) if self._modules[mid].config.enabled
            ]
        if active_dependents:
            raise ActiveDependentsExistError(module_id=module_id, dependents=active_dependents)

        if not module.config.enabled:
            logger.debug("Module '%s' is already inactive", module_id)
            return
        await self._transition(module_id, module, enable=False)

    async def activate_configured(self) -> list[str]:
        """Activate every module listed under ``modules.enabled``, in order.

        Returns:
            IDs of the modules newly activated, in activation order.
        """
        if self._config is None:
            return []
        activated: list[str] = []
        for module_id in self._config.enabled_modules:
            activated.extend(await self._activate_chain(module_id))
        return activated

    async def _transition(self, module_id: str, module: Any, enable: bool) -> None:
        callback_name = "activate" if enable else "deactivate"
        module.config.enabled = enable
        try:
            await invoke_callback(getattr(module, callback_name, None))
        except Exception:
            module.config.enabled = not enable
            logger.error("%s() failed for module '%s'", callback_name, module_id)
            raise

        if enable:
            logger.info("Activated module '%s'", module_id)
            self._notify("on_activated", module_id, module)
        else:
            logger.info("Deactivated module '%s'", module_id)
            self._notify("on_deactivated", module_id, module)

    # ----- Configuration -----

    def update_module_config(self, module_id: str, config: ModuleConfig | Mapping[str, Any]) -> None:
        """Replace a module's config wholesale.

        No lifecycle callback runs, even if ``enabled`` changes; use
        :meth:`activate_module` / :meth:`deactivate_module` for transitions.

        Raises:
            NotRegisteredError: If the module is not registered.
            ConfigError: If a mapping does not validate.
        """
        new_config = coerce_config(config)
        with self._lock:
            module = self._require(module_id)
            module.config = new_config
        logger.debug("Replaced config for module '%s'", module_id)

    def _initial_config(self, module_id: str, raw: Any) -> ModuleConfig:
        config = coerce_config(raw)
        if self._config is not None:
            overlay = self._config.module_settings(module_id)
            if overlay:
                config = config.model_copy(update={"settings": {**config.settings, **overlay}})
        return config

    @staticmethod
    def _check_hooks(module_id: str, hooks: Any) -> None:
        for entry in hooks or []:
            if not isinstance(getattr(entry, "name", None), str) or not callable(getattr(entry, "handler", None)):
                raise InvalidInputError(
                    message=f"Module '{module_id}' declares a malformed hook: {entry!r}",
                    details={"module_id": module_id},
                )

    # ----- Queries -----

    def get_module(self, module_id: str) -> Any | None:
        """Look up a module by ID. Returns None if not registered."""
        with self._lock:
            return self._modules.get(module_id)

    def has_module(self, module_id: str) -> bool:
        """Check whether a module is registered."""
        with self._lock:
            return module_id in self._modules

    def is_active(self, module_id: str) -> bool:
        """Whether the module is registered and enabled."""
        module = self.get_module(module_id)
        return module is not None and bool(module.config.enabled)

    def get_all_modules(self) -> list[Any]:
        """All registered modules in registration order."""
        with self._lock:
            return list(self._modules.values())

    def get_active_modules(self) -> list[Any]:
        """Registered modules whose config is enabled, in registration order."""
        return [m for m in self.get_all_modules() if m.config.enabled]

    def iter(self) -> Iterator[tuple[str, Any]]:
        """Return an iterator of (module_id, module) tuples (snapshot-based)."""
        with self._lock:
            items = list(self._modules.items())
        return iter(items)

    @property
    def count(self) -> int:
        """Number of registered modules."""
        with self._lock:
            return len(self._modules)

    @property
    def module_ids(self) -> list[str]:
        """Registered module IDs in registration order."""
        with self._lock:
            return list(self._modules.keys())

    # ----- Extensions -----

    def get_module_routes(self) -> list[Route]:
        """Routes of active modules."""
        return collect_routes(self.get_active_modules())

    def get_module_components(self) -> list[Component]:
        """Components of active modules."""
        return collect_components(self.get_active_modules())

    def get_module_hooks(self, name: str | None = None) -> list[Hook]:
        """Hook declarations of active modules, optionally filtered by name."""
        return [hook for _, hook in collect_hooks(self.get_active_modules(), name)]

    async def execute_hook(self, name: str, context: Any = None) -> None:
        """Run every handler subscribed to ``name`` on active modules.

        Handlers receive ``context`` unchanged. A handler that raises is
        logged and reported to observers; it never stops the others and
        never propagates out of this call.
        """
        subscriptions = collect_hooks(self.get_active_modules(), name)
        if not subscriptions:
            logger.debug("No active handlers for hook '%s'", name)
            return

        def on_error(module_id: str, hook: Hook, error: Exception) -> None:
            logger.error(
                "Hook '%s' handler failed in module '%s': %s",
                name,
                module_id,
                error,
                exc_info=(type(error), error, error.__traceback__),
            )
            self._notify("on_hook_error", name, module_id, error, context)

        failed = await dispatch_hook(
            subscriptions,
            context,
            concurrent=self._concurrent_hooks,
            on_error=on_error,
        )
        logger.debug("Hook '%s' ran %d handler(s), %d failed", name, len(subscriptions), failed)

    # ----- Observers -----

    def add_observer(self, observer: LifecycleObserver) -> None:
        """Append an observer."""
        with self._lock:
            self._observers.append(observer)

    def remove_observer(self, observer: LifecycleObserver) -> bool:
        """Remove an observer by identity (is). Returns True if found and removed."""
        with self._lock:
            for i, entry in enumerate(self._observers):
                if entry is observer:
                    self._observers.pop(i)
                    return True
            return False

    def _notify(self, method: str, *args: Any) -> None:
        """Call ``method`` on every observer. Errors are logged and swallowed."""
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                getattr(observer, method)(*args)
            except Exception:
                logger.error("Exception in observer %r during %s", observer, method, exc_info=True)

    # ----- Internals -----

    def _require(self, module_id: str) -> Any:
        module = self._modules.get(module_id)
        if module is None:
            raise NotRegisteredError(module_id=module_id)
        return module

    def _graph(self) -> dict[str, list[str]]:
        return {mid: list(getattr(m, "dependencies", None) or []) for mid, m in self._modules.items()}
