"""Tests for ModuleManager registration and unregistration."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from plugcore.config import Config
from plugcore.errors import (
    ConfigError,
    DependentModulesExistError,
    DuplicateModuleError,
    InvalidInputError,
    NotRegisteredError,
)
from plugcore.manager import ModuleManager
from plugcore.module import Module, ModuleConfig

from module_helpers import FailingModule


class TestRegisterModule:
    @pytest.mark.asyncio
    async def test_register_and_get(self, manager, blog_module) -> None:
        """A registered module is returned by get_module with the same id."""
        await manager.register_module(blog_module)
        registered = manager.get_module("blog")
        assert registered is blog_module
        assert registered.id == "blog"
        assert registered.name == "Blog"

    @pytest.mark.asyncio
    async def test_install_called_once(self, manager, make_module, call_log) -> None:
        await manager.register_module(make_module("a"))
        assert call_log == [("install", "a")]

    @pytest.mark.asyncio
    async def test_duplicate_raises_and_keeps_one_entry(self, manager, make_module, call_log) -> None:
        """Second registration of the same id fails without side effects."""
        first = make_module("a")
        await manager.register_module(first)
        with pytest.raises(DuplicateModuleError, match="Module a is already registered") as exc_info:
            await manager.register_module(make_module("a"))
        assert exc_info.value.module_id == "a"
        assert manager.count == 1
        assert manager.get_module("a") is first
        assert call_log == [("install", "a")]

    @pytest.mark.asyncio
    async def test_install_failure_does_not_register(self, manager) -> None:
        """If install() raises, the error propagates and the module is absent."""
        module = FailingModule("broken", fail_on={"install"})
        with pytest.raises(RuntimeError, match="install failed"):
            await manager.register_module(module)
        assert manager.get_module("broken") is None
        assert manager.count == 0

    @pytest.mark.asyncio
    async def test_retry_after_install_failure(self, manager) -> None:
        """A failed install releases the id for a later registration."""
        module = FailingModule("flaky", fail_on={"install"})
        with pytest.raises(RuntimeError):
            await manager.register_module(module)
        module.fail_on.clear()
        await manager.register_module(module)
        assert manager.has_module("flaky")

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_registration(self, manager) -> None:
        """Two overlapping registrations of one id: exactly one succeeds."""
        gate = asyncio.Event()

        async def slow_install() -> None:
            await gate.wait()

        first = SimpleNamespace(id="race", dependencies=[], config={"enabled": False}, install=slow_install)
        second = SimpleNamespace(id="race", dependencies=[], config={"enabled": False})

        task = asyncio.create_task(manager.register_module(first))
        await asyncio.sleep(0)
        with pytest.raises(DuplicateModuleError):
            await manager.register_module(second)
        gate.set()
        await task
        assert manager.get_module("race") is first

    @pytest.mark.asyncio
    async def test_async_mock_install_is_awaited(self, manager) -> None:
        install = AsyncMock()
        module = SimpleNamespace(id="m", dependencies=[], config={"enabled": False}, install=install)
        await manager.register_module(module)
        install.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_duck_typed_module_without_callbacks(self, manager) -> None:
        """Objects without lifecycle methods are accepted; config is normalized."""
        module = SimpleNamespace(id="plain", dependencies=[], config={"enabled": True, "theme": "dark"})
        await manager.register_module(module)
        assert isinstance(module.config, ModuleConfig)
        assert module.config.enabled is True
        assert module.config.model_extra == {"theme": "dark"}

    @pytest.mark.asyncio
    async def test_missing_id_rejected(self, manager) -> None:
        with pytest.raises(InvalidInputError):
            await manager.register_module(SimpleNamespace(id="", config=None))

    @pytest.mark.asyncio
    async def test_invalid_config_rejected(self, manager) -> None:
        module = SimpleNamespace(id="bad", dependencies=[], config={"enabled": "not-a-bool"})
        with pytest.raises(ConfigError):
            await manager.register_module(module)
        assert not manager.has_module("bad")

    @pytest.mark.asyncio
    async def test_pre_enabled_module_not_activated(self, manager, make_module, call_log) -> None:
        """A module registered with enabled=True is active without an activate() call."""
        await manager.register_module(make_module("a", enabled=True))
        assert manager.is_active("a")
        assert ("activate", "a") not in call_log

    @pytest.mark.asyncio
    async def test_settings_overlay_from_config(self) -> None:
        """modules.settings.<id> is merged over the module's settings, config wins."""
        config = Config({"modules": {"settings": {"blog": {"posts_per_page": 25, "comments": True}}}})
        manager = ModuleManager(config=config)
        module = Module("blog", config={"settings": {"posts_per_page": 10, "theme": "light"}})
        await manager.register_module(module)
        assert module.config.settings == {"posts_per_page": 25, "theme": "light", "comments": True}

    @pytest.mark.asyncio
    async def test_install_failure_restores_config(self) -> None:
        """A failed install leaves the caller's config object in place."""
        config = Config({"modules": {"settings": {"shaky": {"retries": 3}}}})
        manager = ModuleManager(config=config)
        own = ModuleConfig(settings={"retries": 1})
        module = FailingModule("shaky", fail_on={"install"}, config=own)
        with pytest.raises(RuntimeError, match="install failed"):
            await manager.register_module(module)
        assert module.config is own
        assert own.settings == {"retries": 1}
        assert not manager.has_module("shaky")

    @pytest.mark.asyncio
    async def test_malformed_hook_rejected(self, manager) -> None:
        """Hook entries must expose ``name`` and a callable ``handler``."""
        module = SimpleNamespace(
            id="legacy",
            dependencies=[],
            config={"enabled": True},
            hooks=[{"name": "x", "handler": lambda context: None}],
            install=MagicMock(),
        )
        with pytest.raises(InvalidInputError, match="malformed hook"):
            await manager.register_module(module)
        module.install.assert_not_called()
        assert not manager.has_module("legacy")
        # The id is released for a corrected retry.
        module.hooks = []
        await manager.register_module(module)
        assert manager.has_module("legacy")


class TestUnregisterModule:
    @pytest.mark.asyncio
    async def test_unregister(self, manager, make_module, call_log) -> None:
        await manager.register_module(make_module("a"))
        await manager.unregister_module("a")
        assert manager.get_module("a") is None
        assert call_log == [("install", "a"), ("uninstall", "a")]

    @pytest.mark.asyncio
    async def test_unregister_missing(self, manager) -> None:
        with pytest.raises(NotRegisteredError, match="Module non-existent is not registered"):
            await manager.unregister_module("non-existent")

    @pytest.mark.asyncio
    async def test_inactive_dependent_blocks_unregister(self, manager, make_module) -> None:
        """Dependency integrity is protected even for inactive dependents."""
        await manager.register_module(make_module("test-module"))
        await manager.register_module(make_module("dependent-module", dependencies=["test-module"]))
        with pytest.raises(DependentModulesExistError) as exc_info:
            await manager.unregister_module("test-module")
        assert "dependent modules exist" in str(exc_info.value)
        assert exc_info.value.dependents == ["dependent-module"]
        assert manager.has_module("test-module")

    @pytest.mark.asyncio
    async def test_unregister_dependent_then_dependency(self, manager, make_module) -> None:
        await manager.register_module(make_module("core"))
        await manager.register_module(make_module("blog", dependencies=["core"]))
        await manager.unregister_module("blog")
        await manager.unregister_module("core")
        assert manager.get_all_modules() == []

    @pytest.mark.asyncio
    async def test_uninstall_failure_keeps_module(self, manager) -> None:
        await manager.register_module(FailingModule("sticky", fail_on={"uninstall"}))
        with pytest.raises(RuntimeError, match="uninstall failed"):
            await manager.unregister_module("sticky")
        assert manager.has_module("sticky")

    @pytest.mark.asyncio
    async def test_uninstall_callback_is_mock(self, manager) -> None:
        uninstall = MagicMock()
        module = SimpleNamespace(id="m", dependencies=[], config=None, uninstall=uninstall)
        await manager.register_module(module)
        await manager.unregister_module("m")
        uninstall.assert_called_once_with()


class TestUninstallModule:
    @pytest.mark.asyncio
    async def test_deactivates_then_unregisters(self, manager, make_module, call_log) -> None:
        await manager.register_module(make_module("a"))
        await manager.activate_module("a")
        await manager.uninstall_module("a")
        assert call_log == [("install", "a"), ("activate", "a"), ("deactivate", "a"), ("uninstall", "a")]
        assert not manager.has_module("a")

    @pytest.mark.asyncio
    async def test_inactive_module_skips_deactivate(self, manager, make_module, call_log) -> None:
        await manager.register_module(make_module("a"))
        await manager.uninstall_module("a")
        assert call_log == [("install", "a"), ("uninstall", "a")]

    @pytest.mark.asyncio
    async def test_dependents_checked_before_deactivation(self, manager, make_module, call_log) -> None:
        """A blocked uninstall leaves the module active and untouched."""
        await manager.register_module(make_module("core", enabled=True))
        await manager.register_module(make_module("blog", dependencies=["core"]))
        with pytest.raises(DependentModulesExistError):
            await manager.uninstall_module("core")
        assert manager.is_active("core")
        assert ("deactivate", "core") not in call_log

    @pytest.mark.asyncio
    async def test_uninstall_missing(self, manager) -> None:
        with pytest.raises(NotRegisteredError):
            await manager.uninstall_module("ghost")
