"""Shared test fixtures for the plugcore test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from plugcore.manager import ModuleManager
from plugcore.module import Component, Hook, Module, Route

from module_helpers import RecordingModule


@pytest.fixture
def manager() -> ModuleManager:
    """A fresh, empty ModuleManager."""
    return ModuleManager()


@pytest.fixture
def call_log() -> list[tuple[str, str]]:
    """Shared log of (callback, module_id) tuples."""
    return []


@pytest.fixture
def make_module(call_log: list[tuple[str, str]]) -> Callable[..., RecordingModule]:
    """Factory for RecordingModule instances that share ``call_log``."""

    def factory(
        module_id: str,
        dependencies: list[str] | None = None,
        enabled: bool = False,
        **kwargs: Any,
    ) -> RecordingModule:
        return RecordingModule(
            module_id,
            call_log,
            dependencies=dependencies or [],
            config={"enabled": enabled},
            **kwargs,
        )

    return factory


@pytest.fixture
def blog_module() -> Module:
    """An enabled module contributing one route, one component and one hook."""
    return Module(
        "blog",
        name="Blog",
        description="A blog module",
        config={"enabled": True, "settings": {"posts_per_page": 10}},
        routes=[Route(path="/blog", method="GET", handler=lambda: "posts")],
        components=[Component(name="BlogWidget", component=object())],
        hooks=[Hook(name="post:created", handler=lambda context: None)],
    )
