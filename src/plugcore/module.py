"""Module base class, module config model, and extension contribution types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plugcore.decorator import collect_hooks
from plugcore.errors import ConfigError, InvalidInputError

__all__ = ["Component", "Hook", "Module", "ModuleConfig", "Route", "coerce_config"]


class ModuleConfig(BaseModel):
    """Mutable per-module configuration.

    ``enabled`` is the authoritative activation flag. Any extra keys are kept
    as opaque settings alongside ``settings``.
    """

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    enabled: bool = False
    settings: dict[str, Any] = Field(default_factory=dict)


def coerce_config(value: ModuleConfig | Mapping[str, Any] | None) -> ModuleConfig:
    """Return value as a ModuleConfig, validating mappings.

    A ModuleConfig instance is returned as-is (not copied).

    Raises:
        ConfigError: If a mapping does not validate.
    """
    if value is None:
        return ModuleConfig()
    if isinstance(value, ModuleConfig):
        return value
    if not isinstance(value, Mapping):
        raise ConfigError(message=f"Module config must be a mapping or ModuleConfig, got {type(value).__name__}")
    try:
        return ModuleConfig.model_validate(dict(value))
    except ValidationError as e:
        raise ConfigError(message=f"Invalid module config: {e}", cause=e) from e


@dataclass
class Route:
    """A route contributed by a module.

    Attributes:
        path: URL path pattern.
        handler: Callable serving the route; opaque to the manager.
        method: HTTP method.
        metadata: Free-form data for the host router.
    """

    path: str
    handler: Callable[..., Any] | None = None
    method: str = "GET"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Component:
    """A UI component contributed by a module."""

    name: str
    component: Any = None
    props: dict[str, Any] = field(default_factory=dict)


@dataclass
class Hook:
    """A named hook subscription. ``handler`` receives the dispatch context."""

    name: str
    handler: Callable[[Any], Any]


class Module:
    """Base class for modules with no-op lifecycle callbacks.

    Subclassing is optional: the manager accepts any object exposing ``id``,
    ``dependencies`` and ``config`` and looks the lifecycle callbacks up by
    attribute. Metadata may be given as class attributes or constructor
    arguments; constructor arguments win.

    Methods decorated with :func:`plugcore.hook` are appended to ``hooks``.
    """

    id: str = ""
    name: str | None = None
    version: str = "1.0.0"
    description: str = ""
    dependencies: list[str] = []
    config: ModuleConfig | Mapping[str, Any] | None = None
    routes: list[Route] = []
    components: list[Component] = []
    hooks: list[Hook] = []

    def __init__(
        self,
        id: str | None = None,  # noqa: A002
        *,
        name: str | None = None,
        version: str | None = None,
        description: str | None = None,
        dependencies: list[str] | None = None,
        config: ModuleConfig | Mapping[str, Any] | None = None,
        routes: list[Route] | None = None,
        components: list[Component] | None = None,
        hooks: list[Hook] | None = None,
    ) -> None:
        cls = type(self)
        self.id = id if id is not None else cls.id
        if not self.id:
            raise InvalidInputError(message="Module id must be a non-empty string")
        self.name = name if name is not None else (cls.name or self.id)
        self.version = version if version is not None else cls.version
        self.description = description if description is not None else cls.description
        self.dependencies = list(dependencies if dependencies is not None else cls.dependencies)
        if config is not None:
            self.config = coerce_config(config)
        elif isinstance(cls.config, ModuleConfig):
            # Class-level configs are shared; each instance owns its activation flag.
            self.config = cls.config.model_copy(deep=True)
        else:
            self.config = coerce_config(cls.config)
        self.routes = list(routes if routes is not None else cls.routes)
        self.components = list(components if components is not None else cls.components)
        self.hooks = list(hooks if hooks is not None else cls.hooks)
        self.hooks.extend(Hook(name=hook_name, handler=handler) for hook_name, handler in collect_hooks(self))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, enabled={self.config.enabled})"

    def install(self) -> Any:
        """Called once when the module is registered."""
        return None

    def uninstall(self) -> Any:
        """Called once when the module is unregistered."""
        return None

    def activate(self) -> Any:
        """Called when the module transitions to active."""
        return None

    def deactivate(self) -> Any:
        """Called when the module transitions to inactive."""
        return None
