"""plugcore - Module lifecycle manager for pluggable applications."""

from __future__ import annotations

# Core
from plugcore.manager import ModuleManager

# Module types
from plugcore.module import Component, Hook, Module, ModuleConfig, Route

# Decorators
from plugcore.decorator import hook

# Config
from plugcore.config import Config

# Errors
from plugcore.errors import (
    ActiveDependentsExistError,
    CircularDependencyError,
    ConfigError,
    ConfigNotFoundError,
    DependentModulesExistError,
    DuplicateModuleError,
    ErrorCodes,
    InvalidInputError,
    MissingDependencyError,
    ModuleError,
    NotRegisteredError,
)

# Observability
from plugcore.observability import (
    LifecycleObserver,
    LoggingObserver,
    MetricsCollector,
    MetricsObserver,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "ModuleManager",
    # Module types
    "Module",
    "ModuleConfig",
    "Route",
    "Component",
    "Hook",
    # Decorators
    "hook",
    # Config
    "Config",
    # Errors
    "ErrorCodes",
    "ModuleError",
    "ConfigError",
    "ConfigNotFoundError",
    "InvalidInputError",
    "DuplicateModuleError",
    "NotRegisteredError",
    "DependentModulesExistError",
    "ActiveDependentsExistError",
    "MissingDependencyError",
    "CircularDependencyError",
    # Observability
    "LifecycleObserver",
    "LoggingObserver",
    "MetricsCollector",
    "MetricsObserver",
]
