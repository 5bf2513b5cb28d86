"""Error hierarchy for the plugcore framework."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "ModuleError",
    "ConfigNotFoundError",
    "ConfigError",
    "InvalidInputError",
    "DuplicateModuleError",
    "NotRegisteredError",
    "DependentModulesExistError",
    "ActiveDependentsExistError",
    "MissingDependencyError",
    "CircularDependencyError",
    "ErrorCodes",
]


class ModuleError(Exception):
    """Base error for all plugcore framework errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def module_id(self) -> str | None:
        """The module ID the error refers to, if any."""
        return self.details.get("module_id")


class ConfigNotFoundError(ModuleError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(ModuleError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class InvalidInputError(ModuleError):
    """Raised for invalid input."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(code="GENERAL_INVALID_INPUT", message=message, **kwargs)


class DuplicateModuleError(ModuleError):
    """Raised when registering a module ID that is already registered."""

    def __init__(self, module_id: str, **kwargs: Any) -> None:
        super().__init__(
            code="MODULE_DUPLICATE",
            message=f"Module {module_id} is already registered",
            details={"module_id": module_id},
            **kwargs,
        )


class NotRegisteredError(ModuleError):
    """Raised when an operation targets a module that is not registered."""

    def __init__(self, module_id: str, **kwargs: Any) -> None:
        super().__init__(
            code="MODULE_NOT_REGISTERED",
            message=f"Module {module_id} is not registered",
            details={"module_id": module_id},
            **kwargs,
        )


class DependentModulesExistError(ModuleError):
    """Raised when unregistering a module that other registered modules depend on."""

    def __init__(self, module_id: str, dependents: list[str], **kwargs: Any) -> None:
        super().__init__(
            code="DEPENDENT_MODULES_EXIST",
            message=(
                f"Cannot unregister module {module_id}: dependent modules exist "
                f"({', '.join(dependents)})"
            ),
            details={"module_id": module_id, "dependents": dependents},
            **kwargs,
        )

    @property
    def dependents(self) -> list[str]:
        """IDs of the registered modules that depend on the target."""
        return self.details["dependents"]


class ActiveDependentsExistError(ModuleError):
    """Raised when deactivating a module that active modules still depend on."""

    def __init__(self, module_id: str, dependents: list[str], **kwargs: Any) -> None:
        super().__init__(
            code="ACTIVE_DEPENDENTS_EXIST",
            message=(
                f"Cannot deactivate module {module_id}: active dependent modules exist "
                f"({', '.join(dependents)})"
            ),
            details={"module_id": module_id, "dependents": dependents},
            **kwargs,
        )

    @property
    def dependents(self) -> list[str]:
        """IDs of the active modules that depend on the target."""
        return self.details["dependents"]


class MissingDependencyError(ModuleError):
    """Raised when dependency resolution reaches a module ID that is not registered."""

    def __init__(self, dependency_id: str, required_by: str | None = None, **kwargs: Any) -> None:
        message = f"Missing dependency: {dependency_id}"
        if required_by is not None:
            message += f" (required by {required_by})"
        super().__init__(
            code="MISSING_DEPENDENCY",
            message=message,
            details={"module_id": dependency_id, "dependency_id": dependency_id, "required_by": required_by},
            **kwargs,
        )

    @property
    def dependency_id(self) -> str:
        """The dependency ID that could not be found."""
        return self.details["dependency_id"]

    @property
    def required_by(self) -> str | None:
        """The module whose dependency list named the missing ID."""
        return self.details["required_by"]


class CircularDependencyError(ModuleError):
    """Raised when circular dependencies are detected among modules."""

    def __init__(self, cycle_path: list[str], **kwargs: Any) -> None:
        super().__init__(
            code="CIRCULAR_DEPENDENCY",
            message=f"Circular dependency detected: {' -> '.join(cycle_path)}",
            details={"module_id": cycle_path[0] if cycle_path else None, "cycle_path": cycle_path},
            **kwargs,
        )

    @property
    def cycle_path(self) -> list[str]:
        """The IDs forming the cycle, first ID repeated at the end."""
        return self.details["cycle_path"]


class ErrorCodes:
    """All framework error codes as constants.

    Use these instead of hardcoding error code strings.

    Example:
        if error.code == ErrorCodes.MODULE_NOT_REGISTERED:
            handle_not_registered()
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    GENERAL_INVALID_INPUT = "GENERAL_INVALID_INPUT"
    MODULE_DUPLICATE = "MODULE_DUPLICATE"
    MODULE_NOT_REGISTERED = "MODULE_NOT_REGISTERED"
    DEPENDENT_MODULES_EXIST = "DEPENDENT_MODULES_EXIST"
    ACTIVE_DEPENDENTS_EXIST = "ACTIVE_DEPENDENTS_EXIST"
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
