"""Configuration loading and validation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from plugcore.errors import ConfigError, ConfigNotFoundError

logger = logging.getLogger(__name__)

__all__ = ["Config"]


class Config:
    """Configuration accessor with dot-path key support.

    Recognised keys:
        modules.enabled: IDs activated by ``ModuleManager.activate_configured()``.
        modules.settings.<module_id>: settings overlaid onto a module at registration.
        hooks.concurrent: Run hook handlers concurrently instead of in registry order.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file.

        Raises:
            ConfigNotFoundError: If the file does not exist.
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigNotFoundError(config_path=str(config_path))

        content = config_path.read_text(encoding="utf-8")
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(message=f"Invalid YAML in config file: {config_path}") from e

        if parsed is None:
            logger.warning("Config file %s is empty", config_path)
            return cls()
        if not isinstance(parsed, dict):
            raise ConfigError(message=f"Config file must be a YAML mapping: {config_path}")
        return cls(parsed)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-path key."""
        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    @property
    def enabled_modules(self) -> list[str]:
        """Module IDs listed under ``modules.enabled``."""
        enabled = self.get("modules.enabled", [])
        if not isinstance(enabled, list):
            raise ConfigError(message="'modules.enabled' must be a list of module IDs")
        return [str(mid) for mid in enabled]

    def module_settings(self, module_id: str) -> dict[str, Any]:
        """Settings overlay for a module, empty if none is configured."""
        settings = self.get("modules.settings", {}) or {}
        if not isinstance(settings, dict):
            raise ConfigError(message="'modules.settings' must be a mapping")
        overlay = settings.get(module_id) or {}
        if not isinstance(overlay, dict):
            raise ConfigError(message=f"Settings for module '{module_id}' must be a mapping")
        return overlay
