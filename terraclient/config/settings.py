"""
Settings management for terraclient.

Handles loading, saving, and accessing library configuration.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .defaults import DEFAULT_SETTINGS, ENV_OVERRIDES

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


class Settings:
    """
    Library settings manager.

    Values are resolved in this order, later ones winning:
    DEFAULT_SETTINGS, the JSON settings file, TERRACLIENT_* environment
    variables.

    Path:
        Linux/macOS: ~/.config/terraclient/settings.json
        Windows: %APPDATA%\\terraclient\\settings.json
    """

    def __init__(self, config_file: Optional[str] = None, use_env: bool = True):
        """
        Initialize settings manager.

        Args:
            config_file: Explicit settings file; defaults to the platform path
            use_env: Apply TERRACLIENT_* environment overrides
        """
        if config_file:
            self.config_file = Path(config_file)
            self.config_dir = self.config_file.parent
        else:
            self.config_dir = self._get_config_dir()
            self.config_file = self.config_dir / "settings.json"
        self._use_env = use_env
        self._settings: Dict[str, Any] = {}
        self.load()

    @staticmethod
    def _get_config_dir() -> Path:
        """
        Get platform-specific configuration directory.

        Returns:
            Path to configuration directory
        """
        if os.name == 'nt':  # Windows
            base = os.environ.get('APPDATA', os.path.expanduser('~'))
        else:  # Linux/macOS
            base = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(base) / 'terraclient'

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Settings":
        """Build settings from defaults plus `values`, ignoring file and environment."""
        settings = cls.__new__(cls)
        settings.config_dir = cls._get_config_dir()
        settings.config_file = settings.config_dir / "settings.json"
        settings._use_env = False
        settings._settings = copy.deepcopy(DEFAULT_SETTINGS)
        cls._deep_update(settings._settings, values)
        settings._validate()
        return settings

    def load(self):
        """
        Load settings from file.

        If file doesn't exist or is invalid, uses default settings.
        """
        self._settings = copy.deepcopy(DEFAULT_SETTINGS)

        if not self.config_file.exists():
            logger.debug("No config file found, using defaults")
        else:
            try:
                with open(self.config_file, 'r') as f:
                    loaded_settings = json.load(f)

                # Merge with defaults (in case new settings were added)
                self._deep_update(self._settings, loaded_settings)

                logger.info(f"Loaded settings from {self.config_file}")

            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"Failed to load settings: {e}, using defaults")
                self._settings = copy.deepcopy(DEFAULT_SETTINGS)

        if self._use_env:
            self._apply_env_overrides()

        self._validate()

    def _apply_env_overrides(self):
        for env_var, key in ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is None or raw == "":
                continue
            if isinstance(DEFAULT_SETTINGS.get(key), bool):
                self.set(key, raw.strip().lower() in _TRUE_VALUES)
            else:
                self.set(key, raw)
            logger.debug(f"Setting '{key}' overridden by {env_var}")

    def _validate(self):
        """Reset values the typed properties cannot use to their defaults."""
        timeout = self._settings.get("timeout")
        if timeout is None:
            return
        try:
            valid = not isinstance(timeout, bool) and float(timeout) > 0
        except (TypeError, ValueError):
            valid = False
        if not valid:
            logger.error(f"Invalid timeout {timeout!r} in settings, using default")
            self._settings["timeout"] = DEFAULT_SETTINGS["timeout"]

    def save(self):
        """
        Save current settings to file.

        Creates parent directories if needed.
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            with open(self.config_file, 'w') as f:
                json.dump(self._settings, f, indent=2)

            logger.info(f"Saved settings to {self.config_file}")

        except IOError as e:
            logger.error(f"Failed to save settings: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get setting value.

        Supports nested keys with dot notation: "section.key"

        Args:
            key: Setting key (use dots for nested values)
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set setting value.

        Supports nested keys with dot notation: "section.key"
        """
        keys = key.split('.')
        target = self._settings

        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                target[k] = {}
            target = target[k]

        target[keys[-1]] = value

    @property
    def terraform_binary(self) -> str:
        return self.get("terraform_binary") or "terraform"

    @property
    def credentials_env_var(self) -> str:
        return self.get("credentials_env_var") or "GOOGLE_APPLICATION_CREDENTIALS"

    @property
    def workspace_prefix(self) -> str:
        return self.get("workspace_prefix") or "terraform_client_workingdir"

    @property
    def keep_workspaces(self) -> bool:
        return bool(self.get("keep_workspaces", False))

    @property
    def timeout(self) -> Optional[float]:
        value = self.get("timeout")
        return float(value) if value is not None else None

    @staticmethod
    def _deep_update(base: dict, updates: dict):
        """
        Recursively update base dict with values from updates dict.
        """
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Settings._deep_update(base[key], value)
            else:
                base[key] = value
