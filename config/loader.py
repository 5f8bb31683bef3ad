"""
Configuration loading and management.

Reads the JSON configuration file, applies environment overrides and
validates the result into a SearchSyncConfig.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

from pydantic import ValidationError

from search_sync.errors import ConfigurationError
from search_sync.models.config import SearchSyncConfig, GlobalSettings
from .defaults import get_default_config, ENV_VAR_MAPPING, STRING_SETTINGS

logger = logging.getLogger(__name__)


class ConfigurationLoader:
    """Load and save reposearch configuration"""

    def __init__(self, global_settings: Optional[GlobalSettings] = None):
        self.global_settings = global_settings or GlobalSettings()
        self.config_cache: Dict[str, SearchSyncConfig] = {}

    def load(self, path: Optional[Union[str, Path]] = None) -> SearchSyncConfig:
        """
        Load configuration.

        Args:
            path: Explicit config file. When omitted the global config file is
                used if present, otherwise the defaults.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if path is not None:
            config_file = Path(path).expanduser().resolve()
            if not config_file.exists():
                raise ConfigurationError(f"Configuration file not found: {config_file}")
        else:
            config_file = self.global_settings.config_file
            if not config_file.exists():
                config_file = None

        # Check cache first
        cache_key = str(config_file) if config_file else "<defaults>"
        if cache_key in self.config_cache:
            return self.config_cache[cache_key]

        if config_file is not None:
            data = self._read_config_file(config_file)
        else:
            data = self._settings_defaults()

        # Apply environment variable overrides
        data = self._apply_env_overrides(data)

        try:
            config = SearchSyncConfig.from_dict(data)
        except ValidationError as e:
            source = config_file or "defaults"
            logger.error(f"Invalid configuration from {source}: {e}")
            raise ConfigurationError(f"Invalid configuration from {source}: {e}") from e

        self.config_cache[cache_key] = config
        return config

    def _read_config_file(self, config_file: Path) -> Dict[str, Any]:
        """Read a JSON configuration file on top of the defaults"""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                file_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load config from {config_file}: {e}")
            raise ConfigurationError(f"Failed to load config from {config_file}: {e}") from e

        if not isinstance(file_data, dict):
            raise ConfigurationError(f"Configuration in {config_file} must be a JSON object")

        data = get_default_config()
        for key, value in file_data.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key].update(value)
            else:
                data[key] = value

        logger.debug(f"Loaded configuration from {config_file}")
        return data

    def _settings_defaults(self) -> Dict[str, Any]:
        """Defaults seeded from the global settings"""
        data = get_default_config()
        data['qdrant']['url'] = self.global_settings.qdrant_url
        data['qdrant']['collection_prefix'] = self.global_settings.collection_prefix
        data['qdrant']['timeout'] = self.global_settings.default_timeout
        data['log_level'] = self.global_settings.log_level
        return data

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration"""
        for env_var, config_path in ENV_VAR_MAPPING.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                self._set_nested_value(config_data, config_path, env_value)

        return config_data

    def _set_nested_value(self, data: Dict[str, Any], path: str, value: str) -> None:
        """Set nested dictionary value using dot notation path"""
        keys = path.split('.')
        current = data

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        if path in STRING_SETTINGS:
            current[keys[-1]] = value
        else:
            current[keys[-1]] = self._convert_env_value(value)

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type"""
        # Boolean conversion
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        # Numeric conversion
        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        # Return as string
        return value

    def save(self, config: SearchSyncConfig, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Save configuration to disk.

        Returns:
            The file the configuration was written to
        """
        config_file = Path(path).expanduser().resolve() if path else self.global_settings.config_file
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Saved configuration to {config_file}")

        # Update cache
        self.config_cache[str(config_file)] = config
        return config_file

    def clear_cache(self) -> None:
        """Clear configuration cache"""
        self.config_cache.clear()
        logger.debug("Configuration cache cleared")
