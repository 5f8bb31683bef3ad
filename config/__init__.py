"""
Configuration management for reposearch

Handles loading, environment overrides and validation of configuration.
"""

from .loader import ConfigurationLoader
from .defaults import DEFAULT_SETTINGS, ENV_VAR_MAPPING, get_default_config

__all__ = ["ConfigurationLoader", "DEFAULT_SETTINGS", "ENV_VAR_MAPPING", "get_default_config"]
