"""
Configuration management.

Configuration file parsing, environment resolution, migration settings.
"""

from sqlmigrate.config.loader import Config, MigrationSettings, load_config, resolve_config

__all__ = [
    "load_config",
    "Config",
    "MigrationSettings",
    "resolve_config",
]
