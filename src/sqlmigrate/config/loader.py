"""
Configuration file loading.

Reads ``config.yaml`` from the project directory, overlays
``config.<env>.yaml`` and substitutes ``${VAR}`` / ``${VAR:-default}``
environment variables and the ``{env}`` placeholder.
"""

import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sqlmigrate.exceptions import ConfigurationError
from sqlmigrate.migrations.ledger import DEFAULT_LEDGER_TABLE

CONFIG_FILE = "config.yaml"

_ENV_VAR_RE = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class Config:
    """sqlmigrate configuration container with dict-like access."""

    def __init__(self, data: dict[str, Any]):
        self.data = data
        self.connections = data.get("connections") or {}
        self.migrations = data.get("migrations") or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        value: Any = self.data
        for k in key.split("."):
            if not isinstance(value, dict) or value.get(k) is None:
                return default
            value = value[k]
        return value

    def __getitem__(self, key: str) -> Any:
        if "." in key:
            return self.get(key)
        if key not in self.data:
            raise KeyError(f"Config key '{key}' not found")
        value = self.data[key]
        return Config(value) if isinstance(value, dict) else value

    def __contains__(self, key: str) -> bool:
        value: Any = self.data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return False
            value = value[k]
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def validate(self) -> None:
        """
        Validate configuration structure.

        Raises:
            ConfigurationError: If a section has the wrong type or the
                migrations connection is not defined
        """
        errors = []

        if not isinstance(self.data, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(self.data).__name__}")

        for section in ("connections", "migrations", "logging"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"Configuration '{section}' must be a mapping, got {type(value).__name__}")

        if not errors:
            for name, entry in self.connections.items():
                if not isinstance(entry, dict):
                    errors.append(f"Connection '{name}' must be a mapping, got {type(entry).__name__}")

        if not errors:
            settings = MigrationSettings.from_config(self)
            if settings.connection not in self.connections:
                errors.append(f"Migrations connection '{settings.connection}' is not defined under 'connections'")

        if errors:
            raise ConfigurationError("\n".join(errors))


@dataclass(frozen=True)
class MigrationSettings:
    """Settings of the ``migrations`` config section."""

    dir: str = "migrations"
    connection: str = "default"
    table: str = DEFAULT_LEDGER_TABLE

    @classmethod
    def from_config(cls, config: Config) -> "MigrationSettings":
        section = config.migrations
        return cls(
            dir=str(section.get("dir", cls.dir)),
            connection=str(section.get("connection", cls.connection)),
            table=str(section.get("table", cls.table)),
        )

    def migrations_path(self, project_dir: Path) -> Path:
        """Migrations directory, resolved against the project directory when relative."""
        path = Path(self.dir)
        return path if path.is_absolute() else project_dir / path


def load_config(project_path: Path | None = None, env: str | None = None) -> Config:
    """
    Load sqlmigrate configuration.

    Args:
        project_path: Path to project root (default: current directory)
        env: Environment name (dev, staging, prod)

    Returns:
        Config instance with merged configuration

    Raises:
        ConfigurationError: If config.yaml is missing, unreadable or not valid YAML
    """
    if project_path is None:
        project_path = Path.cwd()

    base_config_path = project_path / CONFIG_FILE
    if not base_config_path.is_file():
        raise ConfigurationError(
            f"Configuration file not found: {base_config_path}\n"
            f"  Suggestion: Create a {CONFIG_FILE} file in your project root",
            details={"path": str(base_config_path)},
        )

    config_data = _read_yaml(base_config_path)

    if env:
        env_config_path = project_path / f"config.{env}.yaml"
        if env_config_path.is_file():
            _merge_dict(config_data, _read_yaml(env_config_path))

    return Config(resolve_config(config_data, env or "dev"))


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        raise ConfigurationError(
            f"Error parsing {path.name}{where}: {e}\n  File: {path}", details={"path": str(path)}
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}", details={"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} must contain a mapping, got {type(data).__name__}")
    return data


def _merge_dict(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value


def resolve_config(data: Any, env: str = "dev") -> Any:
    """
    Substitute environment variables and the ``{env}`` placeholder.

    ``${VAR}`` is left untouched when VAR is unset; ``${VAR:-default}``
    falls back to ``default``.
    """
    if isinstance(data, dict):
        return {k: resolve_config(v, env) for k, v in data.items()}
    if isinstance(data, list):
        return [resolve_config(item, env) for item in data]
    if isinstance(data, str):

        def replace_var(match: re.Match) -> str:
            value = os.getenv(match.group(1))
            if value is not None:
                return value
            default = match.group(2)
            return default if default is not None else match.group(0)

        return _ENV_VAR_RE.sub(replace_var, data).replace("{env}", env)
    return data
