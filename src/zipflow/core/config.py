"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (ZIPFLOW_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from zipflow.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

COMPRESSION_METHODS: dict[str, int] = {
    "stored": zipfile.ZIP_STORED,
    "deflated": zipfile.ZIP_DEFLATED,
    "bzip2": zipfile.ZIP_BZIP2,
    "lzma": zipfile.ZIP_LZMA,
}

# Accepted compresslevel values per method. zipfile ignores the level for lzma.
COMPRESSION_LEVELS: dict[int, range] = {
    zipfile.ZIP_STORED: range(0, 10),
    zipfile.ZIP_DEFLATED: range(0, 10),
    zipfile.ZIP_BZIP2: range(1, 10),
}


@dataclass(frozen=True)
class LoggingPolicy:
    """Resolved, immutable logging policy."""

    level_name: str  # quiet | normal | verbose | debug
    emit_error: bool
    emit_warning: bool
    emit_info: bool
    emit_debug: bool
    source: str


@dataclass(frozen=True)
class ZipSettings:
    """Validated archive writer settings."""

    compression: int = zipfile.ZIP_DEFLATED
    compresslevel: int | None = None
    deterministic: bool = False


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'zip_compression': {'compresslevel': 9}},
            user_config_path=Path('~/.config/zipflow/config.yaml'),
        )

        level, source = resolver.resolve('zip_compression.compresslevel')
        # level = 9, source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/zipflow/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/zipflow/config.yaml")
        self.defaults = self._default_config() if defaults is None else defaults

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_optional(self, key: str, default: Any = None) -> Any:
        """Resolve a key, returning ``default`` when no source sets it."""
        try:
            value, _src = self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return default
            raise
        return value

    def resolve_logging_policy(self) -> LoggingPolicy:
        """Resolve and validate logging.level into a LoggingPolicy."""
        try:
            value, source = self.resolve("logging.level")
        except ConfigError as e:
            if "not found in any source" not in str(e):
                raise
            value, source = DEFAULT_LOGGING_LEVEL, "default"

        if not isinstance(value, str) or not value.strip():
            raise ConfigError(
                f"Config key 'logging.level' must be a non-empty string, got {value!r}"
            )

        level = value.strip().lower()
        if level not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid 'logging.level': {value!r}. Allowed values: {allowed}")

        return LoggingPolicy(
            level_name=level,
            emit_error=True,
            emit_warning=True,
            emit_info=level != "quiet",
            emit_debug=level in {"verbose", "debug"},
            source=source,
        )

    def resolve_zip_settings(self) -> ZipSettings:
        """Resolve and validate the zip_compression.* keys.

        Environment values arrive as strings and are coerced here.
        """
        method = self.resolve_optional("zip_compression.compression", "deflated")
        if not isinstance(method, str) or method.strip().lower() not in COMPRESSION_METHODS:
            allowed = ", ".join(sorted(COMPRESSION_METHODS))
            raise ConfigError(
                f"Invalid 'zip_compression.compression': {method!r}. Allowed values: {allowed}"
            )
        compression = COMPRESSION_METHODS[method.strip().lower()]

        key = "zip_compression.compresslevel"
        level = self.resolve_optional(key)
        if isinstance(level, str):
            if not level.strip().isdigit():
                raise ConfigError(f"Config key '{key}' must be an int, got {level!r}")
            level = int(level)
        if level is not None:
            if isinstance(level, bool) or not isinstance(level, int):
                raise ConfigError(f"Config key '{key}' must be an int")
            name = method.strip().lower()
            allowed_levels = COMPRESSION_LEVELS.get(compression)
            if allowed_levels is None:
                raise ConfigError(
                    f"Config key '{key}' is not supported for '{name}' compression",
                    "Remove the compresslevel setting",
                )
            if level not in allowed_levels:
                lo, hi = allowed_levels[0], allowed_levels[-1]
                raise ConfigError(
                    f"Config key '{key}' must be {lo}-{hi} for '{name}', got {level}"
                )

        key = "zip_compression.deterministic"
        deterministic = self.resolve_optional(key, False)
        if isinstance(deterministic, str):
            norm = deterministic.strip().lower()
            if norm not in {"true", "false", "1", "0"}:
                raise ConfigError(f"Config key '{key}' must be a bool, got {deterministic!r}")
            deterministic = norm in {"true", "1"}

        return ZipSettings(
            compression=compression,
            compresslevel=level,
            deterministic=bool(deterministic),
        )

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: ZIPFLOW_KEY_NAME
        Example: ZIPFLOW_LOGGING_LEVEL, ZIPFLOW_ZIP_COMPRESSION_COMPRESSLEVEL
        """
        env_key = f"ZIPFLOW_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        """Load user config file (cached)."""
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        """Load system config file (cached)."""
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "logging": {
                "level": "normal",
            },
            # Plugin-owned keys
            "zip_compression": {
                "compression": "deflated",
                "compresslevel": None,
                "deterministic": False,
            },
        }
