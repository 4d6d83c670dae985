"""Plugin loader and discovery."""

from __future__ import annotations

import importlib.util
import sys
import types
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from zipflow.core.config import ConfigResolver
from zipflow.core.errors import PluginError, PluginNotFoundError, PluginValidationError
from zipflow.core.logging import get_logger

log = get_logger(__name__)

MANIFEST_NAME = "plugin.yaml"


@dataclass
class PluginManifest:
    """Plugin manifest loaded from plugin.yaml."""

    name: str
    version: str
    entrypoint: str  # "module:ClassName"
    id: str = ""
    description: str = ""
    author: str = "Unknown"
    license: str = "Unknown"
    interfaces: list[str] = field(default_factory=list)
    operations: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    config_schema: dict[str, Any] = field(default_factory=dict)


def load_manifest(plugin_dir: Path) -> PluginManifest:
    """Parse ``plugin.yaml`` from a plugin directory.

    Raises:
        PluginError: If the manifest is missing or unreadable
        PluginValidationError: If required keys are missing
    """
    manifest_path = plugin_dir / MANIFEST_NAME

    if not manifest_path.exists():
        raise PluginError(f"Plugin manifest not found: {manifest_path}")

    try:
        with open(manifest_path) as f:
            data = yaml.safe_load(f)
    except Exception as e:
        raise PluginError(f"Failed to load manifest from {manifest_path}: {e}") from e

    if not isinstance(data, dict):
        raise PluginValidationError(f"Manifest {manifest_path} must be a mapping")

    missing = [k for k in ("name", "version", "entrypoint") if not data.get(k)]
    if missing:
        raise PluginValidationError(
            f"Manifest {manifest_path} is missing required keys: {', '.join(missing)}"
        )

    return PluginManifest(
        name=str(data["name"]),
        version=str(data["version"]),
        entrypoint=str(data["entrypoint"]),
        id=str(data.get("id", "")),
        description=data.get("description", ""),
        author=data.get("author", "Unknown"),
        license=data.get("license", "Unknown"),
        interfaces=list(data.get("interfaces", [])),
        operations=list(data.get("operations", [])),
        tags=list(data.get("tags", [])),
        config_schema=dict(data.get("config_schema", {})),
    )


class PluginLoader:
    """Discover and load plugins from a plugins directory.

    A plugin is any subdirectory holding a plugin.yaml manifest. The
    entrypoint module is imported under an isolated package name so two
    plugins may both use ``plugin:SomeClass`` and still keep relative imports.
    """

    def __init__(
        self,
        builtin_plugins_dir: Path | None = None,
        *,
        resolver: ConfigResolver | None = None,
    ) -> None:
        self.builtin_plugins_dir = builtin_plugins_dir
        self._resolver = resolver

        self._plugins: dict[str, Any] = {}
        self._manifests: dict[str, PluginManifest] = {}

    def discover(self) -> list[Path]:
        """Return plugin directories in deterministic (sorted) order."""
        base_dir = self.builtin_plugins_dir
        if base_dir is None or not base_dir.exists():
            return []

        return sorted(
            item for item in base_dir.iterdir() if item.is_dir() and (item / MANIFEST_NAME).exists()
        )

    def load_plugin(self, plugin_dir: Path) -> Any:
        """Load and instantiate a single plugin.

        The plugin class is called with ``resolver=`` when the loader has one.

        Raises:
            PluginError: If plugin loading fails
        """
        _manifest, plugin_instance = self._load(plugin_dir)
        return plugin_instance

    def load_all(self) -> list[str]:
        """Load every discovered plugin; returns loaded plugin names."""
        return [self._load(d)[0].name for d in self.discover()]

    def _load(self, plugin_dir: Path) -> tuple[PluginManifest, Any]:
        manifest = load_manifest(plugin_dir)
        plugin_class = self._load_plugin_class(plugin_dir, manifest.entrypoint)

        try:
            if self._resolver is not None:
                plugin_instance = plugin_class(resolver=self._resolver)
            else:
                plugin_instance = plugin_class()
        except Exception as e:
            raise PluginError(f"Failed to instantiate plugin '{manifest.name}': {e}") from e

        self._plugins[manifest.name] = plugin_instance
        self._manifests[manifest.name] = manifest
        log.debug(f"loaded plugin {manifest.name} {manifest.version} from {plugin_dir}")

        return manifest, plugin_instance

    def get_plugin(self, name: str) -> Any:
        """Get loaded plugin by name.

        Raises:
            PluginNotFoundError: If plugin not found
        """
        if name not in self._plugins:
            raise PluginNotFoundError(name)
        return self._plugins[name]

    def get_manifest(self, name: str) -> PluginManifest:
        if name not in self._manifests:
            raise PluginNotFoundError(name)
        return self._manifests[name]

    def list_plugins(self) -> list[str]:
        return list(self._plugins.keys())

    def _load_plugin_class(self, plugin_dir: Path, entrypoint: str) -> type:
        """Load plugin class from entrypoint ("module:ClassName").

        Raises:
            PluginError: If loading fails
        """
        if ":" not in entrypoint:
            raise PluginValidationError(f"Invalid entrypoint format: {entrypoint}")

        module_name, class_name = entrypoint.split(":", 1)

        module_file = plugin_dir / f"{module_name}.py"
        if not module_file.exists():
            raise PluginError(f"Module file not found: {module_file}")

        # Never register plugin modules under a generic name like 'plugin'.
        plugin_key = plugin_dir.name.replace("-", "_").replace(".", "_")
        root_pkg = "zipflow_plugins"
        plugin_pkg = f"{root_pkg}.{plugin_key}"
        unique_module_name = f"{plugin_pkg}.{module_name}"

        def _ensure_package(name: str, path: Path | None = None) -> None:
            if name in sys.modules:
                return
            pkg = types.ModuleType(name)
            pkg.__path__ = [] if path is None else [str(path)]
            sys.modules[name] = pkg

        try:
            _ensure_package(root_pkg)
            _ensure_package(plugin_pkg, plugin_dir)

            spec = importlib.util.spec_from_file_location(unique_module_name, module_file)
            if spec is None or spec.loader is None:
                raise PluginError(f"Failed to load module spec: {module_file}")

            module = importlib.util.module_from_spec(spec)
            sys.modules[unique_module_name] = module
            spec.loader.exec_module(module)
        except PluginError:
            raise
        except Exception as e:
            raise PluginError(f"Failed to load plugin class: {e}") from e

        if not hasattr(module, class_name):
            raise PluginError(f"Class '{class_name}' not found in {module_name}")

        return getattr(module, class_name)
