"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add repo root and src to path (for 'plugins.*' and 'zipflow.*' imports)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))
sys.path.insert(0, str(repo_root / "src"))

PLUGINS_DIR = repo_root / "plugins"


class SequentialGuidProvider:
    """Deterministic GUIDs: guid-1, guid-2, ..."""

    def __init__(self, prefix: str = "guid") -> None:
        self.prefix = prefix
        self.issued: list[str] = []

    def new_guid(self) -> str:
        value = f"{self.prefix}-{len(self.issued) + 1}"
        self.issued.append(value)
        return value


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Keep verbosity and sinks from leaking between tests."""
    from zipflow.core.logging import VerbosityLevel, clear_log_sinks, set_colors, set_verbosity

    set_colors(False)
    set_verbosity(VerbosityLevel.NORMAL)
    clear_log_sinks()
    yield
    clear_log_sinks()
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Drop ZIPFLOW_* variables from the caller's environment."""
    import os

    for key in list(os.environ):
        if key.startswith("ZIPFLOW_"):
            monkeypatch.delenv(key)


@pytest.fixture
def plugins_dir() -> Path:
    return PLUGINS_DIR


@pytest.fixture
def guid_provider():
    return SequentialGuidProvider()


@pytest.fixture
def zip_settings():
    from zipflow.core.config import ZipSettings

    return ZipSettings()


@pytest.fixture
def plugin(guid_provider, zip_settings):
    """Initialized ZipCompressionPlugin with deterministic GUIDs."""
    from plugins.zip_compression.plugin import ZipCompressionPlugin

    p = ZipCompressionPlugin(guid_provider, settings=zip_settings)
    p.initialize()
    return p


@pytest.fixture
def config_resolver(tmp_path):
    """ConfigResolver isolated from the real user/system config files."""
    from zipflow.core.config import ConfigResolver

    return ConfigResolver(
        cli_args={},
        user_config_path=tmp_path / "user.yaml",
        system_config_path=tmp_path / "system.yaml",
    )
