"""zipflow core.

Item model, errors, logging, configuration and plugin loading.
Archive operations live in the zip_compression plugin.
"""

from zipflow.core.cancellation import CancellationToken
from zipflow.core.config import ConfigResolver, LoggingPolicy, ZipSettings
from zipflow.core.errors import (
    CardinalityError,
    ConfigError,
    InvalidArchiveError,
    InvalidArgumentError,
    OperationCancelledError,
    OperationError,
    PluginError,
    PluginNotFoundError,
    PluginValidationError,
    UnsupportedOperationError,
    ZipFlowError,
)
from zipflow.core.interfaces import IGuidProvider, IOperationHandler, UuidGuidProvider
from zipflow.core.item import DATA_KIND, Item, Payload, RawBytes, StructuredData, TextContent
from zipflow.core.loader import PluginLoader, PluginManifest, load_manifest
from zipflow.core.logging import (
    LogRecord,
    VerbosityLevel,
    add_log_sink,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    remove_log_sink,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Items
    "DATA_KIND",
    "Item",
    "Payload",
    "RawBytes",
    "StructuredData",
    "TextContent",
    # Capabilities
    "CancellationToken",
    "IGuidProvider",
    "IOperationHandler",
    "UuidGuidProvider",
    # Config
    "ConfigResolver",
    "LoggingPolicy",
    "ZipSettings",
    # Plugins
    "PluginLoader",
    "PluginManifest",
    "load_manifest",
    # Errors
    "ZipFlowError",
    "PluginError",
    "PluginNotFoundError",
    "PluginValidationError",
    "ConfigError",
    "OperationError",
    "OperationCancelledError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "CardinalityError",
    "InvalidArchiveError",
    # Logging
    "LogRecord",
    "VerbosityLevel",
    "add_log_sink",
    "apply_logging_policy",
    "get_logger",
    "get_verbosity",
    "remove_log_sink",
    "set_colors",
    "set_verbosity",
]
