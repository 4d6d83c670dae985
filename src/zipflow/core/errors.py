"""Error hierarchy with friendly messages."""

from __future__ import annotations


class ZipFlowError(Exception):
    """Base exception for all zipflow errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class PluginError(ZipFlowError):
    """Plugin-related error."""

    pass


class PluginNotFoundError(PluginError):
    """Plugin not found."""

    def __init__(self, plugin_name: str) -> None:
        super().__init__(
            f"Plugin '{plugin_name}' not found",
            "Check that the plugin directory contains a plugin.yaml manifest",
        )


class PluginValidationError(PluginError):
    """Plugin manifest or entrypoint is invalid."""

    pass


class ConfigError(ZipFlowError):
    """Configuration error."""

    pass


class OperationError(ZipFlowError):
    """Base class for compress/decompress failures."""

    pass


class OperationCancelledError(OperationError):
    """Operation was cancelled cooperatively."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message)


class InvalidArgumentError(OperationError):
    """A required input was missing."""

    pass


class UnsupportedOperationError(OperationError):
    """Unknown operation name or unsupported payload."""

    pass


class CardinalityError(OperationError):
    """Operation received the wrong number of input items."""

    def __init__(self, message: str, expected: int, actual: int) -> None:
        super().__init__(message, f"Pass exactly {expected} item(s); got {actual}")
        self.expected = expected
        self.actual = actual


class InvalidArchiveError(OperationError):
    """Archive payload is missing, empty or not a readable ZIP."""

    pass
