"""Types for the zip_compression plugin."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from zipflow.core.errors import InvalidArgumentError, UnsupportedOperationError

ZIP_FORMAT = "Zip"
ZIP_SUFFIX = ".zip"

META_FILE_NAME = "FileName"
META_COMPRESSED_SIZE = "CompressedSize"
META_UNCOMPRESSED_SIZE = "UncompressedSize"


class Operation(StrEnum):
    COMPRESS = "compress"
    DECOMPRESS = "decompress"

    @classmethod
    def parse(cls, name: str | None) -> Operation:
        """Match an operation name case-insensitively.

        Raises:
            UnsupportedOperationError: For anything outside compress/decompress
        """
        norm = (name or "").strip().lower()
        for op in cls:
            if op.value == norm:
                return op
        allowed = ", ".join(op.value for op in cls)
        raise UnsupportedOperationError(
            f"Operation '{name}' is not supported.", f"Use one of: {allowed}"
        )


@dataclass(frozen=True)
class ExecuteOptions:
    """Per-call options. Only compress reads file_name."""

    file_name: str | None = None

    @classmethod
    def coerce(cls, value: ExecuteOptions | Mapping[str, Any] | None) -> ExecuteOptions:
        if value is None:
            return cls()
        if isinstance(value, ExecuteOptions):
            return value
        if isinstance(value, Mapping):
            name = value.get("file_name", value.get("fileName"))
            if name is not None and not isinstance(name, str):
                raise InvalidArgumentError(f"file_name must be a string, got {type(name).__name__}")
            return cls(file_name=name or None)
        raise InvalidArgumentError(f"Unsupported options type: {type(value).__name__}")
