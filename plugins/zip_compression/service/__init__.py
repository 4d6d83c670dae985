"""zip_compression service package."""

from .compress import CompressHandler
from .decompress import DecompressHandler
from .inputs import is_base64, item_from_string, normalize_inputs
from .types import (
    META_COMPRESSED_SIZE,
    META_FILE_NAME,
    META_UNCOMPRESSED_SIZE,
    ZIP_FORMAT,
    ExecuteOptions,
    Operation,
)

__all__ = [
    "CompressHandler",
    "DecompressHandler",
    "ExecuteOptions",
    "META_COMPRESSED_SIZE",
    "META_FILE_NAME",
    "META_UNCOMPRESSED_SIZE",
    "Operation",
    "ZIP_FORMAT",
    "is_base64",
    "item_from_string",
    "normalize_inputs",
]
