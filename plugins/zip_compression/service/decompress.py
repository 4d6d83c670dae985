"""Decompress: one ZIP item -> one item per file entry."""

from __future__ import annotations

import io
import struct
import zipfile
import zlib
from collections.abc import Sequence
from pathlib import PurePosixPath

from zipflow.core.cancellation import CancellationToken
from zipflow.core.errors import CardinalityError, InvalidArchiveError, InvalidArgumentError
from zipflow.core.item import Item, RawBytes
from zipflow.core.logging import get_logger

from .types import META_COMPRESSED_SIZE, META_FILE_NAME, META_UNCOMPRESSED_SIZE, ExecuteOptions

log = get_logger(__name__)

# MS-DOS directory attribute in the low byte of external_attr.
_DOS_DIRECTORY = 0x10

_DECODE_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    struct.error,
    EOFError,
    NotImplementedError,
    ValueError,
)


def is_directory_entry(info: zipfile.ZipInfo) -> bool:
    return not info.filename or info.is_dir() or bool(info.external_attr & _DOS_DIRECTORY)


def entry_format(name: str) -> str:
    """Extension of an entry name without the leading dot ("" if none)."""
    return PurePosixPath(name).suffix[1:]


class DecompressHandler:
    """Read every file entry of a single ZIP item back into items.

    Entries are returned in stored order; directory entries are dropped.
    Any decode failure is reported as InvalidArchiveError and no partial
    result is returned.
    """

    def handle(
        self,
        items: Sequence[Item] | None,
        options: ExecuteOptions,
        token: CancellationToken,
    ) -> list[Item]:
        token.raise_if_cancelled()
        if items is None:
            raise InvalidArgumentError("Input items cannot be null.")

        items = list(items)
        if len(items) != 1:
            raise CardinalityError(
                "exactly one item is supported for decompression", expected=1, actual=len(items)
            )

        source = items[0]
        data = source.raw_bytes
        if not data:
            raise InvalidArchiveError(
                "payload must contain a valid ZIP archive",
                f"Item '{source.id}' has no raw bytes",
            )

        try:
            results = self._read_entries(data, token)
        except _DECODE_ERRORS as e:
            raise InvalidArchiveError(
                f"payload must contain a valid ZIP archive: {e}",
                f"Item '{source.id}' is not a readable ZIP",
            ) from e

        log.info(f"decompress: {source.id} -> {len(results)} item(s)")
        return results

    def _read_entries(self, data: bytes, token: CancellationToken) -> list[Item]:
        results: list[Item] = []

        with io.BytesIO(data) as buf, zipfile.ZipFile(buf, "r") as zf:
            for info in zf.infolist():
                token.raise_if_cancelled()

                if is_directory_entry(info):
                    log.debug(f"decompress: skip directory '{info.filename}'")
                    continue

                if info.flag_bits & 0x1:
                    raise InvalidArchiveError(
                        f"entry '{info.filename}' is encrypted",
                        "Password-protected archives are not supported",
                    )

                results.append(self._item_from_entry(zf, info))

        return results

    def _item_from_entry(self, zf: zipfile.ZipFile, info: zipfile.ZipInfo) -> Item:
        with zf.open(info, "r") as entry:
            payload = entry.read()

        log.debug(
            f"decompress: read '{info.filename}' "
            f"({info.compress_size} -> {info.file_size} bytes)"
        )

        return Item(
            id=info.filename,
            payload=RawBytes(payload),
            format=entry_format(info.filename),
            metadata={
                META_FILE_NAME: PurePosixPath(info.filename).name,
                META_COMPRESSED_SIZE: info.compress_size,
                META_UNCOMPRESSED_SIZE: info.file_size,
            },
        )
