"""Compress: items -> one in-memory ZIP item."""

from __future__ import annotations

import io
import time
import zipfile
from collections.abc import Sequence

from zipflow.core.cancellation import CancellationToken
from zipflow.core.config import ZipSettings
from zipflow.core.errors import InvalidArgumentError
from zipflow.core.interfaces import IGuidProvider
from zipflow.core.item import Item, RawBytes
from zipflow.core.logging import get_logger

from .types import ZIP_FORMAT, ZIP_SUFFIX, ExecuteOptions

log = get_logger(__name__)

_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def _zipinfo(name: str, settings: ZipSettings) -> zipfile.ZipInfo:
    date_time = _FIXED_DATE_TIME if settings.deterministic else time.localtime(time.time())[:6]
    zi = zipfile.ZipInfo(filename=name, date_time=date_time)
    zi.compress_type = settings.compression
    zi.external_attr = 0o644 << 16
    return zi


def archive_name(file_name: str | None, guid_provider: IGuidProvider) -> str:
    """Return ``<file_name or new guid>.zip``."""
    base = file_name or guid_provider.new_guid()
    if base.lower().endswith(ZIP_SUFFIX):
        return base
    return f"{base}{ZIP_SUFFIX}"


class CompressHandler:
    """Write items as entries of a new ZIP buffer.

    Raw bytes are written as-is, text as UTF-8. Items with no payload are
    skipped. A structured-data item aborts the whole operation.
    """

    def __init__(self, guid_provider: IGuidProvider, settings: ZipSettings | None = None) -> None:
        self._guid_provider = guid_provider
        self._settings = settings or ZipSettings()

    def handle(
        self,
        items: Sequence[Item] | None,
        options: ExecuteOptions,
        token: CancellationToken,
    ) -> Item:
        token.raise_if_cancelled()
        if items is None:
            raise InvalidArgumentError("Input items cannot be null.")

        data, written = self._build_archive(items, token)
        name = archive_name(options.file_name, self._guid_provider)

        log.info(f"compress: {written} entry(ies) -> {name} ({len(data)} bytes)")

        return Item(id=name, payload=RawBytes(data), format=ZIP_FORMAT)

    def _build_archive(self, items: Sequence[Item], token: CancellationToken) -> tuple[bytes, int]:
        settings = self._settings
        written = 0
        seen: set[str] = set()

        with io.BytesIO() as buf:
            with zipfile.ZipFile(
                buf,
                "w",
                compression=settings.compression,
                compresslevel=settings.compresslevel,
            ) as zf:
                for item in items:
                    token.raise_if_cancelled()

                    data = item.payload_bytes()
                    if data is None:
                        log.debug(f"compress: skip '{item.id}' (empty payload)")
                        continue

                    if item.id in seen:
                        log.warning(f"compress: duplicate entry name '{item.id}'")
                    seen.add(item.id)

                    zf.writestr(
                        _zipinfo(item.id, settings),
                        data,
                        compresslevel=settings.compresslevel,
                    )
                    written += 1
                    log.debug(f"compress: wrote '{item.id}' ({len(data)} bytes)")

            return buf.getvalue(), written
