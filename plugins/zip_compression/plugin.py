"""ZIP compression plugin - compress and decompress operations.

Items in, items out. Archives are built and read entirely in memory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from zipflow.core.cancellation import CancellationToken
from zipflow.core.config import ConfigResolver, ZipSettings
from zipflow.core.errors import PluginError
from zipflow.core.interfaces import IGuidProvider, IOperationHandler, UuidGuidProvider
from zipflow.core.item import Item
from zipflow.core.loader import PluginManifest, load_manifest
from zipflow.core.logging import get_logger

from .service import CompressHandler, DecompressHandler, ExecuteOptions, Operation, normalize_inputs

log = get_logger(__name__)


class ZipCompressionPlugin:
    """ZIP compression plugin.

    Handles:
    - compress: any number of items -> one ``<name>.zip`` item
    - decompress: exactly one ZIP item -> one item per file entry

    Handlers are built once here and never changed afterwards.
    """

    def __init__(
        self,
        guid_provider: IGuidProvider | None = None,
        *,
        resolver: ConfigResolver | None = None,
        settings: ZipSettings | None = None,
    ) -> None:
        """Initialize plugin.

        Args:
            guid_provider: Source of archive base names and string-input ids
            resolver: Config resolver used for zip_compression.* keys
            settings: Explicit writer settings (wins over resolver)
        """
        self._guid_provider = guid_provider or UuidGuidProvider()

        if settings is None:
            settings = (resolver or ConfigResolver(cli_args={})).resolve_zip_settings()
        self.settings = settings

        self._compress: IOperationHandler = CompressHandler(self._guid_provider, settings)
        self._decompress: IOperationHandler = DecompressHandler()
        self._initialized = False
        self._manifest: PluginManifest | None = None

    @property
    def manifest(self) -> PluginManifest:
        if self._manifest is None:
            self._manifest = load_manifest(Path(__file__).parent)
        return self._manifest

    @property
    def metadata(self) -> dict[str, Any]:
        m = self.manifest
        return {
            "id": m.id,
            "name": m.name,
            "version": m.version,
            "description": m.description,
            "author": m.author,
            "tags": list(m.tags),
        }

    @property
    def supported_operations(self) -> list[str]:
        return [op.value for op in Operation]

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Mark the plugin ready. Safe to call more than once."""
        if not self._initialized:
            log.debug(f"{self.manifest.name} {self.manifest.version} initialized")
        self._initialized = True

    async def execute(
        self,
        operation: str,
        data: Any,
        options: ExecuteOptions | dict[str, Any] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Item | list[Item]:
        """Run one operation.

        Args:
            operation: "compress" or "decompress" (case-insensitive)
            data: Item, iterable of Items, string (base64 or text) or bytes
            options: ExecuteOptions or mapping with "file_name"
            cancel_token: Cooperative cancellation token

        Returns:
            Item for compress, list of Items for decompress

        Raises:
            PluginError: If initialize() was not called
            OperationError: If the operation fails or is cancelled
        """
        token = cancel_token or CancellationToken.none()
        token.raise_if_cancelled()

        if not self._initialized:
            raise PluginError(
                f"Plugin '{self.manifest.name}' v{self.manifest.version} is not initialized.",
                "Call initialize() before execute()",
            )

        op = Operation.parse(operation)
        opts = ExecuteOptions.coerce(options)
        items = normalize_inputs(op, data, self._guid_provider)

        log.verbose(f"{op.value}: {len(items)} input item(s)")

        match op:
            case Operation.COMPRESS:
                return self._compress.handle(items, opts, token)
            case Operation.DECOMPRESS:
                return self._decompress.handle(items, opts, token)
