"""Item: the unit of data flowing through compress/decompress."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from zipflow.core.errors import UnsupportedOperationError

DATA_KIND = "Data"


@dataclass(frozen=True)
class RawBytes:
    """Binary payload."""

    data: bytes


@dataclass(frozen=True)
class TextContent:
    """Text payload, archived as UTF-8."""

    text: str


@dataclass(frozen=True)
class StructuredData:
    """Ordered key/value payload. Not supported for compression."""

    fields: Mapping[str, Any]


Payload = Union[RawBytes, TextContent, StructuredData, None]


def _freeze(metadata: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(metadata or {}))


@dataclass(frozen=True)
class Item:
    """Named data item.

    Exactly one payload variant is held at a time. Items are immutable;
    handlers build new items instead of editing inputs, so metadata is
    supplied in full at construction.
    """

    id: str
    kind: str = DATA_KIND
    payload: Payload = None
    format: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", _freeze(self.metadata))

    @classmethod
    def from_fields(
        cls,
        id: str,
        *,
        raw_bytes: bytes | None = None,
        content: str | None = None,
        structured_data: Mapping[str, Any] | None = None,
        kind: str = DATA_KIND,
        format: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Item:
        """Build an item from loose fields.

        Precedence: raw_bytes > content > structured_data; only non-empty
        values count. If none is set the payload is None.
        """
        payload: Payload
        if raw_bytes:
            payload = RawBytes(bytes(raw_bytes))
        elif content:
            payload = TextContent(content)
        elif structured_data:
            payload = StructuredData(MappingProxyType(dict(structured_data)))
        else:
            payload = None
        return cls(id=id, kind=kind, payload=payload, format=format, metadata=_freeze(metadata))

    @property
    def raw_bytes(self) -> bytes | None:
        if isinstance(self.payload, RawBytes):
            return self.payload.data
        return None

    @property
    def content(self) -> str | None:
        if isinstance(self.payload, TextContent):
            return self.payload.text
        return None

    @property
    def structured_data(self) -> Mapping[str, Any] | None:
        if isinstance(self.payload, StructuredData):
            return self.payload.fields
        return None

    def payload_bytes(self) -> bytes | None:
        """Return the bytes this item contributes to an archive.

        Returns:
            Entry bytes, or None when the item carries nothing to write

        Raises:
            UnsupportedOperationError: For structured data payloads
        """
        payload = self.payload
        if isinstance(payload, RawBytes):
            return payload.data or None
        if isinstance(payload, TextContent):
            return payload.text.encode("utf-8") if payload.text else None
        if isinstance(payload, StructuredData):
            if not payload.fields:
                return None
            raise UnsupportedOperationError(
                "structured data compression is not supported",
                f"Convert item '{self.id}' to bytes or text before compressing",
            )
        return None
