"""Normalize free-form plugin input into a list of items."""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Iterable
from typing import Any

from zipflow.core.errors import CardinalityError, InvalidArgumentError, UnsupportedOperationError
from zipflow.core.interfaces import IGuidProvider
from zipflow.core.item import Item, RawBytes

from .types import Operation

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def is_base64(value: str) -> bool:
    """Return True if ``value`` is strict, padded base64.

    Whitespace around the value is ignored; an empty string is not base64.
    """
    s = value.strip()
    if not s or len(s) % 4 != 0 or not _BASE64_RE.match(s):
        return False
    try:
        base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def item_from_string(item_id: str, value: str) -> Item:
    """Wrap a string as a raw-bytes item, base64-decoding when it is base64."""
    if is_base64(value):
        data = base64.b64decode(value.strip(), validate=True)
    else:
        data = value.encode("utf-8")
    return Item(id=item_id, payload=RawBytes(data))


def normalize_inputs(operation: Operation, data: Any, guid_provider: IGuidProvider) -> list[Item]:
    """Turn an Item, an iterable of Items, a string or bytes into a list.

    Raises:
        InvalidArgumentError: If data is None
        UnsupportedOperationError: If data has an unsupported type
        CardinalityError: If decompress does not get exactly one item
    """
    if data is None:
        raise InvalidArgumentError("Input data cannot be null.")

    items: list[Item]
    if isinstance(data, Item):
        items = [data]
    elif isinstance(data, str):
        items = [item_from_string(guid_provider.new_guid(), data)]
    elif isinstance(data, (bytes, bytearray, memoryview)):
        items = [Item(id=guid_provider.new_guid(), payload=RawBytes(bytes(data)))]
    elif isinstance(data, Iterable) and not isinstance(data, dict):
        items = list(data)
        for pos, element in enumerate(items):
            if not isinstance(element, Item):
                raise UnsupportedOperationError(
                    f"Input element {pos} is {type(element).__name__}, expected Item."
                )
    else:
        raise UnsupportedOperationError(
            f"Unsupported input type: {type(data).__name__}",
            "Input must be an Item, an iterable of Items, a string or bytes",
        )

    if operation is Operation.DECOMPRESS and len(items) != 1:
        raise CardinalityError(
            "Decompress requires exactly one item containing the ZIP.",
            expected=1,
            actual=len(items),
        )

    return items
