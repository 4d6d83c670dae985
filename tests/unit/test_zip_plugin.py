"""Unit tests for ZipCompressionPlugin dispatch and input normalization."""

from __future__ import annotations

import asyncio
import base64
import io
import zipfile

import pytest
from plugins.zip_compression.plugin import ZipCompressionPlugin
from plugins.zip_compression.service import (
    ExecuteOptions,
    Operation,
    is_base64,
    item_from_string,
    normalize_inputs,
)

from zipflow.core.cancellation import CancellationToken
from zipflow.core.config import ConfigResolver
from zipflow.core.errors import (
    CardinalityError,
    InvalidArchiveError,
    InvalidArgumentError,
    OperationCancelledError,
    PluginError,
    UnsupportedOperationError,
)
from zipflow.core.item import Item, RawBytes, StructuredData, TextContent


def run(coro):
    return asyncio.run(coro)


class TestRoundTrip:
    def test_example_pair(self, plugin: ZipCompressionPlugin) -> None:
        archive = run(
            plugin.execute(
                "compress",
                [
                    Item(id="a.txt", payload=TextContent("hi")),
                    Item(id="b.bin", payload=RawBytes(bytes([1, 2, 3]))),
                ],
            )
        )
        assert archive.id == "guid-1.zip"

        result = run(plugin.execute("decompress", archive))

        assert [i.id for i in result] == ["a.txt", "b.bin"]
        assert result[0].raw_bytes == b"hi"
        assert result[1].raw_bytes == bytes([1, 2, 3])
        assert result[0].format == "txt"
        assert result[1].format == "bin"

    def test_mixed_payloads_round_trip(self, plugin: ZipCompressionPlugin) -> None:
        originals = [
            Item(id="docs/readme.md", payload=TextContent("# Title\nžluťoučký")),
            Item(id="img/pixel.png", payload=RawBytes(b"\x89PNG\r\n\x1a\n")),
            Item(id="notes.txt", payload=TextContent("plain")),
            Item(id="blob", payload=RawBytes(bytes(range(256)) * 4)),
        ]

        archive = run(plugin.execute("compress", originals, {"file_name": "bundle"}))
        result = run(plugin.execute("decompress", [archive]))

        assert archive.id == "bundle.zip"
        assert [i.id for i in result] == [i.id for i in originals]
        assert [i.raw_bytes for i in result] == [i.payload_bytes() for i in originals]

    def test_empty_round_trip(self, plugin: ZipCompressionPlugin) -> None:
        archive = run(plugin.execute("compress", []))
        assert zipfile.is_zipfile(io.BytesIO(archive.raw_bytes or b""))
        assert run(plugin.execute("decompress", archive)) == []


class TestDispatch:
    @pytest.mark.parametrize("name", ["COMPRESS", "Compress", " compress "])
    def test_operation_name_case_insensitive(self, plugin, name) -> None:
        out = run(plugin.execute(name, Item(id="a.txt", payload=TextContent("x"))))
        assert out.format == "Zip"

    @pytest.mark.parametrize("name", ["zip", "extract", "", None])
    def test_unknown_operation(self, plugin, name) -> None:
        with pytest.raises(UnsupportedOperationError, match="is not supported"):
            run(plugin.execute(name, []))

    def test_not_initialized(self, guid_provider, zip_settings) -> None:
        p = ZipCompressionPlugin(guid_provider, settings=zip_settings)
        with pytest.raises(PluginError, match="not initialized"):
            run(p.execute("compress", []))

    def test_initialize_is_idempotent(self, plugin) -> None:
        plugin.initialize()
        assert plugin.initialized

    def test_cancelled_token(self, plugin, guid_provider) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            run(plugin.execute("compress", [Item(id="a", payload=TextContent("x"))], None, token))
        assert guid_provider.issued == []

    def test_null_data(self, plugin) -> None:
        with pytest.raises(InvalidArgumentError, match="cannot be null"):
            run(plugin.execute("compress", None))

    def test_structured_data_aborts(self, plugin) -> None:
        items = [
            Item(id="a.txt", payload=TextContent("x")),
            Item(id="rec", payload=StructuredData({"k": 1})),
        ]
        with pytest.raises(UnsupportedOperationError):
            run(plugin.execute("compress", items))

    @pytest.mark.parametrize("count", [0, 2])
    def test_decompress_cardinality(self, plugin, count) -> None:
        items = [Item(id=f"{n}.zip", payload=RawBytes(b"PK")) for n in range(count)]
        with pytest.raises(CardinalityError):
            run(plugin.execute("decompress", items))

    def test_decompress_garbage(self, plugin) -> None:
        with pytest.raises(InvalidArchiveError):
            run(plugin.execute("decompress", Item(id="x.zip", payload=RawBytes(b"0123456789"))))

    def test_decompress_base64_string(self, plugin) -> None:
        archive = run(plugin.execute("compress", [Item(id="a.txt", payload=TextContent("hi"))]))
        encoded = base64.b64encode(archive.raw_bytes or b"").decode("ascii")

        result = run(plugin.execute("decompress", encoded))

        assert [(i.id, i.raw_bytes) for i in result] == [("a.txt", b"hi")]

    def test_compress_plain_string(self, plugin) -> None:
        archive = run(plugin.execute("compress", "hello world"))
        (item,) = run(plugin.execute("decompress", archive))

        # string input gets a GUID id; the archive name gets the next one
        assert item.id == "guid-1"
        assert archive.id == "guid-2.zip"
        assert item.raw_bytes == b"hello world"


class TestMetadata:
    def test_supported_operations(self, plugin) -> None:
        assert plugin.supported_operations == ["compress", "decompress"]

    def test_manifest_metadata(self, plugin) -> None:
        meta = plugin.metadata
        assert meta["name"] == "zip_compression"
        assert meta["id"] == "ba5d314f-375c-4743-9e84-191337ed83b6"
        assert "zip" in meta["tags"]

    def test_settings_from_resolver(self, tmp_path) -> None:
        resolver = ConfigResolver(
            cli_args={"zip_compression": {"compression": "stored"}},
            user_config_path=tmp_path / "u.yaml",
            system_config_path=tmp_path / "s.yaml",
        )
        p = ZipCompressionPlugin(resolver=resolver)
        p.initialize()

        archive = run(p.execute("compress", [Item(id="a.txt", payload=TextContent("abc"))]))
        with zipfile.ZipFile(io.BytesIO(archive.raw_bytes or b"")) as zf:
            assert zf.getinfo("a.txt").compress_type == zipfile.ZIP_STORED


class TestInputs:
    def test_single_item(self, guid_provider) -> None:
        item = Item(id="a", payload=TextContent("x"))
        assert normalize_inputs(Operation.COMPRESS, item, guid_provider) == [item]

    def test_tuple_and_generator(self, guid_provider) -> None:
        a = Item(id="a", payload=TextContent("x"))
        b = Item(id="b", payload=TextContent("y"))
        assert normalize_inputs(Operation.COMPRESS, (a, b), guid_provider) == [a, b]
        assert normalize_inputs(Operation.COMPRESS, (i for i in [a, b]), guid_provider) == [a, b]

    def test_bytes(self, guid_provider) -> None:
        (item,) = normalize_inputs(Operation.COMPRESS, b"\x00\x01", guid_provider)
        assert item.id == "guid-1"
        assert item.raw_bytes == b"\x00\x01"

    @pytest.mark.parametrize("data", [42, 3.5, {"id": "a"}, object()])
    def test_unsupported_types(self, guid_provider, data) -> None:
        with pytest.raises(UnsupportedOperationError):
            normalize_inputs(Operation.COMPRESS, data, guid_provider)

    def test_non_item_element(self, guid_provider) -> None:
        with pytest.raises(UnsupportedOperationError, match="element 1"):
            normalize_inputs(Operation.COMPRESS, [Item(id="a"), "b"], guid_provider)

    def test_decompress_requires_one(self, guid_provider) -> None:
        with pytest.raises(CardinalityError):
            normalize_inputs(Operation.DECOMPRESS, [], guid_provider)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("aGVsbG8=", True),
            ("  aGVsbG8=\n", True),
            ("hello world", False),
            ("", False),
            ("abc", False),
            ("ab=c", False),
            ("a===", False),
        ],
    )
    def test_is_base64(self, value, expected) -> None:
        assert is_base64(value) is expected

    def test_item_from_string(self) -> None:
        assert item_from_string("x", "aGVsbG8=").raw_bytes == b"hello"
        assert item_from_string("y", "hi there").raw_bytes == b"hi there"


class TestExecuteOptions:
    def test_coerce(self) -> None:
        assert ExecuteOptions.coerce(None) == ExecuteOptions()
        assert ExecuteOptions.coerce({"file_name": "a"}).file_name == "a"
        assert ExecuteOptions.coerce({"fileName": "b"}).file_name == "b"
        assert ExecuteOptions.coerce({"file_name": ""}).file_name is None
        opts = ExecuteOptions(file_name="c")
        assert ExecuteOptions.coerce(opts) is opts

    def test_invalid(self) -> None:
        with pytest.raises(InvalidArgumentError):
            ExecuteOptions.coerce({"file_name": 5})
        with pytest.raises(InvalidArgumentError):
            ExecuteOptions.coerce("name")  # type: ignore[arg-type]
