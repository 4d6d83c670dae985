"""Command line host for the zip_compression plugin.

    python -m zipflow compress a.txt b.bin -o out.zip
    python -m zipflow decompress out.zip -d extracted/

Files are read into items, the plugin runs in memory, and the result is
written back to disk. The plugin itself never touches the filesystem.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path, PurePosixPath
from typing import Any

from zipflow import __version__
from zipflow.core.config import ConfigResolver
from zipflow.core.errors import InvalidArchiveError, ZipFlowError
from zipflow.core.item import Item, RawBytes
from zipflow.core.loader import PluginLoader
from zipflow.core.logging import VerbosityLevel, apply_logging_policy, get_logger, set_verbosity

log = get_logger(__name__)

PLUGIN_NAME = "zip_compression"


def find_plugins_dir() -> Path:
    """Find the repository plugins directory.

    Preference order:
    1) Search from current working directory upwards.
    2) Search from this file's location upwards (works for editable installs).
    3) Fallback to ./plugins.
    """

    def _search_up(start: Path) -> Path | None:
        p = start.resolve()
        for _ in range(8):
            cand = p / "plugins"
            if (cand / PLUGIN_NAME / "plugin.yaml").exists():
                return cand
            if p.parent == p:
                break
            p = p.parent
        return None

    return _search_up(Path.cwd()) or _search_up(Path(__file__)) or Path.cwd() / "plugins"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="zipflow", description="In-memory ZIP compression")
    p.add_argument("--version", action="version", version=f"zipflow {__version__}")
    p.add_argument("-v", "--verbose", action="count", default=0)
    p.add_argument("-q", "--quiet", action="store_true")
    p.add_argument("--plugins-dir", type=Path, default=None)

    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("compress", help="pack files into a ZIP archive")
    c.add_argument("files", nargs="+", type=Path)
    c.add_argument("-o", "--output-dir", type=Path, default=Path("."))
    c.add_argument("--name", default=None, help="archive base name (default: new GUID)")
    c.add_argument("--base", type=Path, default=None, help="store paths relative to this dir")
    c.add_argument("--level", type=int, default=None, choices=range(0, 10), metavar="0-9")

    d = sub.add_parser("decompress", help="unpack a ZIP archive")
    d.add_argument("archive", type=Path)
    d.add_argument("-d", "--dest", type=Path, default=Path("."))

    return p


def _entry_name(path: Path, base: Path | None) -> str:
    if base is not None:
        return path.resolve().relative_to(base.resolve()).as_posix()
    return path.name


def _safe_target(dest: Path, entry_id: str) -> Path:
    """Resolve an entry path under dest, refusing anything that escapes it."""
    rel = PurePosixPath(entry_id)
    if rel.is_absolute() or ".." in rel.parts:
        raise InvalidArchiveError(f"Refusing to extract unsafe path: {entry_id}")
    target = (dest / Path(*rel.parts)).resolve()
    if not target.is_relative_to(dest.resolve()):
        raise InvalidArchiveError(f"Refusing to extract unsafe path: {entry_id}")
    return target


async def _run(args: argparse.Namespace) -> int:
    cli_args: dict[str, Any] = {}
    if getattr(args, "level", None) is not None:
        cli_args["zip_compression"] = {"compresslevel": args.level}
    resolver = ConfigResolver(cli_args=cli_args)

    apply_logging_policy(resolver.resolve_logging_policy())
    if args.quiet:
        set_verbosity(VerbosityLevel.QUIET)
    elif args.verbose:
        set_verbosity(min(VerbosityLevel.NORMAL + args.verbose, VerbosityLevel.DEBUG))

    plugins_dir = args.plugins_dir or find_plugins_dir()
    loader = PluginLoader(builtin_plugins_dir=plugins_dir, resolver=resolver)
    plugin = loader.load_plugin(plugins_dir / PLUGIN_NAME)
    plugin.initialize()

    if args.command == "compress":
        items = [
            Item(id=_entry_name(f, args.base), payload=RawBytes(f.read_bytes())) for f in args.files
        ]
        result = await plugin.execute("compress", items, {"file_name": args.name})
        args.output_dir.mkdir(parents=True, exist_ok=True)
        out = args.output_dir / result.id
        out.write_bytes(result.raw_bytes or b"")
        log.info(f"wrote {out}")
        print(out)
        return 0

    source = Item(id=args.archive.name, payload=RawBytes(args.archive.read_bytes()))
    results = await plugin.execute("decompress", source)
    for item in results:
        target = _safe_target(args.dest, item.id)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(item.raw_bytes or b"")
        log.verbose(f"extracted {item.id} ({item.metadata['UncompressedSize']} bytes)")
    log.info(f"extracted {len(results)} file(s) to {args.dest}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except (ZipFlowError, OSError) as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
