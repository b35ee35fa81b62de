"""Index inspection commands for kvassets CLI."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from core.errors import IndexReadError
from store.asset_resolver import AssetResolver
from store.index_codec import decode_index, to_display


def add_dump_command(subparsers: Any) -> None:
    """Register dump subcommand."""
    parser = subparsers.add_parser("dump", help="Dump contents of an existing asset index file")
    parser.add_argument("path", help="Asset index file, e.g. data/assets.bin")


def add_lookup_command(subparsers: Any) -> None:
    """Register lookup subcommand."""
    parser = subparsers.add_parser(
        "lookup",
        help="Resolve a request path against an asset index without contacting KV",
    )
    parser.add_argument("--index", required=True, help="Asset index file")
    parser.add_argument("path", help="Request path, e.g. /css/site.css")


def run_dump_command(args: argparse.Namespace) -> int:
    """Decode an index file and print it as JSON."""
    index_path = Path(args.path)
    try:
        payload = index_path.read_bytes()
    except OSError as error:
        raise IndexReadError(
            f"Error reading asset file {index_path} for dump: {error}"
        ) from error
    print(to_display(decode_index(payload)))
    return 0


def run_lookup_command(args: argparse.Namespace) -> int:
    """Print the index entry for a request path, or ``not_found``."""
    resolver = AssetResolver.from_file(args.index)
    metadata = resolver.lookup_key(args.path)
    if metadata is None:
        print("not_found")
        return 1
    print(json.dumps({"path": metadata.path, "modified": metadata.modified, "size": metadata.size}))
    return 0
