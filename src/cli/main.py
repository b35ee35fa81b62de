"""kvassets CLI entry points.
This module exposes sync and index inspection commands.
It maps argparse commands onto the sync pipeline and index codec.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.inspect_command import (
    add_dump_command,
    add_lookup_command,
    run_dump_command,
    run_lookup_command,
)
from core.config import KVAssetsConfig, load_sync_config
from core.constants import DEFAULT_ASSET_DIR, DEFAULT_INDEX_OUTPUT_PATH
from core.errors import KVAssetsError
from core.types import SyncOptions
from store.index_builder import describe_index_update
from sync.sync_pipeline import sync_assets


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="kvassets",
        description="Serve static assets from Workers KV storage",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_sync_command(subparsers)
    add_dump_command(subparsers)
    add_lookup_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the kvassets CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "sync":
            return _run_sync_command(args)
        if args.command == "dump":
            return run_dump_command(args)
        if args.command == "lookup":
            return run_lookup_command(args)
    except KVAssetsError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 2
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_sync_command(args: argparse.Namespace) -> int:
    """Handle sync command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    config = KVAssetsConfig.from_env()
    options = SyncOptions()
    if args.config:
        config, options = load_sync_config(args.config, config)
    overrides: dict[str, Any] = {}
    if args.assets:
        overrides["asset_dir"] = Path(args.assets)
    if args.output:
        overrides["output_path"] = Path(args.output)
    if args.prune:
        overrides["prune"] = True
    options = replace(options, **overrides)
    report = sync_assets(options, config)
    print(describe_index_update(report.update, options.output_path))
    print(f"uploaded={len(report.uploaded)}")
    print(f"deleted={len(report.deleted)}")
    if report.deferred:
        print(
            f"Deferred pruning [{len(report.deferred)}] stale files. "
            "Run with '--prune' later to remove them."
        )
    return 0


def _add_sync_command(subparsers: Any) -> None:
    """Register sync subcommand."""
    parser = subparsers.add_parser(
        "sync",
        help="Upload assets to KV and regenerate the asset index",
    )
    parser.add_argument("--config", help="Optional YAML sync config file")
    parser.add_argument(
        "--assets",
        help=f"Path to assets dir (default: {DEFAULT_ASSET_DIR})",
    )
    parser.add_argument(
        "--output",
        help=f"Path for generated asset index (default: {DEFAULT_INDEX_OUTPUT_PATH})",
    )
    parser.add_argument(
        "--prune",
        action="store_true",
        help="Remove unreferenced KV assets. Use only after a successful publish",
    )
