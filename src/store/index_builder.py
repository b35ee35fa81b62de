"""Asset index builder with change detection.

This module turns (logical_path, storage_key) pairs into an asset index
using filesystem stat metadata, and persists the encoded artifact only
when its bytes differ from the previous build.
"""

from __future__ import annotations

import math
import os
from collections.abc import Iterable
from pathlib import Path

from core.asset_paths import strip_leading_slash
from core.constants import U64_MAX
from core.errors import (
    ClockError,
    IndexEntryError,
    IndexOutputError,
    MissingAssetFileError,
)
from core.logging_config import get_logger
from core.types import AssetIndex, AssetMetadata, IndexBuildResult, IndexUpdate
from store.index_codec import encode_index

_LOGGER = get_logger(__name__)

_UPDATE_MESSAGES: dict[IndexUpdate, str] = {
    "new": "Generated",
    "updated": "Updated",
    "no_change": "No change to",
}


class IndexBuilder:
    """Build asset indexes from an asset directory.

    Builds are sequential and stateless between calls; each call
    produces a fresh index from the supplied key mapping.
    """

    def __init__(self, asset_dir: str | Path) -> None:
        """Initialize builder for one asset directory.

        Args:
            asset_dir: Root directory holding the asset files.
        """
        self._asset_dir = Path(asset_dir)

    def build_index(self, entries: Iterable[tuple[str, str]]) -> AssetIndex:
        """Build an index from logical paths and remote storage keys.

        Duplicate logical paths resolve last-write-wins.

        Args:
            entries: Pairs of (logical_path, storage_key).

        Returns:
            Built asset index.

        Raises:
            MissingAssetFileError: If a listed file cannot be stat'ed.
            ClockError: If a modification time is not representable.
            IndexEntryError: If a logical path normalizes to empty.
        """
        index_entries: dict[str, AssetMetadata] = {}
        for logical_path, storage_key in entries:
            key = strip_leading_slash(logical_path.replace(os.sep, "/"))
            if not key:
                raise IndexEntryError(
                    f"Cannot index asset with empty logical path (storage key '{storage_key}')."
                )
            if key in index_entries:
                _LOGGER.debug(
                    "duplicate_logical_path",
                    logical_path=key,
                    replaced_key=index_entries[key].path,
                    storage_key=storage_key,
                )
            index_entries[key] = self._stat_asset(key, storage_key)
        return AssetIndex(index_entries)

    def build(
        self,
        entries: Iterable[tuple[str, str]],
        previous_payload: bytes | None = None,
    ) -> IndexBuildResult:
        """Build and encode an index, classifying it against a previous artifact.

        Args:
            entries: Pairs of (logical_path, storage_key).
            previous_payload: Bytes of the previously persisted artifact, if any.

        Returns:
            Build result with update status, index, and encoded bytes.
        """
        index = self.build_index(entries)
        payload = encode_index(index)
        return IndexBuildResult(
            update=detect_index_update(payload, previous_payload),
            index=index,
            payload=payload,
        )

    def build_to_file(
        self,
        entries: Iterable[tuple[str, str]],
        output_path: str | Path,
    ) -> IndexBuildResult:
        """Build an index and write it only when the artifact changed.

        Args:
            entries: Pairs of (logical_path, storage_key).
            output_path: Artifact file location.

        Returns:
            Build result with update status, index, and encoded bytes.

        Raises:
            IndexOutputError: If the output path is invalid or unwritable.
        """
        artifact_path = Path(output_path)
        ensure_output_parent(artifact_path)
        result = self.build(entries, read_previous_artifact(artifact_path))
        if result.needs_write:
            try:
                artifact_path.write_bytes(result.payload)
            except OSError as error:
                raise IndexOutputError(
                    f"Failed writing asset index {artifact_path}: {error}. "
                    "Check directory permissions and retry."
                ) from error
            _LOGGER.info(
                "index_written",
                output_path=str(artifact_path),
                update=result.update,
                entries=len(result.index),
                bytes=len(result.payload),
            )
        else:
            _LOGGER.info("index_unchanged", output_path=str(artifact_path), entries=len(result.index))
        return result

    def _stat_asset(self, key: str, storage_key: str) -> AssetMetadata:
        asset_path = self._asset_dir / key
        try:
            stat_result = asset_path.stat()
        except OSError as error:
            raise MissingAssetFileError(
                f"Failed reading asset file {asset_path}: {error}. "
                "The file may have been removed after scanning; rerun the sync."
            ) from error
        return AssetMetadata(
            path=storage_key,
            modified=_modified_seconds(asset_path, stat_result.st_mtime),
            size=stat_result.st_size,
        )


def describe_index_update(update: IndexUpdate, output_path: str | Path) -> str:
    """Render a one-line console message for an index build outcome."""
    return f"{_UPDATE_MESSAGES[update]} asset manifest {output_path}"


def detect_index_update(payload: bytes, previous_payload: bytes | None) -> IndexUpdate:
    """Classify new artifact bytes against the previous artifact.

    Args:
        payload: Newly encoded artifact bytes.
        previous_payload: Previously persisted bytes, or None when absent.

    Returns:
        ``new``, ``updated``, or ``no_change``.
    """
    if previous_payload is None:
        return "new"
    if bytes(previous_payload) == payload:
        return "no_change"
    return "updated"


def read_previous_artifact(artifact_path: Path) -> bytes | None:
    """Read previously persisted artifact bytes, or None when absent.

    Raises:
        IndexOutputError: If an existing artifact cannot be read.
    """
    try:
        return artifact_path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as error:
        raise IndexOutputError(
            f"Failed reading previous asset index {artifact_path}: {error}."
        ) from error


def ensure_output_parent(output_path: Path) -> None:
    """Create the parent directory of the artifact path if needed.

    Args:
        output_path: Artifact file location.

    Raises:
        IndexOutputError: If the path is a directory, has no file name,
            or its parent cannot be created.
    """
    if output_path.is_file():
        return
    if output_path.is_dir() or not output_path.name:
        raise IndexOutputError(
            f"Invalid asset output path: {output_path}. Provide a file path, not a directory."
        )
    parent = output_path.parent
    if parent.is_dir():
        return
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise IndexOutputError(
            f"Failed creating output directory {parent} for assets: {error}."
        ) from error


def _modified_seconds(asset_path: Path, mtime: float) -> int:
    """Convert a stat mtime into whole seconds since epoch.

    Raises:
        ClockError: If the time is before epoch or does not fit in u64.
    """
    if not math.isfinite(mtime) or mtime < 0:
        raise ClockError(
            f"Invalid timestamp {mtime!r} for file {asset_path}: modification time is before "
            "the epoch. Fix the file time or run on a different platform."
        )
    seconds = int(mtime)
    if seconds > U64_MAX:
        raise ClockError(
            f"Invalid timestamp {mtime!r} for file {asset_path}: does not fit in 64 bits."
        )
    return seconds
