"""Shared typed models.

This module defines immutable data models used by the index codec,
builder, resolver, remote client, and sync layers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from core.constants import DEFAULT_ASSET_DIR, DEFAULT_INDEX_OUTPUT_PATH
from core.errors import IndexEntryError

IndexUpdate = Literal["new", "updated", "no_change"]


@dataclass(frozen=True, order=True)
class AssetMetadata:
    """Metadata for one stored asset.

    Attributes:
        path: Storage key within the namespace, without leading slash.
        modified: Last modified time of the file, UTC seconds since epoch.
        size: File size in bytes.
    """

    path: str
    modified: int
    size: int


class AssetIndex(Mapping[str, AssetMetadata]):
    """Read-only mapping of logical asset paths to metadata.

    Keys have their leading slash removed. Values carry the storage key,
    which may differ from the logical path when content-fingerprinted.
    """

    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Mapping[str, AssetMetadata] | Iterable[tuple[str, AssetMetadata]] | None = None,
    ) -> None:
        validated: dict[str, AssetMetadata] = {}
        pairs = entries.items() if isinstance(entries, Mapping) else (entries or ())
        for key, metadata in pairs:
            if not isinstance(key, str) or not key:
                raise IndexEntryError(
                    f"Asset index keys must be non-empty strings, got {key!r}."
                )
            if not isinstance(metadata, AssetMetadata):
                raise IndexEntryError(
                    f"Asset index value for '{key}' must be AssetMetadata, "
                    f"got {type(metadata).__name__}."
                )
            validated[key] = metadata
        self._entries = validated

    def __getitem__(self, key: str) -> AssetMetadata:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AssetIndex({self._entries!r})"


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of one index build.

    Attributes:
        update: Whether the artifact was new, updated, or unchanged.
        index: Built asset index.
        payload: Encoded index bytes.
    """

    update: IndexUpdate
    index: AssetIndex
    payload: bytes

    @property
    def needs_write(self) -> bool:
        """Whether the artifact must be (re)written."""
        return self.update != "no_change"


@dataclass(frozen=True)
class LocalAsset:
    """One file discovered in the asset directory.

    Attributes:
        logical_path: Request-facing path relative to the asset directory.
        storage_key: Content-fingerprinted key in the remote namespace.
        file_path: Absolute file location on disk.
    """

    logical_path: str
    storage_key: str
    file_path: Path


@dataclass(frozen=True)
class BulkResult:
    """Per-key partition of a bulk remote operation.

    Attributes:
        succeeded: Keys the remote store accepted.
        failed: Mapping of failed keys to error messages.
    """

    succeeded: tuple[str, ...] = ()
    failed: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether every key succeeded."""
        return not self.failed


@dataclass(frozen=True)
class SyncOptions:
    """Sync command options.

    Attributes:
        asset_dir: Local asset source directory.
        output_path: Index artifact output path.
        prune: Remove stale keys from the namespace after upload.
    """

    asset_dir: Path = DEFAULT_ASSET_DIR
    output_path: Path = DEFAULT_INDEX_OUTPUT_PATH
    prune: bool = False


@dataclass(frozen=True)
class SyncReport:
    """Summary of one sync run.

    Attributes:
        update: Index artifact outcome.
        index_entries: Number of entries in the written index.
        uploaded: Storage keys uploaded in this run.
        deleted: Stale keys removed from the namespace.
        deferred: Stale keys left in place because prune was off.
    """

    update: IndexUpdate
    index_entries: int
    uploaded: tuple[str, ...]
    deleted: tuple[str, ...]
    deferred: tuple[str, ...]
