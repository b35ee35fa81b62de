"""kvassets exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class KVAssetsError(Exception):
    """Base exception for all kvassets failures."""


class KVAssetsConfigError(KVAssetsError):
    """Raised for invalid runtime configuration."""


class AssetIndexError(KVAssetsError):
    """Raised for asset index construction, codec, and lookup failures."""


class IndexEntryError(AssetIndexError):
    """Raised when an index entry has an empty key or invalid value."""


class IndexEncodeError(AssetIndexError):
    """Raised when an index cannot be represented in the binary format."""


class IndexDeserializeError(AssetIndexError):
    """Raised when persisted index bytes are truncated or corrupt."""


class IndexReadError(AssetIndexError):
    """Raised when the index artifact cannot be read from disk."""


class EmptyKeyError(AssetIndexError):
    """Raised when a lookup path normalizes to the empty string."""


class IndexBuildError(KVAssetsError):
    """Raised for index build and artifact write failures."""


class MissingAssetFileError(IndexBuildError):
    """Raised when an asset listed for indexing is absent from disk."""


class ClockError(IndexBuildError):
    """Raised when a file modification time cannot be represented."""


class AssetDirError(IndexBuildError):
    """Raised when the asset source path is not a directory."""


class IndexOutputError(IndexBuildError):
    """Raised when the index artifact path is invalid or unwritable."""


class RemoteStoreError(KVAssetsError):
    """Raised for remote key-value store failures."""


class RemoteStoreUnavailableError(RemoteStoreError):
    """Raised when a resolver built without a store is asked to reach it."""


class TTLTooShortError(RemoteStoreError):
    """Raised when a write requests an expiration TTL under the floor."""


class RemoteTransportError(RemoteStoreError):
    """Raised for network failures and unreadable remote responses."""


class RemoteRejectedError(RemoteStoreError):
    """Raised when the remote API answers with a failure status."""

    def __init__(self, status: int, body: str, message: str | None = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message or f"Remote store rejected request: status={status} body={body}")


class RemoteNotFoundError(RemoteStoreError):
    """Raised when the remote store has no value for a key."""

    def __init__(self, key: str, status: int) -> None:
        self.key = key
        self.status = status
        super().__init__(f"KV key '{key}' not found. status={status}")


class RemoteKeyNotFoundError(RemoteStoreError):
    """Raised when an indexed asset is missing from the remote store.

    This signals index staleness: the index holds an entry whose
    storage key the remote namespace no longer has.
    """

    def __init__(self, logical_path: str, storage_key: str, status: int) -> None:
        self.logical_path = logical_path
        self.storage_key = storage_key
        self.status = status
        super().__init__(
            f"Asset '{logical_path}' is indexed as '{storage_key}' but the remote store "
            f"has no such key (status={status}). Rebuild and re-sync the asset index."
        )


class SyncError(KVAssetsError):
    """Raised when asset synchronization completes with failed keys."""
