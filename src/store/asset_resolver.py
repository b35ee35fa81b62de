"""Request-time asset resolution against a persisted index.

This module wraps the raw index artifact and a remote store handle.
The index is decoded lazily so handlers that never touch static
assets never pay the decode cost.
"""

from __future__ import annotations

import threading
from pathlib import Path

from core.asset_paths import normalize_lookup_path
from core.errors import (
    IndexReadError,
    RemoteKeyNotFoundError,
    RemoteNotFoundError,
    RemoteStoreUnavailableError,
)
from core.logging_config import get_logger
from core.types import AssetIndex, AssetMetadata
from remote.remote_store import RemoteStore
from store.index_codec import decode_index

_LOGGER = get_logger(__name__)


class AssetResolver:
    """Resolve request paths to stored asset blobs.

    The decoded index is cached after the first successful decode and
    shared by concurrent callers. Decode failures are not cached.
    """

    def __init__(self, index_payload: bytes, store: RemoteStore | None = None) -> None:
        """Initialize resolver.

        Args:
            index_payload: Binary index artifact bytes.
            store: Remote store used to fetch blobs. Without one, only
                index lookups are available.
        """
        self._payload = bytes(index_payload)
        self._store = store
        self._index: AssetIndex | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_file(
        cls,
        index_path: str | Path,
        store: RemoteStore | None = None,
    ) -> "AssetResolver":
        """Create a resolver from an index artifact on disk.

        Raises:
            IndexReadError: If the artifact cannot be read.
        """
        artifact_path = Path(index_path)
        try:
            payload = artifact_path.read_bytes()
        except OSError as error:
            raise IndexReadError(
                f"Error reading asset index {artifact_path}: {error}. "
                "Run sync to generate the index."
            ) from error
        return cls(payload, store)

    def lookup_key(self, path: str) -> AssetMetadata | None:
        """Find the index entry for a request path without querying the store.

        Args:
            path: Request path; one leading ``/`` is removed.

        Returns:
            Matching metadata, or None when the path is not indexed.

        Raises:
            EmptyKeyError: If the normalized path is empty.
            IndexDeserializeError: If the index bytes are invalid.
        """
        key = normalize_lookup_path(path)
        return self._ensure_index().get(key)

    def get_asset(self, path: str) -> bytes | None:
        """Look up a request path and fetch its blob from the store.

        Args:
            path: Request path.

        Returns:
            Blob bytes, or None when the path is not indexed.

        Raises:
            RemoteKeyNotFoundError: If the index has the path but the
                store does not have its storage key.
            RemoteStoreUnavailableError: If the resolver has no store.
        """
        metadata = self.lookup_key(path)
        if metadata is None:
            return None
        try:
            return self._require_store().get(metadata.path)
        except RemoteNotFoundError as error:
            logical_path = normalize_lookup_path(path)
            _LOGGER.warning(
                "index_staleness_detected",
                logical_path=logical_path,
                storage_key=metadata.path,
                status=error.status,
            )
            raise RemoteKeyNotFoundError(logical_path, metadata.path, error.status) from error

    def get_kv_value(self, key: str) -> bytes:
        """Fetch a value by storage key, bypassing the index."""
        return self._require_store().get(key)

    def put_kv_value(self, key: str, value: bytes, expiration_ttl: int | None = None) -> None:
        """Store a value by storage key; TTL must be at least 60 seconds."""
        self._require_store().put(key, value, expiration_ttl)

    def _require_store(self) -> RemoteStore:
        if self._store is None:
            raise RemoteStoreUnavailableError(
                "Asset resolver was created without a remote store; only index lookups are available."
            )
        return self._store

    def _ensure_index(self) -> AssetIndex:
        index = self._index
        if index is not None:
            return index
        with self._lock:
            if self._index is None:
                self._index = decode_index(self._payload)
                _LOGGER.debug("asset_index_loaded", entries=len(self._index))
            return self._index
