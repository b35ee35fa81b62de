"""Public SDK surface for kvassets.

This module provides a stable import path for request handlers and
build scripts. It re-exports the resolver, builder, codec, and client.
"""

from __future__ import annotations

from core.config import KVAssetsConfig
from core.errors import (
    ClockError,
    EmptyKeyError,
    IndexDeserializeError,
    IndexReadError,
    KVAssetsError,
    MissingAssetFileError,
    RemoteKeyNotFoundError,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteStoreUnavailableError,
    RemoteTransportError,
    TTLTooShortError,
)
from core.types import AssetIndex, AssetMetadata, IndexBuildResult, SyncOptions, SyncReport
from remote.kv_client import KVNamespaceClient
from store.asset_resolver import AssetResolver
from store.index_builder import IndexBuilder
from store.index_codec import decode_index, encode_index, to_display
from sync.sync_pipeline import sync_assets

__all__ = [
    "AssetIndex",
    "AssetMetadata",
    "AssetResolver",
    "ClockError",
    "EmptyKeyError",
    "IndexBuildResult",
    "IndexBuilder",
    "IndexDeserializeError",
    "IndexReadError",
    "KVAssetsConfig",
    "KVAssetsError",
    "KVNamespaceClient",
    "MissingAssetFileError",
    "RemoteKeyNotFoundError",
    "RemoteNotFoundError",
    "RemoteRejectedError",
    "RemoteStoreUnavailableError",
    "RemoteTransportError",
    "SyncOptions",
    "SyncReport",
    "TTLTooShortError",
    "decode_index",
    "encode_index",
    "sync_assets",
    "to_display",
]
