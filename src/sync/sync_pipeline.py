"""Asset sync orchestration.

This module scans the asset directory, diffs it against the remote
namespace, writes the asset index, uploads new blobs, and prunes or
defers stale keys.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from core.config import KVAssetsConfig
from core.errors import MissingAssetFileError, SyncError
from core.logging_config import get_logger
from core.types import BulkResult, LocalAsset, SyncOptions, SyncReport
from remote.kv_client import KVNamespaceClient
from remote.remote_store import BulkRemoteStore
from store.index_builder import IndexBuilder
from sync.asset_scanner import scan_assets
from sync.sync_progress import BulkProgressTracker

_LOGGER = get_logger(__name__)


def sync_assets(
    options: SyncOptions,
    config: KVAssetsConfig,
    store: BulkRemoteStore | None = None,
) -> SyncReport:
    """Sync the asset directory into the remote namespace and write the index.

    The index is written before uploading so a failed upload still
    leaves an index matching the local directory. Stale keys are only
    removed when ``options.prune`` is set, which should happen after
    the consuming deployment has been published.

    Args:
        options: Sync options.
        config: Runtime config with remote credentials.
        store: Optional remote store; a KV client is built from config
            when omitted.

    Returns:
        Sync summary report.

    Raises:
        AssetDirError: If the asset directory is invalid.
        IndexBuildError: If the index cannot be built or written.
        RemoteStoreError: If the namespace cannot be listed.
        SyncError: If any key failed to upload or delete.
    """
    assets = scan_assets(options.asset_dir)
    if store is None:
        with KVNamespaceClient.from_config(config) as client:
            return _run_sync(options, assets, client)
    return _run_sync(options, assets, store)


def plan_sync(
    assets: list[LocalAsset],
    remote_keys: list[str],
) -> tuple[list[LocalAsset], list[str]]:
    """Diff local assets against remote keys.

    Args:
        assets: Scanned local assets.
        remote_keys: Keys currently in the namespace.

    Returns:
        Pair of assets to upload and stale remote keys.
    """
    remote_key_set = set(remote_keys)
    local_key_set = {asset.storage_key for asset in assets}
    to_upload = [asset for asset in assets if asset.storage_key not in remote_key_set]
    stale_keys = sorted(key for key in remote_key_set if key not in local_key_set)
    return to_upload, stale_keys


def _run_sync(
    options: SyncOptions,
    assets: list[LocalAsset],
    store: BulkRemoteStore,
) -> SyncReport:
    to_upload, stale_keys = plan_sync(assets, store.list_keys())
    _LOGGER.info(
        "sync_planned",
        asset_dir=str(options.asset_dir),
        assets=len(assets),
        to_upload=len(to_upload),
        stale=len(stale_keys),
    )
    builder = IndexBuilder(options.asset_dir)
    build_result = builder.build_to_file(
        ((asset.logical_path, asset.storage_key) for asset in assets),
        options.output_path,
    )
    upload_result = _upload_assets(store, to_upload)
    deleted: tuple[str, ...] = ()
    deferred: tuple[str, ...] = ()
    delete_result = BulkResult()
    if stale_keys and options.prune:
        delete_result = _prune_keys(store, stale_keys)
        deleted = delete_result.succeeded
    elif stale_keys:
        deferred = tuple(stale_keys)
        _LOGGER.info(
            "stale_keys_deferred",
            count=len(stale_keys),
            hint="Run with --prune later to remove them.",
        )
    _raise_for_failures(upload_result.failed, delete_result.failed)
    return SyncReport(
        update=build_result.update,
        index_entries=len(build_result.index),
        uploaded=upload_result.succeeded,
        deleted=deleted,
        deferred=deferred,
    )


def _upload_assets(store: BulkRemoteStore, to_upload: list[LocalAsset]) -> BulkResult:
    if not to_upload:
        return BulkResult()
    tracker = BulkProgressTracker(operation="upload", total_keys=len(to_upload))
    result = store.put_many(_read_upload_items(to_upload), on_chunk=tracker.advance)
    tracker.finish("Done Uploading")
    _LOGGER.info(
        "assets_uploaded",
        uploaded=len(result.succeeded),
        failed=len(result.failed),
    )
    return result


def _prune_keys(store: BulkRemoteStore, stale_keys: list[str]) -> BulkResult:
    tracker = BulkProgressTracker(operation="delete", total_keys=len(stale_keys))
    result = store.delete_many(stale_keys, on_chunk=tracker.advance)
    tracker.finish("Done deleting")
    _LOGGER.info("stale_keys_pruned", deleted=len(result.succeeded), failed=len(result.failed))
    return result


def _read_upload_items(assets: list[LocalAsset]) -> Iterator[tuple[str, bytes]]:
    for asset in assets:
        try:
            payload = asset.file_path.read_bytes()
        except OSError as error:
            raise MissingAssetFileError(
                f"Failed reading asset file {asset.file_path} for upload: {error}."
            ) from error
        yield asset.storage_key, payload


def _raise_for_failures(
    upload_failures: Mapping[str, str],
    delete_failures: Mapping[str, str],
) -> None:
    if not upload_failures and not delete_failures:
        return
    for key, message in upload_failures.items():
        _LOGGER.error("asset_upload_failed", storage_key=key, error=message)
    for key, message in delete_failures.items():
        _LOGGER.error("stale_key_delete_failed", storage_key=key, error=message)
    failed_keys = sorted([*upload_failures, *delete_failures])
    raise SyncError(
        f"Sync finished with {len(upload_failures)} failed uploads and "
        f"{len(delete_failures)} failed deletes: {', '.join(failed_keys)}. "
        "Rerun sync to retry the failed keys."
    )
