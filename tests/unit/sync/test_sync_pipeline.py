"""Unit tests for asset sync orchestration."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from core.config import KVAssetsConfig
from core.errors import AssetDirError, MissingAssetFileError, SyncError
from core.types import BulkResult, SyncOptions
from store.index_codec import decode_index
from sync import asset_scanner
from sync.asset_scanner import scan_assets
from sync.sync_pipeline import plan_sync, sync_assets


class _FakeBulkStore:
    def __init__(self, keys: Iterable[str] = (), failing_keys: Iterable[str] = ()) -> None:
        self.values: dict[str, bytes] = {key: b"" for key in keys}
        self.failing_keys = set(failing_keys)
        self.deleted: list[str] = []

    def get(self, key: str) -> bytes:
        return self.values[key]

    def put(self, key: str, value: bytes, expiration_ttl: int | None = None) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key)

    def list_keys(self, prefix: str | None = None) -> list[str]:
        return sorted(self.values)

    def put_many(
        self,
        items: Iterable[tuple[str, bytes]],
        expiration_ttl: int | None = None,
        on_chunk: Callable[[int], None] | None = None,
    ) -> BulkResult:
        succeeded: list[str] = []
        failed: dict[str, str] = {}
        for key, value in items:
            if key in self.failing_keys:
                failed[key] = "rejected"
                continue
            self.values[key] = value
            succeeded.append(key)
        if on_chunk is not None:
            on_chunk(len(succeeded) + len(failed))
        return BulkResult(succeeded=tuple(succeeded), failed=failed)

    def delete_many(
        self,
        keys: Iterable[str],
        on_chunk: Callable[[int], None] | None = None,
    ) -> BulkResult:
        key_list = list(keys)
        for key in key_list:
            self.values.pop(key)
            self.deleted.append(key)
        return BulkResult(succeeded=tuple(key_list))


def _config() -> KVAssetsConfig:
    return KVAssetsConfig(account_id="acc", namespace_id="ns", api_token="token")


def _asset_dir(tmp_path: Path) -> Path:
    asset_dir = tmp_path / "public"
    (asset_dir / "css").mkdir(parents=True)
    (asset_dir / "index.html").write_bytes(b"<html></html>")
    (asset_dir / "css" / "site.css").write_bytes(b"body{}")
    return asset_dir


def test_sync_uploads_new_assets_and_writes_index(tmp_path: Path) -> None:
    """First sync should upload every asset and index it by logical path."""
    asset_dir = _asset_dir(tmp_path)
    output_path = tmp_path / "data" / "assets.bin"
    store = _FakeBulkStore()

    report = sync_assets(SyncOptions(asset_dir, output_path), _config(), store=store)
    index = decode_index(output_path.read_bytes())

    assert (report.update, len(report.uploaded), sorted(index)) == (
        "new",
        2,
        ["css/site.css", "index.html"],
    )


def test_sync_uploads_blob_bytes_under_storage_key(tmp_path: Path) -> None:
    """Uploaded values should be readable at the indexed storage key."""
    asset_dir = _asset_dir(tmp_path)
    output_path = tmp_path / "assets.bin"
    store = _FakeBulkStore()

    sync_assets(SyncOptions(asset_dir, output_path), _config(), store=store)
    storage_key = decode_index(output_path.read_bytes())["css/site.css"].path

    assert store.values[storage_key] == b"body{}"


def test_sync_skips_keys_already_in_namespace(tmp_path: Path) -> None:
    """Assets whose fingerprinted key exists remotely should not be re-uploaded."""
    asset_dir = _asset_dir(tmp_path)
    existing_keys = [asset.storage_key for asset in scan_assets(asset_dir)]
    store = _FakeBulkStore(keys=existing_keys)

    report = sync_assets(SyncOptions(asset_dir, tmp_path / "assets.bin"), _config(), store=store)

    assert report.uploaded == ()


def test_sync_defers_stale_keys_without_prune(tmp_path: Path) -> None:
    """Stale keys should be reported but kept when prune is off."""
    store = _FakeBulkStore(keys=["old.123.css"])

    report = sync_assets(
        SyncOptions(_asset_dir(tmp_path), tmp_path / "assets.bin"),
        _config(),
        store=store,
    )

    assert (report.deferred, report.deleted, "old.123.css" in store.values) == (
        ("old.123.css",),
        (),
        True,
    )


def test_sync_prunes_stale_keys(tmp_path: Path) -> None:
    """Prune should delete keys no local asset references."""
    store = _FakeBulkStore(keys=["old.123.css"])

    report = sync_assets(
        SyncOptions(_asset_dir(tmp_path), tmp_path / "assets.bin", prune=True),
        _config(),
        store=store,
    )

    assert (report.deleted, store.deleted) == (("old.123.css",), ["old.123.css"])


def test_sync_raises_after_partial_upload_failure(tmp_path: Path) -> None:
    """Failed uploads should raise SyncError after the index is written."""
    asset_dir = _asset_dir(tmp_path)
    failing_key = next(
        asset.storage_key for asset in scan_assets(asset_dir) if asset.logical_path == "index.html"
    )
    output_path = tmp_path / "assets.bin"
    store = _FakeBulkStore(failing_keys=[failing_key])

    with pytest.raises(SyncError) as error_info:
        sync_assets(SyncOptions(asset_dir, output_path), _config(), store=store)

    assert failing_key in str(error_info.value) and output_path.exists()


def test_sync_second_run_reports_no_change(tmp_path: Path) -> None:
    """Rerunning sync on an unchanged directory should leave the index alone."""
    asset_dir = _asset_dir(tmp_path)
    output_path = tmp_path / "assets.bin"
    store = _FakeBulkStore()
    sync_assets(SyncOptions(asset_dir, output_path), _config(), store=store)

    report = sync_assets(SyncOptions(asset_dir, output_path), _config(), store=store)

    assert (report.update, report.uploaded) == ("no_change", ())


def test_sync_raises_for_missing_asset_dir(tmp_path: Path) -> None:
    """Invalid asset directories should fail before contacting the store."""
    with pytest.raises(AssetDirError):
        sync_assets(SyncOptions(tmp_path / "missing", tmp_path / "assets.bin"), _config())


def test_sync_raises_typed_error_when_asset_vanishes_during_scan(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A file deleted between listing and hashing should fail as a missing asset."""
    asset_dir = _asset_dir(tmp_path)
    hash_file = asset_scanner.file_digest

    def unlink_then_hash(file_path: Path) -> str:
        file_path.unlink()
        return hash_file(file_path)

    monkeypatch.setattr(asset_scanner, "file_digest", unlink_then_hash)
    store = _FakeBulkStore()

    with pytest.raises(MissingAssetFileError):
        sync_assets(SyncOptions(asset_dir, tmp_path / "assets.bin"), _config(), store=store)

    assert store.values == {}


def test_plan_sync_splits_uploads_and_stale_keys(tmp_path: Path) -> None:
    """Diffing should upload unknown keys and flag unreferenced ones."""
    assets = scan_assets(_asset_dir(tmp_path))
    kept_key = assets[0].storage_key

    to_upload, stale_keys = plan_sync(assets, [kept_key, "stale.js"])

    assert ([asset.storage_key for asset in to_upload], stale_keys) == (
        [asset.storage_key for asset in assets[1:]],
        ["stale.js"],
    )
