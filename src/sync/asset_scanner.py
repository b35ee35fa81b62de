"""Asset directory scanning and storage key fingerprinting."""

from __future__ import annotations

import hashlib
from pathlib import Path

from core.asset_paths import logical_path_from_relative
from core.constants import HASH_ALGORITHM, STORAGE_KEY_HASH_LENGTH
from core.errors import AssetDirError, MissingAssetFileError
from core.types import LocalAsset

_IGNORED_DIR_NAMES = frozenset({"node_modules"})
_READ_CHUNK_BYTES = 1024 * 1024


def scan_assets(asset_dir: str | Path) -> list[LocalAsset]:
    """Scan an asset directory into fingerprinted local assets.

    Hidden files, hidden directories, and ``node_modules`` are skipped.

    Args:
        asset_dir: Asset source directory.

    Returns:
        Assets sorted by logical path.

    Raises:
        AssetDirError: If ``asset_dir`` is not a directory or cannot be walked.
        MissingAssetFileError: If a scanned file vanishes or cannot be read.
    """
    root = Path(asset_dir)
    if not root.is_dir():
        raise AssetDirError(f"Invalid asset path: not a directory: {root}")
    assets: list[LocalAsset] = []
    try:
        file_paths = sorted(root.rglob("*"))
    except OSError as error:
        raise AssetDirError(f"Error walking asset dir {root}: {error}") from error
    for file_path in file_paths:
        if not file_path.is_file():
            continue
        relative_path = file_path.relative_to(root)
        if _is_ignored(relative_path.parts):
            continue
        assets.append(
            LocalAsset(
                logical_path=logical_path_from_relative(relative_path),
                storage_key=fingerprint_storage_key(relative_path, file_digest(file_path)),
                file_path=file_path.resolve(),
            )
        )
    return assets


def fingerprint_storage_key(relative_path: Path, digest: str) -> str:
    """Build ``dir/stem.<hash><suffix>`` from a relative path and content digest."""
    fingerprinted_name = f"{relative_path.stem}.{digest[:STORAGE_KEY_HASH_LENGTH]}{relative_path.suffix}"
    return logical_path_from_relative(relative_path.with_name(fingerprinted_name))


def file_digest(file_path: Path) -> str:
    """Hash file content without loading it whole.

    Raises:
        MissingAssetFileError: If the file cannot be opened or read.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    try:
        with file_path.open("rb") as handle:
            for block in iter(lambda: handle.read(_READ_CHUNK_BYTES), b""):
                hasher.update(block)
    except OSError as error:
        raise MissingAssetFileError(f"Error reading asset file {file_path}: {error}") from error
    return hasher.hexdigest()


def _is_ignored(parts: tuple[str, ...]) -> bool:
    return any(part.startswith(".") or part in _IGNORED_DIR_NAMES for part in parts)
