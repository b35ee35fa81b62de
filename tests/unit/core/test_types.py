"""Unit tests for asset index data models."""

from __future__ import annotations

import pytest

from core.asset_paths import normalize_lookup_path, strip_leading_slash
from core.errors import EmptyKeyError, IndexEntryError
from core.types import AssetIndex, AssetMetadata


def test_asset_metadata_orders_by_path_then_modified_then_size() -> None:
    """Metadata ordering should be structural over its fields."""
    items = [
        AssetMetadata(path="b", modified=1, size=1),
        AssetMetadata(path="a", modified=2, size=1),
        AssetMetadata(path="a", modified=1, size=2),
        AssetMetadata(path="a", modified=1, size=1),
    ]

    ordered = sorted(items)

    assert [(item.path, item.modified, item.size) for item in ordered] == [
        ("a", 1, 1),
        ("a", 1, 2),
        ("a", 2, 1),
        ("b", 1, 1),
    ]


def test_asset_index_equals_mapping_with_same_entries() -> None:
    """Index equality should ignore insertion order."""
    first = AssetMetadata(path="x.1.txt", modified=1, size=1)
    second = AssetMetadata(path="y.2.txt", modified=2, size=2)

    left = AssetIndex([("x.txt", first), ("y.txt", second)])
    right = AssetIndex({"y.txt": second, "x.txt": first})

    assert left == right


def test_asset_index_rejects_empty_key() -> None:
    """Index construction should reject empty keys."""
    with pytest.raises(IndexEntryError):
        AssetIndex({"": AssetMetadata(path="x", modified=0, size=0)})


def test_asset_index_rejects_non_metadata_values() -> None:
    """Index construction should reject untyped values."""
    with pytest.raises(IndexEntryError):
        AssetIndex({"a": {"path": "x", "modified": 0, "size": 0}})  # type: ignore[dict-item]


def test_strip_leading_slash_removes_only_one_slash() -> None:
    """Normalization should strip exactly one leading slash."""
    assert strip_leading_slash("//a") == "/a"


@pytest.mark.parametrize("path", ["", "/"])
def test_normalize_lookup_path_rejects_empty(path: str) -> None:
    """Empty and root-only paths should raise EmptyKeyError."""
    with pytest.raises(EmptyKeyError):
        normalize_lookup_path(path)
