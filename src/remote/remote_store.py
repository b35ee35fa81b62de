"""Narrow remote store interfaces consumed by the resolver and sync layers."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol

from core.types import BulkResult


class RemoteStore(Protocol):
    """Single-blob operations against a remote key-value namespace."""

    def get(self, key: str) -> bytes:
        """Fetch the value stored at ``key``."""
        ...

    def put(self, key: str, value: bytes, expiration_ttl: int | None = None) -> None:
        """Store ``value`` at ``key`` with an optional expiration TTL."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key`` from the namespace."""
        ...


class BulkRemoteStore(RemoteStore, Protocol):
    """Remote store that can also list keys and run batch operations."""

    def list_keys(self, prefix: str | None = None) -> list[str]:
        """List every key in the namespace."""
        ...

    def put_many(
        self,
        items: Iterable[tuple[str, bytes]],
        expiration_ttl: int | None = None,
        on_chunk: Callable[[int], None] | None = None,
    ) -> BulkResult:
        """Upload many values, partitioning per-key success and failure."""
        ...

    def delete_many(
        self,
        keys: Iterable[str],
        on_chunk: Callable[[int], None] | None = None,
    ) -> BulkResult:
        """Delete many keys, partitioning per-key success and failure."""
        ...
