"""Workers KV REST client.

This module maps KV REST calls and their failure modes onto the
kvassets error taxonomy. It never retries; callers own retry policy.
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Iterable, Iterator
from itertools import islice
from typing import Any
from urllib.parse import quote

import httpx

from core.config import KVAssetsConfig
from core.constants import BULK_KEY_MAX, LIST_KEYS_PAGE_LIMIT, MIN_EXPIRATION_TTL_SECONDS
from core.errors import (
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteStoreError,
    RemoteTransportError,
    TTLTooShortError,
)
from core.logging_config import get_logger
from core.types import BulkResult

_LOGGER = get_logger(__name__)

ChunkCallback = Callable[[int], None]


class KVNamespaceClient:
    """Client for one Workers KV namespace.

    Implements the ``RemoteStore`` interface plus key listing and
    chunked bulk operations.
    """

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        api_endpoint: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a namespace client.

        Args:
            account_id: Cloudflare account id.
            namespace_id: KV namespace id.
            api_token: Bearer token for the REST API.
            api_endpoint: REST API base URL.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self._namespace_path = f"/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        self._http = httpx.Client(
            base_url=api_endpoint,
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: KVAssetsConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> "KVNamespaceClient":
        """Create a client from validated runtime config.

        Raises:
            KVAssetsConfigError: If credentials are missing.
        """
        account_id, namespace_id, api_token = config.require_remote_credentials()
        return cls(
            account_id=account_id,
            namespace_id=namespace_id,
            api_token=api_token,
            api_endpoint=config.api_endpoint,
            timeout=config.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self._http.close()

    def __enter__(self) -> "KVNamespaceClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get(self, key: str) -> bytes:
        """Fetch a value from the namespace.

        If the key came from an index lookup but is missing here, the
        value was deleted, expired through its TTL, or the index is stale.

        Args:
            key: Storage key.

        Returns:
            Stored bytes.

        Raises:
            RemoteNotFoundError: If the namespace has no such key.
            RemoteRejectedError: For other non-2xx responses.
            RemoteTransportError: For network failures.
        """
        response = self._send("GET", self._value_path(key))
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RemoteNotFoundError(key, response.status_code)
        _raise_for_status(response)
        return response.content

    def put(self, key: str, value: bytes, expiration_ttl: int | None = None) -> None:
        """Store a value, optionally expiring ``expiration_ttl`` seconds from now.

        Args:
            key: Storage key.
            value: Value bytes.
            expiration_ttl: Optional TTL, at least 60 seconds.

        Raises:
            TTLTooShortError: If the TTL is under the floor. No request is sent.
            RemoteRejectedError: If the API rejects the write.
            RemoteTransportError: For network failures or unreadable replies.
        """
        params = _ttl_params(expiration_ttl)
        response = self._send("PUT", self._value_path(key), content=value, params=params)
        _raise_for_status(response)
        _check_envelope(response, f"writing key {key}")

    def delete(self, key: str) -> None:
        """Delete a key from the namespace.

        Raises:
            RemoteRejectedError: If the API rejects the delete.
            RemoteTransportError: For network failures.
        """
        response = self._send("DELETE", self._value_path(key))
        _raise_for_status(response)

    def list_keys(self, prefix: str | None = None) -> list[str]:
        """List every key in the namespace, following cursor pagination.

        Args:
            prefix: Optional key prefix filter.

        Returns:
            Key names in API order.
        """
        keys: list[str] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"limit": LIST_KEYS_PAGE_LIMIT}
            if prefix:
                params["prefix"] = prefix
            if cursor:
                params["cursor"] = cursor
            response = self._send("GET", f"{self._namespace_path}/keys", params=params)
            _raise_for_status(response)
            envelope = _check_envelope(response, "listing keys")
            keys.extend(_key_names(envelope))
            result_info = envelope.get("result_info")
            cursor = result_info.get("cursor") if isinstance(result_info, dict) else None
            if not cursor:
                return keys

    def put_many(
        self,
        items: Iterable[tuple[str, bytes]],
        expiration_ttl: int | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> BulkResult:
        """Upload many values in chunks of at most ``BULK_KEY_MAX`` keys.

        A failed chunk marks only its own keys as failed; remaining
        chunks are still sent. Keys the API lists as unsuccessful in an
        otherwise successful reply are failed individually.

        Args:
            items: Pairs of (storage_key, value).
            expiration_ttl: Optional TTL applied to every key.
            on_chunk: Optional callback receiving each chunk's key count.

        Returns:
            Per-key success and failure partition.

        Raises:
            TTLTooShortError: If the TTL is under the floor.
        """
        _ttl_params(expiration_ttl)
        succeeded: list[str] = []
        failed: dict[str, str] = {}
        for chunk in _chunks(items, BULK_KEY_MAX):
            keys = [key for key, _ in chunk]
            payload = [_bulk_put_item(key, value, expiration_ttl) for key, value in chunk]
            self._run_bulk_chunk("PUT", keys, payload, succeeded, failed)
            if on_chunk is not None:
                on_chunk(len(keys))
        return BulkResult(succeeded=tuple(succeeded), failed=failed)

    def delete_many(
        self,
        keys: Iterable[str],
        on_chunk: ChunkCallback | None = None,
    ) -> BulkResult:
        """Delete many keys in chunks of at most ``BULK_KEY_MAX`` keys.

        Args:
            keys: Storage keys to delete.
            on_chunk: Optional callback receiving each chunk's key count.

        Returns:
            Per-key success and failure partition.
        """
        succeeded: list[str] = []
        failed: dict[str, str] = {}
        for chunk in _chunks(keys, BULK_KEY_MAX):
            self._run_bulk_chunk("DELETE", list(chunk), list(chunk), succeeded, failed)
            if on_chunk is not None:
                on_chunk(len(chunk))
        return BulkResult(succeeded=tuple(succeeded), failed=failed)

    def _run_bulk_chunk(
        self,
        method: str,
        keys: list[str],
        payload: list[Any],
        succeeded: list[str],
        failed: dict[str, str],
    ) -> None:
        try:
            response = self._send(method, f"{self._namespace_path}/bulk", json=payload)
            _raise_for_status(response)
            envelope = _check_envelope(response, f"bulk {method.lower()} of {len(keys)} keys")
            rejected = _unsuccessful_keys(envelope)
        except RemoteStoreError as error:
            _LOGGER.warning("bulk_chunk_failed", method=method, keys=len(keys), error=str(error))
            failed.update((key, str(error)) for key in keys)
            return
        if rejected:
            _LOGGER.warning("bulk_keys_rejected", method=method, keys=len(rejected))
        for key in keys:
            if key in rejected:
                failed[key] = f"KV Api reported bulk {method.lower()} of '{key}' as unsuccessful"
            else:
                succeeded.append(key)

    def _value_path(self, key: str) -> str:
        return f"{self._namespace_path}/values/{quote(key, safe='')}"

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, path, **kwargs)
        except httpx.HTTPError as error:
            raise RemoteTransportError(
                f"KV Api error during {method} {path}: {error}. Check connectivity and retry."
            ) from error


def _ttl_params(expiration_ttl: int | None) -> dict[str, int]:
    if expiration_ttl is None:
        return {}
    if expiration_ttl < MIN_EXPIRATION_TTL_SECONDS:
        raise TTLTooShortError(
            f"TTL too short: {expiration_ttl}s. Must be at least {MIN_EXPIRATION_TTL_SECONDS} seconds."
        )
    return {"expiration_ttl": expiration_ttl}


def _bulk_put_item(key: str, value: bytes, expiration_ttl: int | None) -> dict[str, Any]:
    item: dict[str, Any] = {
        "key": key,
        "value": base64.b64encode(value).decode("ascii"),
        "base64": True,
    }
    if expiration_ttl is not None:
        item["expiration_ttl"] = expiration_ttl
    return item


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise RemoteRejectedError(response.status_code, response.content.decode("utf-8", "replace"))


def _check_envelope(response: httpx.Response, context: str) -> dict[str, Any]:
    """Validate the ``{success, errors, messages}`` API envelope.

    Raises:
        RemoteTransportError: If the body is not a JSON object.
        RemoteRejectedError: If the envelope reports failure.
    """
    body = response.content.decode("utf-8", "replace")
    try:
        envelope = response.json()
    except ValueError as error:
        raise RemoteTransportError(
            f"KV Api returned unreadable response while {context}: {error}. body={body}"
        ) from error
    if not isinstance(envelope, dict):
        raise RemoteTransportError(
            f"KV Api returned unexpected response while {context}: body={body}"
        )
    if not envelope.get("success", False):
        raise RemoteRejectedError(
            response.status_code,
            body,
            f"{context}: errors:{envelope.get('errors')} messages:{envelope.get('messages')}",
        )
    return envelope


def _key_names(envelope: dict[str, Any]) -> list[str]:
    items = envelope.get("result") or []
    if not isinstance(items, list) or not all(
        isinstance(item, dict) and isinstance(item.get("name"), str) for item in items
    ):
        raise RemoteTransportError(f"KV Api returned malformed key listing: {items!r}")
    return [item["name"] for item in items]


def _unsuccessful_keys(envelope: dict[str, Any]) -> frozenset[str]:
    result = envelope.get("result")
    if not isinstance(result, dict):
        return frozenset()
    keys = result.get("unsuccessful_keys") or []
    if not isinstance(keys, list) or not all(isinstance(key, str) for key in keys):
        raise RemoteTransportError(f"KV Api returned malformed bulk result: {result!r}")
    return frozenset(keys)


def _chunks(items: Iterable[Any], size: int) -> Iterator[list[Any]]:
    iterator = iter(items)
    while chunk := list(islice(iterator, size)):
        yield chunk
