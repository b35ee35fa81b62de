"""Binary and display codecs for the asset index artifact.

The binary layout is little-endian:

    magic    4 bytes  b"KVAI"
    version  u8
    count    u64
    entries  count x (key, path, modified u64, size u64)
    crc32    u32 over every preceding byte

Strings are a u64 byte length followed by UTF-8 bytes. Entries are
written in sorted key order so equal indexes encode to equal bytes.
"""

from __future__ import annotations

import json
import struct
import zlib

from core.constants import INDEX_MAGIC, INDEX_SCHEMA_VERSION, U64_MAX
from core.errors import IndexDeserializeError, IndexEncodeError
from core.types import AssetIndex, AssetMetadata

_HEADER = struct.Struct("<4sBQ")
_U64 = struct.Struct("<Q")
_NUMBERS = struct.Struct("<QQ")
_TRAILER = struct.Struct("<I")


def encode_index(index: AssetIndex) -> bytes:
    """Serialize an asset index into the binary artifact format.

    Args:
        index: Index to serialize.

    Returns:
        Encoded artifact bytes.

    Raises:
        IndexEncodeError: If a metadata value does not fit in u64.
    """
    chunks = [_HEADER.pack(INDEX_MAGIC, INDEX_SCHEMA_VERSION, len(index))]
    for key in sorted(index):
        metadata = index[key]
        _check_u64(key, "modified", metadata.modified)
        _check_u64(key, "size", metadata.size)
        chunks.append(_encode_str(key))
        chunks.append(_encode_str(metadata.path))
        chunks.append(_NUMBERS.pack(metadata.modified, metadata.size))
    body = b"".join(chunks)
    return body + _TRAILER.pack(zlib.crc32(body))


def decode_index(payload: bytes) -> AssetIndex:
    """Deserialize artifact bytes into an asset index.

    Args:
        payload: Artifact bytes.

    Returns:
        Decoded asset index.

    Raises:
        IndexDeserializeError: If bytes are truncated, corrupt, or of
            an unsupported schema version.
    """
    data = bytes(payload)
    if len(data) < _HEADER.size + _TRAILER.size:
        raise IndexDeserializeError(
            f"Deserializing assets: artifact is {len(data)} bytes, too short for an index. "
            "Regenerate the asset index."
        )
    body, trailer = data[: -_TRAILER.size], data[-_TRAILER.size :]
    magic, version, count = _HEADER.unpack_from(body, 0)
    if magic != INDEX_MAGIC:
        raise IndexDeserializeError(
            f"Deserializing assets: bad magic {magic!r}, not an asset index artifact."
        )
    if version != INDEX_SCHEMA_VERSION:
        raise IndexDeserializeError(
            f"Deserializing assets: unsupported schema version {version} "
            f"(expected {INDEX_SCHEMA_VERSION}). Regenerate the asset index with this tool version."
        )
    (expected_crc,) = _TRAILER.unpack(trailer)
    if zlib.crc32(body) != expected_crc:
        raise IndexDeserializeError(
            "Deserializing assets: checksum mismatch, artifact is corrupt or truncated. "
            "Regenerate the asset index."
        )
    return AssetIndex(_decode_entries(body, _HEADER.size, count))


def to_display(index: AssetIndex) -> str:
    """Render an index as pretty JSON for inspection.

    Args:
        index: Index to render.

    Returns:
        Indented JSON text with sorted keys.
    """
    payload = {
        key: {"path": metadata.path, "modified": metadata.modified, "size": metadata.size}
        for key, metadata in index.items()
    }
    return json.dumps(payload, indent=2, sort_keys=True)


def _decode_entries(body: bytes, offset: int, count: int) -> dict[str, AssetMetadata]:
    # Each entry needs at least two length prefixes and two numbers.
    min_entry_size = 2 * _U64.size + _NUMBERS.size
    if count > (len(body) - offset) // min_entry_size:
        raise IndexDeserializeError(
            f"Deserializing assets: entry count {count} exceeds artifact size."
        )
    entries: dict[str, AssetMetadata] = {}
    for _ in range(count):
        key, offset = _decode_str(body, offset)
        path, offset = _decode_str(body, offset)
        if offset + _NUMBERS.size > len(body):
            raise IndexDeserializeError(
                f"Deserializing assets: entry '{key}' is truncated."
            )
        modified, size = _NUMBERS.unpack_from(body, offset)
        offset += _NUMBERS.size
        if not key:
            raise IndexDeserializeError("Deserializing assets: entry with empty key.")
        if key in entries:
            raise IndexDeserializeError(f"Deserializing assets: duplicate key '{key}'.")
        entries[key] = AssetMetadata(path=path, modified=modified, size=size)
    if offset != len(body):
        raise IndexDeserializeError(
            f"Deserializing assets: {len(body) - offset} unexpected trailing bytes."
        )
    return entries


def _encode_str(value: str) -> bytes:
    if not isinstance(value, str):
        raise IndexEncodeError(f"Cannot encode {value!r}: index strings must be str.")
    try:
        raw = value.encode("utf-8")
    except UnicodeEncodeError as error:
        raise IndexEncodeError(
            f"Cannot encode {value!r}: not representable as UTF-8 ({error.reason})."
        ) from error
    return _U64.pack(len(raw)) + raw


def _decode_str(body: bytes, offset: int) -> tuple[str, int]:
    if offset + _U64.size > len(body):
        raise IndexDeserializeError("Deserializing assets: string length is truncated.")
    (length,) = _U64.unpack_from(body, offset)
    start = offset + _U64.size
    end = start + length
    if end > len(body):
        raise IndexDeserializeError(
            f"Deserializing assets: string of {length} bytes runs past end of artifact."
        )
    try:
        return body[start:end].decode("utf-8"), end
    except UnicodeDecodeError as error:
        raise IndexDeserializeError(
            f"Deserializing assets: invalid UTF-8 string at offset {start}: {error.reason}."
        ) from error


def _check_u64(key: str, field_name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= U64_MAX:
        raise IndexEncodeError(
            f"Cannot encode asset '{key}': {field_name}={value!r} is not an unsigned 64-bit integer."
        )
