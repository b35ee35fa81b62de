"""Core constants used across kvassets modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_API_ENDPOINT = "https://api.cloudflare.com/client/v4"
DEFAULT_ASSET_DIR = Path("public")
DEFAULT_INDEX_OUTPUT_PATH = Path("data/assets.bin")
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
MIN_EXPIRATION_TTL_SECONDS = 60
BULK_KEY_MAX = 10000
LIST_KEYS_PAGE_LIMIT = 1000
INDEX_MAGIC = b"KVAI"
INDEX_SCHEMA_VERSION = 1
U64_MAX = 2**64 - 1
STORAGE_KEY_HASH_LENGTH = 10
HASH_ALGORITHM = "sha256"
