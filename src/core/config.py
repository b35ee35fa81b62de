"""Runtime configuration model for kvassets.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import math
import os
from pathlib import Path
from typing import Any, cast

import yaml

from core.constants import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_ASSET_DIR,
    DEFAULT_INDEX_OUTPUT_PATH,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from core.errors import KVAssetsConfigError
from core.types import SyncOptions

_SYNC_CONFIG_KEYS = ("account_id", "namespace_id", "asset_dir", "output_path", "prune")


@dataclass(frozen=True)
class KVAssetsConfig:
    """Validated runtime configuration.

    Attributes:
        account_id: Cloudflare account id owning the KV namespace.
        namespace_id: Workers KV namespace holding asset blobs.
        api_token: Bearer token for the KV REST API.
        api_endpoint: Base URL of the KV REST API.
        request_timeout: Per-request network timeout in seconds.
    """

    account_id: str | None
    namespace_id: str | None
    api_token: str | None
    api_endpoint: str = DEFAULT_API_ENDPOINT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "KVAssetsConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            KVAssetsConfigError: If environment values are invalid.
        """
        timeout_value = os.getenv("KV_ASSETS_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))
        return cls(
            account_id=os.getenv("KV_ASSETS_ACCOUNT_ID") or None,
            namespace_id=os.getenv("KV_ASSETS_NAMESPACE_ID") or None,
            api_token=os.getenv("KV_ASSETS_API_TOKEN") or None,
            api_endpoint=os.getenv("KV_ASSETS_API_ENDPOINT", DEFAULT_API_ENDPOINT).rstrip("/"),
            request_timeout=_parse_request_timeout(timeout_value),
        )

    def require_remote_credentials(self) -> tuple[str, str, str]:
        """Return account, namespace, and token or fail naming what is missing.

        Returns:
            Tuple of account id, namespace id, and api token.

        Raises:
            KVAssetsConfigError: If any credential is unset.
        """
        missing = [
            env_name
            for env_name, value in (
                ("KV_ASSETS_ACCOUNT_ID", self.account_id),
                ("KV_ASSETS_NAMESPACE_ID", self.namespace_id),
                ("KV_ASSETS_API_TOKEN", self.api_token),
            )
            if not value
        ]
        if missing:
            raise KVAssetsConfigError(
                f"Missing remote store credentials: {', '.join(missing)}. "
                "Set these environment variables before contacting Workers KV."
            )
        return cast(str, self.account_id), cast(str, self.namespace_id), cast(str, self.api_token)


def load_sync_config(
    config_path: str | Path,
    config: KVAssetsConfig,
) -> tuple[KVAssetsConfig, SyncOptions]:
    """Load a YAML sync config file on top of environment config.

    Args:
        config_path: Path to the YAML file.
        config: Environment-derived config to override.

    Returns:
        Pair of merged runtime config and sync options.

    Raises:
        KVAssetsConfigError: If the file is missing, unreadable, or invalid.
    """
    payload = _load_yaml_mapping(Path(config_path).expanduser().resolve())
    unknown_keys = sorted(set(payload) - set(_SYNC_CONFIG_KEYS))
    if unknown_keys:
        raise KVAssetsConfigError(
            f"Unsupported sync config keys: {', '.join(unknown_keys)}. "
            f"Allowed keys: {', '.join(_SYNC_CONFIG_KEYS)}."
        )
    merged_config = replace(
        config,
        account_id=_optional_str(payload, "account_id") or config.account_id,
        namespace_id=_optional_str(payload, "namespace_id") or config.namespace_id,
    )
    asset_dir = _optional_str(payload, "asset_dir")
    output_path = _optional_str(payload, "output_path")
    prune = payload.get("prune", False)
    if not isinstance(prune, bool):
        raise KVAssetsConfigError(
            f"Invalid sync config value for 'prune': expected boolean, got {prune!r}."
        )
    options = SyncOptions(
        asset_dir=Path(asset_dir) if asset_dir else DEFAULT_ASSET_DIR,
        output_path=Path(output_path) if output_path else DEFAULT_INDEX_OUTPUT_PATH,
        prune=prune,
    )
    return merged_config, options


def _load_yaml_mapping(config_file: Path) -> dict[str, Any]:
    if not config_file.exists():
        raise KVAssetsConfigError(
            f"Sync config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise KVAssetsConfigError(
            f"Failed to read sync config at {config_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise KVAssetsConfigError(
            f"Failed to parse YAML sync config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise KVAssetsConfigError(
            f"Sync config at {config_file} must be a YAML mapping at top level."
        )
    return cast(dict[str, Any], payload)


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise KVAssetsConfigError(
            f"Invalid sync config value for '{key}': expected non-empty string, got {value!r}."
        )
    return value


def _parse_request_timeout(raw_value: str) -> float:
    """Parse the request timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive timeout in seconds.

    Raises:
        KVAssetsConfigError: If value is not a finite positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise KVAssetsConfigError(
            "Invalid KV_ASSETS_REQUEST_TIMEOUT value: "
            f"expected number, got '{raw_value}'. "
            "Set KV_ASSETS_REQUEST_TIMEOUT to a positive number of seconds."
        ) from error
    if not math.isfinite(timeout) or timeout <= 0:
        raise KVAssetsConfigError(
            "Invalid KV_ASSETS_REQUEST_TIMEOUT value: "
            f"expected finite positive number, got '{raw_value}'."
        )
    return timeout
