"""Unit tests for core config parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import KVAssetsConfig, load_sync_config
from core.constants import DEFAULT_API_ENDPOINT, DEFAULT_INDEX_OUTPUT_PATH
from core.errors import KVAssetsConfigError


def test_from_env_reads_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should read account, namespace, and token from environment."""
    monkeypatch.setenv("KV_ASSETS_ACCOUNT_ID", "acc")
    monkeypatch.setenv("KV_ASSETS_NAMESPACE_ID", "ns")
    monkeypatch.setenv("KV_ASSETS_API_TOKEN", "token")

    config = KVAssetsConfig.from_env()

    assert config.require_remote_credentials() == ("acc", "ns", "token")


def test_from_env_uses_default_endpoint() -> None:
    """Config should default to the public Cloudflare API endpoint."""
    config = KVAssetsConfig.from_env()

    assert config.api_endpoint == DEFAULT_API_ENDPOINT


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric request timeout."""
    monkeypatch.setenv("KV_ASSETS_REQUEST_TIMEOUT", "soon")

    with pytest.raises(KVAssetsConfigError):
        KVAssetsConfig.from_env()


def test_from_env_raises_for_non_positive_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject zero or negative timeouts."""
    monkeypatch.setenv("KV_ASSETS_REQUEST_TIMEOUT", "0")

    with pytest.raises(KVAssetsConfigError):
        KVAssetsConfig.from_env()


def test_require_remote_credentials_names_missing_variables(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Missing credentials should be reported by variable name."""
    monkeypatch.setenv("KV_ASSETS_ACCOUNT_ID", "acc")
    config = KVAssetsConfig.from_env()

    with pytest.raises(KVAssetsConfigError) as error_info:
        config.require_remote_credentials()

    assert "KV_ASSETS_NAMESPACE_ID" in str(error_info.value)


def test_load_sync_config_overrides_options(tmp_path: Path) -> None:
    """YAML sync config should override namespace and sync options."""
    config_path = tmp_path / "kvassets.yaml"
    config_path.write_text(
        "namespace_id: site-ns\nasset_dir: dist\nprune: true\n",
        encoding="utf-8",
    )

    config, options = load_sync_config(config_path, KVAssetsConfig.from_env())

    assert (config.namespace_id, options.asset_dir, options.output_path, options.prune) == (
        "site-ns",
        Path("dist"),
        DEFAULT_INDEX_OUTPUT_PATH,
        True,
    )


def test_load_sync_config_rejects_unknown_keys(tmp_path: Path) -> None:
    """Unknown sync config keys should fail loudly."""
    config_path = tmp_path / "kvassets.yaml"
    config_path.write_text("bucket: public\n", encoding="utf-8")

    with pytest.raises(KVAssetsConfigError):
        load_sync_config(config_path, KVAssetsConfig.from_env())


def test_load_sync_config_rejects_non_boolean_prune(tmp_path: Path) -> None:
    """Prune must be a YAML boolean."""
    config_path = tmp_path / "kvassets.yaml"
    config_path.write_text("prune: sometimes\n", encoding="utf-8")

    with pytest.raises(KVAssetsConfigError):
        load_sync_config(config_path, KVAssetsConfig.from_env())


def test_load_sync_config_raises_for_missing_file(tmp_path: Path) -> None:
    """Missing sync config files should raise config errors."""
    with pytest.raises(KVAssetsConfigError):
        load_sync_config(tmp_path / "missing.yaml", KVAssetsConfig.from_env())


@pytest.mark.parametrize("raw_value", ["nan", "inf", "-inf"])
def test_from_env_raises_for_non_finite_timeout(
    monkeypatch: pytest.MonkeyPatch,
    raw_value: str,
) -> None:
    """Config should reject timeouts that are not finite numbers."""
    monkeypatch.setenv("KV_ASSETS_REQUEST_TIMEOUT", raw_value)

    with pytest.raises(KVAssetsConfigError):
        KVAssetsConfig.from_env()
