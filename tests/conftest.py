"""Shared pytest setup for kvassets tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_KV_ENV_NAMES = (
    "KV_ASSETS_ACCOUNT_ID",
    "KV_ASSETS_NAMESPACE_ID",
    "KV_ASSETS_API_TOKEN",
    "KV_ASSETS_API_ENDPOINT",
    "KV_ASSETS_REQUEST_TIMEOUT",
)


def pytest_sessionstart() -> None:
    """Make the flat ``src`` packages importable without installing."""
    src_path = Path(__file__).resolve().parents[1] / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def isolated_kv_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide host KV credentials from every test."""
    for name in _KV_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
