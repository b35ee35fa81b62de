"""Logical asset path helpers.

This module centralizes path normalization for the index builder and
the resolver so both sides agree on lookup keys.
"""

from __future__ import annotations

from pathlib import PurePath

from core.errors import EmptyKeyError


def strip_leading_slash(path: str) -> str:
    """Remove exactly one leading ``/`` if present."""
    return path[1:] if path.startswith("/") else path


def normalize_lookup_path(path: str) -> str:
    """Normalize a request path into an index lookup key.

    Args:
        path: Request path, with or without a leading slash.

    Returns:
        Lookup key.

    Raises:
        EmptyKeyError: If the normalized key is empty.
    """
    key = strip_leading_slash(path)
    if not key:
        raise EmptyKeyError(
            f"Empty key passed to lookup (path={path!r}). Request a file path, not the root."
        )
    return key


def logical_path_from_relative(relative_path: PurePath) -> str:
    """Render a filesystem-relative path as a logical asset path."""
    return relative_path.as_posix()
