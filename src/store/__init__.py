"""Asset index layer.

This module builds, encodes, and resolves the asset index artifact
that maps logical request paths to remote storage keys.
"""
