"""Remote key-value store access.

This module talks to the Workers KV REST API for single-key reads,
writes, and deletes, plus bulk uploads and prunes used by sync.
"""
