"""Asset directory synchronization.

This module scans the asset directory, diffs it against the remote
namespace, writes the asset index, and uploads or prunes blobs.
"""
