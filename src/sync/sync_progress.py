"""Structured progress reporting for bulk remote operations.

Progress events are emitted only when an operation spans more keys
than one bulk request accepts.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from core.constants import BULK_KEY_MAX
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


def should_report_progress(total_keys: int) -> bool:
    """Return whether a bulk operation is large enough to report progress."""
    return total_keys > BULK_KEY_MAX


@dataclass
class BulkProgressTracker:
    """Track and emit progress for one bulk upload or delete."""

    operation: str
    total_keys: int
    completed_keys: int = 0
    started_at: float = field(default_factory=time.monotonic)

    @property
    def enabled(self) -> bool:
        """Whether this operation reports progress."""
        return should_report_progress(self.total_keys)

    def advance(self, key_count: int) -> None:
        """Record one finished chunk."""
        self.completed_keys += key_count
        if not self.enabled:
            return
        _LOGGER.info(
            "bulk_progress",
            operation=self.operation,
            completed=self.completed_keys,
            total=self.total_keys,
            progress=round(self.completed_keys / self.total_keys, 3),
        )

    def finish(self, message: str) -> None:
        """Log completion when progress reporting is active."""
        if not self.enabled:
            return
        _LOGGER.info(
            "bulk_finished",
            operation=self.operation,
            message=message,
            total=self.total_keys,
            elapsed_seconds=round(time.monotonic() - self.started_at, 3),
        )
