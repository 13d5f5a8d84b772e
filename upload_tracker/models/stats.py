"""
Dataclass for tracking upload session statistics.
"""

import time
from dataclasses import dataclass, field

from .upload import UploadState


@dataclass
class UploadStats:
    """Tracks counters for a tracking session, including peak concurrency."""

    submitted: int = 0
    succeeded: int = 0
    failed: int = 0
    removed: int = 0
    removed_in_flight: int = 0
    peak_active: int = 0
    total_size_submitted: int = 0

    _started_at: float = field(default=0.0, repr=False)

    def __post_init__(self):
        self._started_at = time.monotonic()

    @property
    def finished(self) -> int:
        return self.succeeded + self.failed

    @property
    def elapsed_s(self) -> float:
        return time.monotonic() - self._started_at

    def record_enqueued(self, size: int, active: int) -> None:
        self.submitted += 1
        self.total_size_submitted += size
        self.peak_active = max(self.peak_active, active)

    def record_finalized(self, state: UploadState) -> None:
        if state is UploadState.SUCCEEDED:
            self.succeeded += 1
        elif state is UploadState.FAILED:
            self.failed += 1

    def record_removed(self, was_in_flight: bool) -> None:
        self.removed += 1
        if was_in_flight:
            self.removed_in_flight += 1

    def as_dict(self) -> dict[str, int | float]:
        """Returns a plain dictionary suitable for logging or JSON output."""
        return {
            "submitted": self.submitted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "removed": self.removed,
            "removed_in_flight": self.removed_in_flight,
            "peak_active": self.peak_active,
            "total_size_submitted": self.total_size_submitted,
            "elapsed_s": round(self.elapsed_s, 2),
        }
