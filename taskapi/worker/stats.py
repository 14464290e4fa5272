"""In-memory execution tracking for the auto-completion worker."""

from collections import Counter
from typing import Any

from taskapi.core.clock import Clock, format_timestamp, utc_now
from taskapi.core.errors import classify_worker_error


# Stored error messages are truncated to this many characters.
MAX_ERROR_LENGTH = 500


class WorkerStats:
    """Track scan history, processing outcomes and error categories."""

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self.scan_success_count = 0
        self.scan_failure_count = 0
        self.consecutive_scan_failures = 0
        self.last_scan_success: str | None = None
        self.last_scan_failure: str | None = None
        self.last_error: str | None = None
        self.last_candidates = 0
        self.enqueued_total = 0
        self.evicted_total = 0
        self.submit_rejected = 0
        self.outcomes: Counter[str] = Counter()
        self.error_categories: Counter[str] = Counter()

    def _record_error(self, error: BaseException) -> None:
        self.last_error = str(error)[:MAX_ERROR_LENGTH] or type(error).__name__
        self.error_categories[classify_worker_error(error).value] += 1

    def record_scan_success(self, *, candidates: int, enqueued: int, evicted: int) -> None:
        """Record a scan that reached the store."""
        self.scan_success_count += 1
        self.consecutive_scan_failures = 0
        self.last_scan_success = format_timestamp(self._clock())
        self.last_candidates = candidates
        self.enqueued_total += enqueued
        self.evicted_total += evicted

    def record_scan_failure(self, error: BaseException) -> int:
        """Record a skipped scan.

        Returns:
            Number of consecutive failed scans, including this one
        """
        self.scan_failure_count += 1
        self.consecutive_scan_failures += 1
        self.last_scan_failure = format_timestamp(self._clock())
        self._record_error(error)
        return self.consecutive_scan_failures

    def record_outcome(self, outcome: str, *, error: BaseException | None = None) -> None:
        """Record the outcome of one processing attempt."""
        self.outcomes[str(outcome)] += 1
        if error is not None:
            self._record_error(error)

    def record_submit_rejected(self, error: BaseException) -> None:
        self.submit_rejected += 1
        self._record_error(error)

    @property
    def is_degraded(self) -> bool:
        return self.consecutive_scan_failures > 0

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-serialisable view of the current counters."""
        return {
            "scans": {
                "success_count": self.scan_success_count,
                "failure_count": self.scan_failure_count,
                "consecutive_failures": self.consecutive_scan_failures,
                "last_success": self.last_scan_success,
                "last_failure": self.last_scan_failure,
                "last_candidates": self.last_candidates,
                "enqueued_total": self.enqueued_total,
                "evicted_total": self.evicted_total,
            },
            "outcomes": dict(self.outcomes),
            "submit_rejected": self.submit_rejected,
            "last_error": self.last_error,
            "error_categories": dict(self.error_categories),
        }
