"""Exception types and error classification for the store and the worker."""

from enum import Enum
from typing import Literal


class DatabaseError(RuntimeError):
    """A store operation failed for reasons other than a missing record."""


class RecordNotFoundError(KeyError):
    """The requested record does not exist."""

    def __str__(self) -> str:
        # KeyError repr-quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class QueueFullError(Exception):
    """The completion queue stayed full for the whole enqueue timeout."""

    def __init__(self, message: str = "task queue is full") -> None:
        super().__init__(message)


class WorkerStoppedError(RuntimeError):
    """The worker was stopped and no longer accepts submissions."""


class ErrorCategory(Enum):
    """Categories of errors seen by the auto-completion worker."""

    STORE_TIMEOUT = "store_timeout"
    STORE_UNAVAILABLE = "store_unavailable"
    NOT_FOUND = "not_found"
    QUEUE_FULL = "queue_full"
    UNKNOWN = "unknown"


_ERROR_PATTERNS: dict[
    Literal["timeout", "unavailable"],
    dict[str, list[str] | set[str]],
] = {
    "timeout": {
        "phrases": ["timed out", "timeout"],
        "exception_types": {"TimeoutError", "CancelledError"},
    },
    "unavailable": {
        "phrases": [
            "database is locked",
            "unable to open database",
            "disk i/o error",
            "connection",
            "no such table",
        ],
        "exception_types": {"DatabaseError", "OperationalError", "ConnectionError"},
    },
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["timeout", "unavailable"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_worker_error(exception: BaseException) -> ErrorCategory:
    """Classify an exception raised around a store or queue call.

    Args:
        exception: The exception caught by the scanner, processor or submit path

    Returns:
        The matching ErrorCategory
    """
    if isinstance(exception, QueueFullError):
        return ErrorCategory.QUEUE_FULL
    if isinstance(exception, RecordNotFoundError):
        return ErrorCategory.NOT_FOUND

    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    # Timeouts first: a wrapped DatabaseError can mention both.
    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="timeout"):
        return ErrorCategory.STORE_TIMEOUT

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="unavailable"):
        return ErrorCategory.STORE_UNAVAILABLE

    return ErrorCategory.UNKNOWN
