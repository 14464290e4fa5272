"""Auto-completion worker: scanner, completion queue, processor and lifecycle controller."""

from taskapi.worker.processor import CompletionProcessor, ProcessOutcome
from taskapi.worker.queue import CompletionQueue
from taskapi.worker.scanner import EligibilityScanner
from taskapi.worker.worker import TaskWorker


__all__ = [
    "CompletionProcessor",
    "CompletionQueue",
    "EligibilityScanner",
    "ProcessOutcome",
    "TaskWorker",
]
