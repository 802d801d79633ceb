"""Shared batch processing infrastructure.

Provides generic utilities for concurrent batch pipelines:
- BoundedTaskLimiter: FIFO gate capping how many coroutines run at once
- with_bounded_retry: Retry an async operation while a predicate accepts its failures
- is_timeout_error / TimeoutLog: Deadline-fault classification and its line log

Usage:
    from src.shared.batch import BoundedTaskLimiter, with_bounded_retry
    from src.shared.batch import TimeoutLog, is_timeout_error
"""

from .limiter import BoundedTaskLimiter
from .retry import with_bounded_retry
from .timeouts import HardFailure, TimeoutLog, flatten_error, format_timeout_line, is_timeout_error

__all__ = [
    "BoundedTaskLimiter",
    "HardFailure",
    "TimeoutLog",
    "flatten_error",
    "format_timeout_line",
    "is_timeout_error",
    "with_bounded_retry",
]
