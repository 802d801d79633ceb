"""Bounded retry for async operations, driven by a retryability predicate."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

T = TypeVar("T")

FailureHook = Callable[[int, BaseException], None]


async def with_bounded_retry(
    func: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[BaseException], bool],
    max_attempts: int,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    on_retryable_failure: Optional[FailureHook] = None,
    label: str = "operation",
) -> T:
    """Await ``func()`` up to *max_attempts* times.

    Only failures accepted by *is_retryable* are retried; anything else is
    raised immediately. Each retryable failure, including the final one, is
    reported to *on_retryable_failure* with its 1-based attempt number. Once
    the attempt budget is spent the last exception is re-raised.

    Args:
        func: Zero-argument coroutine factory; called once per attempt
        is_retryable: Predicate deciding whether a failure is worth retrying
        max_attempts: Total attempts, including the first
        initial_delay: Base delay in seconds (doubles each retry, 0 disables)
        max_delay: Ceiling for the delay between attempts
        on_retryable_failure: Hook invoked for every retryable failure
        label: Human readable name used in log messages

    Example:
        record_id = await with_bounded_retry(
            lambda: pipeline.run_once(locator),
            is_retryable=is_timeout_error,
            max_attempts=3,
        )
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def _after_failure(retry_state: RetryCallState) -> None:
        attempt = retry_state.attempt_number
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if exc is None:
            return
        if on_retryable_failure is not None:
            on_retryable_failure(attempt, exc)
        if attempt < max_attempts:
            logger.warning(
                "%s failed with retryable error (attempt %d/%d): %s",
                label,
                attempt,
                max_attempts,
                exc,
            )
        else:
            logger.error("%s still failing after %d attempts: %s", label, max_attempts, exc)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_delay, max=max_delay),
        retry=retry_if_exception(is_retryable),
        after=_after_failure,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            return await func()

    # AsyncRetrying either returns or re-raises above.
    raise RuntimeError(f"{label}: retry loop finished without a result")
