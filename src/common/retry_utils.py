"""Retry utility with linear backoff for batch translation requests."""

import asyncio
import functools
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class PermanentError(Exception):
    """
    Base class for failures that must not be retried.

    Anything else raised inside a retried call is treated as transient.
    """

    pass


def calculate_linear_backoff_delay(base_delay: float, attempt: int) -> float:
    """
    Calculate the delay before a retry.

    Args:
        base_delay: Base delay in seconds
        attempt: Number of the failed attempt (0-indexed)

    Returns:
        Delay in seconds: base_delay * (attempt + 1)

    Example:
        >>> calculate_linear_backoff_delay(3.0, 0)
        3.0
        >>> calculate_linear_backoff_delay(3.0, 2)
        9.0
    """
    return base_delay * (attempt + 1)


def is_retryable_error(error: BaseException) -> bool:
    """
    Determine if an error should be retried.

    Checks the error and its __cause__ chain for a PermanentError.

    Args:
        error: Exception to check

    Returns:
        True if error is transient and should be retried, False otherwise
    """
    current: Optional[BaseException] = error
    seen = set()
    while current is not None and id(current) not in seen:
        if isinstance(current, PermanentError):
            return False
        seen.add(id(current))
        current = current.__cause__

    return isinstance(error, Exception)


def retry_with_linear_backoff(
    max_retries: int = 3,
    base_delay: float = 3.0,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    should_continue: Optional[Callable[[], bool]] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator that adds bounded retry with linear backoff to async functions.

    The wrapped call is attempted once and then retried up to max_retries
    times, waiting base_delay * (attempt + 1) seconds before each retry.
    Permanent errors fail immediately. A False should_continue also ends
    the loop, so a caller that goes away mid-backoff triggers no new attempts.

    Args:
        max_retries: Maximum number of retry attempts (after initial try)
        base_delay: Base delay in seconds
        on_retry: Optional callback(attempt, error, delay) invoked before each wait
        should_continue: Optional predicate checked before and after each wait;
            when it returns False the last error is raised without retrying

    Returns:
        Decorated function with retry logic

    Example:
        @retry_with_linear_backoff(max_retries=3, base_delay=3.0)
        async def submit_batch():
            return await translator.translate(prompt)
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        func_name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)

                except Exception as e:
                    if not is_retryable_error(e):
                        logger.error(
                            f"❌ Permanent error in {func_name}: {e}. Not retrying."
                        )
                        raise

                    if attempt >= max_retries:
                        logger.error(
                            f"❌ Max retries ({max_retries}) exceeded for {func_name}. Last error: {e}"
                        )
                        raise

                    if should_continue is not None and not should_continue():
                        logger.info(f"🛑 Stopping retries of {func_name}: caller no longer active")
                        raise

                    delay = calculate_linear_backoff_delay(base_delay, attempt)
                    logger.warning(
                        f"⚠️  Transient error in {func_name}: {e}. "
                        f"Retry {attempt + 1}/{max_retries} in {delay:.2f}s..."
                    )
                    if on_retry is not None:
                        on_retry(attempt, e, delay)

                    await asyncio.sleep(delay)

                    if should_continue is not None and not should_continue():
                        logger.info(f"🛑 Stopping retries of {func_name}: caller no longer active")
                        raise

        return wrapper

    return decorator
