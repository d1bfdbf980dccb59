"""
Retry Utilities for evmtx.

Provides linear or exponential backoff, with optional jitter, for
transient failures of synchronous calls.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import (
    Callable,
    Literal,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from evmtx.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Example:
        ```python
        config = RetryConfig(
            max_attempts=5,
            base_delay_ms=1000,
            backoff="linear",
            retryable_errors=(SubmissionError,),
        )
        ```
    """

    max_attempts: int = 3
    """Maximum number of attempts (including the first)."""

    base_delay_ms: int = 1000
    """Base delay in milliseconds."""

    max_delay_ms: int = 30000
    """Maximum delay in milliseconds."""

    backoff: Literal["linear", "exponential"] = "linear"
    """linear: base * (attempt + 1); exponential: base * exponential_base ** attempt."""

    jitter: bool = False
    """Whether to add random jitter to delays."""

    exponential_base: float = 2.0
    """Base for exponential backoff calculation."""

    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (Exception,)
    )
    """Tuple of exception types that should trigger a retry."""

    should_retry: Optional[Callable[[BaseException], bool]] = None
    """Optional predicate; a matching error is retried only if this returns True."""


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate the delay before the next attempt.

    Args:
        attempt: Zero-based index of the attempt that just failed
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    if config.backoff == "linear":
        delay_ms = config.base_delay_ms * (attempt + 1)
    else:
        delay_ms = config.base_delay_ms * (config.exponential_base ** attempt)

    delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter:
        delay_ms = random.uniform(0, delay_ms)

    return delay_ms / 1000


def retry_call(
    fn: Callable[[], T],
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Execute a function with retry logic.

    Args:
        fn: Function to execute (no arguments)
        config: Retry configuration (uses defaults if None)
        sleep: Sleep function, injectable for tests

    Returns:
        Result of the function

    Raises:
        The last error if all attempts fail, or the first non-retryable error.
    """
    config = config or RetryConfig()
    last_error: Optional[BaseException] = None

    for attempt in range(config.max_attempts):
        try:
            return fn()
        except config.retryable_errors as e:
            if config.should_retry is not None and not config.should_retry(e):
                raise
            last_error = e

            if attempt < config.max_attempts - 1:
                delay = calculate_delay(attempt, config)
                _logger.warning(
                    "Attempt failed, retrying",
                    extra={"attempt": attempt + 1, "delay": delay, "error": str(e)},
                )
                sleep(delay)

    if last_error is not None:
        raise last_error

    raise RuntimeError("Retry exhausted without error")


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for adding retry logic to functions.

    Example:
        ```python
        @with_retry(RetryConfig(max_attempts=5, retryable_errors=(NetworkError,)))
        def fetch_balance(address: str) -> int:
            return node.balance(address)
        ```
    """
    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @wraps(fn)
        def wrapper(*args: object, **kwargs: object) -> T:
            return retry_call(lambda: fn(*args, **kwargs), config)
        return wrapper
    return decorator
