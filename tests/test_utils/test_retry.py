"""
Tests for the retry utility.

Tests cover:
- RetryConfig defaults
- Linear and exponential delay calculation
- Jitter randomization
- Max delay capping
- Retryable error filtering and the should_retry predicate
- Decorator pattern
"""

from typing import List

import pytest

from evmtx.errors import SubmissionError
from evmtx.utils.retry import (
    RetryConfig,
    calculate_delay,
    retry_call,
    with_retry,
)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# =============================================================================
# RetryConfig Tests
# =============================================================================


class TestRetryConfig:
    """Tests for RetryConfig dataclass."""

    def test_default_values(self) -> None:
        """Test RetryConfig default values."""
        config = RetryConfig()

        assert config.max_attempts == 3
        assert config.base_delay_ms == 1000
        assert config.max_delay_ms == 30000
        assert config.backoff == "linear"
        assert config.jitter is False
        assert config.retryable_errors == (Exception,)
        assert config.should_retry is None

    def test_custom_values(self) -> None:
        """Test RetryConfig with custom values."""
        config = RetryConfig(
            max_attempts=5,
            base_delay_ms=500,
            backoff="exponential",
            exponential_base=3.0,
            retryable_errors=(ValueError, TypeError),
        )

        assert config.max_attempts == 5
        assert config.base_delay_ms == 500
        assert config.backoff == "exponential"
        assert config.exponential_base == 3.0
        assert config.retryable_errors == (ValueError, TypeError)


# =============================================================================
# Delay Calculation Tests
# =============================================================================


class TestDelayCalculation:
    """Tests for calculate_delay function."""

    def test_linear_growth(self) -> None:
        """Delay before attempt n+1 is n * base."""
        config = RetryConfig(base_delay_ms=1000)

        delays = [calculate_delay(i, config) for i in range(4)]

        assert delays == [1.0, 2.0, 3.0, 4.0]

    def test_exponential_growth(self) -> None:
        """Test delay grows exponentially."""
        config = RetryConfig(base_delay_ms=1000, backoff="exponential", exponential_base=2.0)

        delays = [calculate_delay(i, config) for i in range(5)]

        # Expected: 1s, 2s, 4s, 8s, 16s
        assert delays == [1.0, 2.0, 4.0, 8.0, 16.0]

    def test_max_delay_cap(self) -> None:
        """Test delay is capped at max_delay_ms."""
        config = RetryConfig(base_delay_ms=1000, max_delay_ms=5000, backoff="exponential")

        # Attempt 10 would be 1000 * 2^10 = 1024000ms without cap
        assert calculate_delay(10, config) == 5.0

    def test_jitter_adds_randomness(self) -> None:
        """Test jitter adds randomness to delay."""
        config = RetryConfig(base_delay_ms=1000, jitter=True)

        delays = [calculate_delay(0, config) for _ in range(100)]

        assert min(delays) != max(delays)
        assert all(0 <= d <= 1.0 for d in delays)


# =============================================================================
# retry_call Tests
# =============================================================================


class TestRetryCall:
    """Tests for retry_call function."""

    def test_success_on_first_attempt(self) -> None:
        sleep = SleepRecorder()
        calls = []

        result = retry_call(lambda: calls.append(1) or "success", sleep=sleep)

        assert result == "success"
        assert len(calls) == 1
        assert sleep.delays == []

    def test_retry_on_failure(self) -> None:
        """Test retry after transient failure, with linear backoff."""
        sleep = SleepRecorder()
        call_count = 0

        def fail_then_succeed():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ValueError("Transient error")
            return "success"

        result = retry_call(fail_then_succeed, RetryConfig(max_attempts=5), sleep=sleep)

        assert result == "success"
        assert call_count == 3
        assert sleep.delays == [1.0, 2.0]

    def test_max_attempts_exceeded(self) -> None:
        """Test raises the last error after max attempts exhausted."""
        sleep = SleepRecorder()
        call_count = 0

        def always_fail():
            nonlocal call_count
            call_count += 1
            raise ValueError(f"Persistent error {call_count}")

        with pytest.raises(ValueError) as exc_info:
            retry_call(always_fail, RetryConfig(max_attempts=3), sleep=sleep)

        assert str(exc_info.value) == "Persistent error 3"
        assert call_count == 3
        # No sleep after the final attempt
        assert sleep.delays == [1.0, 2.0]

    def test_non_retryable_error(self) -> None:
        """Test non-retryable errors are raised immediately."""
        sleep = SleepRecorder()
        call_count = 0

        def raise_type_error():
            nonlocal call_count
            call_count += 1
            raise TypeError("Not retryable")

        config = RetryConfig(max_attempts=5, retryable_errors=(ValueError,))

        with pytest.raises(TypeError):
            retry_call(raise_type_error, config, sleep=sleep)

        assert call_count == 1
        assert sleep.delays == []

    def test_should_retry_predicate(self) -> None:
        """A matching error the predicate rejects is raised without retry."""
        sleep = SleepRecorder()
        call_count = 0

        def rejected():
            nonlocal call_count
            call_count += 1
            raise SubmissionError("nonce too low")

        config = RetryConfig(
            max_attempts=3,
            retryable_errors=(SubmissionError,),
            should_retry=lambda e: e.retryable,
        )

        with pytest.raises(SubmissionError):
            retry_call(rejected, config, sleep=sleep)

        assert call_count == 1


# =============================================================================
# Decorator Tests
# =============================================================================


class TestWithRetryDecorator:
    """Tests for with_retry decorator."""

    def test_decorator_with_retry(self) -> None:
        call_count = 0

        @with_retry(RetryConfig(max_attempts=5, base_delay_ms=0))
        def decorated_fail_once():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise ValueError("Transient")
            return "success"

        assert decorated_fail_once() == "success"
        assert call_count == 2

    def test_decorator_with_arguments(self) -> None:
        @with_retry(RetryConfig(max_attempts=3, base_delay_ms=0))
        def greet(name: str, greeting: str = "Hello") -> str:
            return f"{greeting}, {name}!"

        assert greet("World", greeting="Hi") == "Hi, World!"

    def test_decorator_preserves_function_name(self) -> None:
        @with_retry(RetryConfig(max_attempts=3))
        def my_function():
            """My docstring."""
            return "result"

        assert my_function.__name__ == "my_function"
        assert my_function.__doc__ == "My docstring."
