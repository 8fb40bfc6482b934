"""
Retry utilities with exponential backoff.

Provides helpers for retrying failed model calls. Only transient failures
(rate limits, timeouts, retryable provider errors) are retried; everything
else is raised on the first attempt.
"""

import asyncio
import random
from typing import Callable, TypeVar, Any, Optional, Tuple, Type
from dataclasses import dataclass

from sceneprompt.core.exceptions import LLMError, RateLimitError
from sceneprompt.core.logging_config import get_logger

logger = get_logger("core.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # Base delay in seconds
    max_delay: float = 30.0  # Maximum delay in seconds
    exponential_base: float = 2.0  # Multiplier for exponential backoff
    jitter: bool = True  # Add random jitter to prevent thundering herd
    jitter_range: Tuple[float, float] = (0.9, 1.1)  # Jitter multiplier range
    retryable_exceptions: Tuple[Type[Exception], ...] = (LLMError,)

    def with_retries(self, max_retries: int) -> "RetryConfig":
        """Copy of this config with a different retry budget."""
        return RetryConfig(
            max_retries=max(0, int(max_retries)),
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential_base=self.exponential_base,
            jitter=self.jitter,
            jitter_range=self.jitter_range,
            retryable_exceptions=self.retryable_exceptions,
        )


# Default configuration
DEFAULT_RETRY_CONFIG = RetryConfig()


def calculate_delay(
    attempt: int,
    config: RetryConfig
) -> float:
    """
    Calculate delay before next retry attempt.

    Uses exponential backoff with optional jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds before next attempt
    """
    # Exponential backoff: base_delay * (exponential_base ^ attempt)
    delay = config.base_delay * (config.exponential_base ** attempt)

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_multiplier = random.uniform(*config.jitter_range)
        delay *= jitter_multiplier

    return max(0.0, delay)


def is_retryable(error: BaseException, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> bool:
    """Whether ``error`` is a transient failure worth another attempt."""
    if not isinstance(error, config.retryable_exceptions):
        return False
    return bool(getattr(error, "retryable", False))


async def retry_async_call(
    func: Callable[..., Any],
    *args: Any,
    config: Optional[RetryConfig] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs: Any
) -> Any:
    """
    Retry an async function call with exponential backoff.

    Args:
        func: Async function to call
        *args: Positional arguments for the function
        config: Retry configuration (uses defaults if not provided)
        on_retry: Optional callback called on each retry with (exception, attempt)
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the function call

    Example:
        text = await retry_async_call(
            client.generate_text,
            prompt,
            config=RetryConfig(max_retries=2)
        )
    """
    config = config or DEFAULT_RETRY_CONFIG

    for attempt in range(config.max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_retryable(e, config) or attempt >= config.max_retries:
                if attempt > 0:
                    logger.error(
                        f"All {attempt + 1} attempts failed. Last error: {e}"
                    )
                raise

            delay = calculate_delay(attempt, config)
            # Provider hints take precedence over computed backoff
            if isinstance(e, RateLimitError) and e.retry_after:
                delay = max(delay, min(e.retry_after, config.max_delay))

            logger.warning(
                f"Attempt {attempt + 1}/{config.max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )

            if on_retry:
                on_retry(e, attempt)

            await asyncio.sleep(delay)

    raise RuntimeError("Retry logic failed unexpectedly")


# Common retry configuration for text generation calls
LLM_RETRY_CONFIG = RetryConfig(
    max_retries=3,
    base_delay=1.0,
    max_delay=30.0,
    exponential_base=2.0,
    jitter=True
)
