"""
Retry handler for eCFR API calls.

Implements bounded exponential backoff and error classification: network
failures and HTTP 429/5xx responses are retried, everything else propagates
immediately.
"""

import time
import random
import logging
from typing import Callable, Any, Optional
from dataclasses import dataclass
import requests

from .config import Config

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    jitter: bool = False

    @classmethod
    def from_config(cls) -> 'RetryConfig':
        """Build a retry configuration from the application settings."""
        return cls(
            max_attempts=Config.MAX_RETRY_ATTEMPTS,
            base_delay=Config.RETRY_BASE_DELAY,
            max_delay=Config.RETRY_MAX_DELAY,
            backoff_factor=Config.RETRY_BACKOFF_FACTOR
        )


def is_retryable_error(error: Exception) -> bool:
    """
    Check whether an error should be retried.

    Args:
        error: Exception to check

    Returns:
        True for timeouts, connection failures and HTTP 429/5xx responses
    """
    if isinstance(error, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
        return True

    if isinstance(error, requests.exceptions.RequestException):
        response = getattr(error, 'response', None)
        if response is not None:
            status_code = response.status_code
            return status_code == 429 or 500 <= status_code < 600

    return False


class RetryHandler:
    """Handles retries with exponential backoff and error classification."""

    def __init__(self, config: Optional[RetryConfig] = None,
                 on_retry: Optional[Callable[[int, Exception], None]] = None):
        """
        Initialize retry handler.

        Args:
            config: Retry configuration, uses defaults if None
            on_retry: Callback invoked with (attempt, error) before each wait
        """
        self.config = config or RetryConfig()
        self.on_retry = on_retry

    def execute_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute function with retry logic.

        Args:
            func: Function to execute
            *args: Positional arguments for function
            **kwargs: Keyword arguments for function

        Returns:
            The function's result

        Raises:
            Exception: A non-retryable error at once, or the last error once
                all attempts are used
        """
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                result = func(*args, **kwargs)
                if attempt > 1:
                    logger.info(f"Function succeeded on attempt {attempt}")
                return result

            except Exception as e:
                if not is_retryable_error(e):
                    logger.debug(f"Permanent error, not retrying: {e}")
                    raise

                if attempt == self.config.max_attempts:
                    logger.warning(f"All {self.config.max_attempts} attempts failed, last error: {e}")
                    raise

                if self.on_retry:
                    self.on_retry(attempt, e)

                delay = self._calculate_delay(attempt, e)
                logger.warning(
                    f"Attempt {attempt} failed: {e}. Retrying in {delay:.2f}s "
                    f"(attempt {attempt + 1}/{self.config.max_attempts})"
                )
                time.sleep(delay)

    def _calculate_delay(self, attempt: int, error: Exception) -> float:
        """
        Calculate delay for next retry attempt.

        Args:
            attempt: Current attempt number (1-based)
            error: Exception that caused the retry

        Returns:
            Delay in seconds
        """
        retry_after = self._retry_after(error)
        if retry_after is not None:
            logger.info(f"Rate limited, waiting {retry_after} seconds as specified by Retry-After header")
            return min(retry_after, self.config.max_delay)

        # Standard exponential backoff
        delay = self.config.base_delay * (self.config.backoff_factor ** (attempt - 1))

        # Cap at maximum delay
        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            delay += random.uniform(0, delay * 0.1)  # Up to 10% jitter

        return delay

    def _retry_after(self, error: Exception) -> Optional[float]:
        """
        Read a numeric Retry-After header from a rate limit response.

        Args:
            error: Exception to inspect

        Returns:
            Seconds to wait, or None if the error carries no usable header
        """
        response = getattr(error, 'response', None)
        if response is None or response.status_code != 429:
            return None

        retry_after = response.headers.get('Retry-After')
        if not retry_after:
            return None
        try:
            return float(retry_after)
        except (TypeError, ValueError):
            return None
