"""
Retry handler for eCFR API calls.

Implements capped exponential backoff and error classification: server-side
(5xx) and transport failures are retried, client errors (4xx) are not.
"""

import time
import random
import logging
from typing import Callable, Any, Optional
from dataclasses import dataclass
import requests

from .config import Config
from .error_handler import TerminalClientError, TransientNetworkError

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    jitter: bool = False

    @classmethod
    def from_config(cls) -> 'RetryConfig':
        """Build a retry configuration from the application settings."""
        return cls(
            max_attempts=Config.MAX_RETRY_ATTEMPTS,
            base_delay=Config.RETRY_BASE_DELAY,
            max_delay=Config.RETRY_MAX_DELAY,
            backoff_factor=Config.RETRY_BACKOFF_FACTOR,
        )


class RetryHandler:
    """Handles retries with capped exponential backoff and error classification."""

    def __init__(self, config: Optional[RetryConfig] = None):
        """
        Initialize retry handler.

        Args:
            config: Retry configuration, uses application settings if None
        """
        self.config = config or RetryConfig.from_config()

    def execute_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute function with retry logic.

        Args:
            func: Function to execute; HTTP failures must surface as
                requests exceptions (e.g. via raise_for_status)
            *args: Positional arguments for function
            **kwargs: Keyword arguments for function

        Returns:
            The function result

        Raises:
            TerminalClientError: On a client error, without retrying
            TransientNetworkError: When every attempt failed transiently
        """
        last_error: Optional[requests.exceptions.RequestException] = None

        for attempt in range(1, self.config.max_attempts + 1):
            try:
                result = func(*args, **kwargs)
                if attempt > 1:
                    logger.info(f"Request succeeded on attempt {attempt}")
                return result

            except requests.exceptions.RequestException as e:
                last_error = e
                error_type = self._classify_error(e)
                status_code = self._status_code(e)

                logger.debug(f"Attempt {attempt} failed with {error_type} error: {e}")

                # Don't retry permanent errors
                if error_type == 'permanent':
                    raise TerminalClientError(
                        f"Client error {status_code}: {e}", cause=e, status_code=status_code
                    )

                # Don't sleep after the last attempt
                if attempt == self.config.max_attempts:
                    break

                delay = self._calculate_delay(attempt)
                logger.debug(f"Retrying in {delay:.2f} seconds "
                             f"(attempt {attempt + 1}/{self.config.max_attempts})")
                time.sleep(delay)

        logger.warning(f"All {self.config.max_attempts} attempts failed, last error: {last_error}")
        raise TransientNetworkError(
            f"Request failed after {self.config.max_attempts} attempts: {last_error}",
            cause=last_error,
            status_code=self._status_code(last_error),
        )

    def _classify_error(self, error: requests.exceptions.RequestException) -> str:
        """
        Classify error as temporary or permanent.

        Args:
            error: Exception to classify

        Returns:
            'temporary' or 'permanent'
        """
        if isinstance(error, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
            return 'temporary'

        status_code = self._status_code(error)
        if status_code is None:
            # Transport-level errors without a response
            return 'temporary'

        if status_code >= 500:
            return 'temporary'

        return 'permanent'

    def _calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for next retry attempt.

        Args:
            attempt: Current attempt number (1-based)

        Returns:
            Delay in seconds
        """
        delay = self.config.base_delay * (self.config.backoff_factor ** (attempt - 1))
        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            delay += random.uniform(0, delay * 0.1)

        return delay

    @staticmethod
    def _status_code(error: Optional[Exception]) -> Optional[int]:
        response = getattr(error, 'response', None)
        if response is None:
            return None
        return getattr(response, 'status_code', None)
