"""
eCFR API client for retrieving the agency catalog, title catalog, title
structures and full title content.

This module handles communication with the eCFR API, including the fixed
inter-request delay, retry logic, and error handling.
"""

import time
import logging
import threading
from typing import Any, Dict, Optional, Union

import requests

from .config import Config
from .error_handler import CatalogParseFailure
from .retry_handler import RetryHandler


logger = logging.getLogger(__name__)


AGENCIES_ENDPOINT = '/api/admin/v1/agencies.json'
TITLES_ENDPOINT = '/api/versioner/v1/titles.json'
STRUCTURE_ENDPOINT = '/api/versioner/v1/structure/{date}/title-{title}.json'
CONTENT_ENDPOINT = '/api/versioner/v1/full/{date}/title-{title}.xml'


class RequestThrottle:
    """Applies a fixed delay after every external call.

    One instance is shared by every client in the process, so callers on
    different threads queue behind the same lock.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._lock = threading.Lock()
        self.calls = 0

    def pause(self) -> None:
        """Wait the fixed delay; called after each call, success or failure."""
        with self._lock:
            self.calls += 1
            if self.delay <= 0:
                return
            logger.debug(f"Rate limiting: sleeping for {self.delay:.2f}s")
            time.sleep(self.delay)


_shared_throttle: Optional[RequestThrottle] = None
_shared_throttle_lock = threading.Lock()


def get_shared_throttle(delay: Optional[float] = None) -> RequestThrottle:
    """
    Return the process-wide throttle, creating it on first use.

    Args:
        delay: Delay to apply; updates the shared throttle when given
    """
    global _shared_throttle
    with _shared_throttle_lock:
        if _shared_throttle is None:
            _shared_throttle = RequestThrottle(Config.REQUEST_DELAY if delay is None else delay)
        elif delay is not None:
            _shared_throttle.delay = delay
        return _shared_throttle


class ECFRClient:
    """Client for interacting with the eCFR API."""

    def __init__(self, base_url: str = None, request_delay: float = None,
                 timeout: int = None, retry_handler: Optional[RetryHandler] = None,
                 throttle: Optional[RequestThrottle] = None):
        """
        Initialize the eCFR API client.

        Args:
            base_url: Base URL for the eCFR API
            request_delay: Seconds to wait after each call (default from config)
            timeout: Request timeout in seconds (default from config)
            retry_handler: Retry policy for transient failures
            throttle: Throttle to use instead of the process-wide one
        """
        self.base_url = (base_url or Config.ECFR_API_BASE_URL).rstrip('/')
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.retry_handler = retry_handler or RetryHandler()
        self.throttle = throttle or get_shared_throttle(request_delay)
        self.session = requests.Session()

        # Set up session headers
        self.session.headers.update({
            'User-Agent': 'eCFR-Analyzer/1.0.0 (Educational/Research Tool)',
            'Accept-Encoding': 'gzip, deflate'
        })

        logger.info(f"Initialized eCFR client with base URL: {self.base_url}")
        logger.info(f"Request delay: {self.throttle.delay}s")

    def __enter__(self) -> 'ECFRClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get(self, endpoint: str, accept: str) -> requests.Response:
        """
        Make a GET request with retry logic and the fixed post-call delay.

        Args:
            endpoint: API endpoint (relative to base URL)
            accept: Value for the Accept header

        Returns:
            The successful response

        Raises:
            TerminalClientError: On a 4xx response
            TransientNetworkError: When retries are exhausted
        """
        url = f"{self.base_url}{endpoint}"

        def _fetch() -> requests.Response:
            logger.debug(f"Making request to {url}")
            response = self.session.get(url, headers={'Accept': accept}, timeout=self.timeout)
            response.raise_for_status()
            return response

        try:
            return self.retry_handler.execute_with_retry(_fetch)
        finally:
            self.throttle.pause()

    def _get_json(self, endpoint: str) -> Dict[str, Any]:
        response = self._get(endpoint, 'application/json')
        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response from {endpoint}: {response.text[:200]}")
            raise CatalogParseFailure(f"Invalid JSON response from {endpoint}: {e}", cause=e)

        if not isinstance(payload, dict):
            raise CatalogParseFailure(
                f"Expected JSON object from {endpoint}, got {type(payload).__name__}"
            )
        return payload

    def get_agencies_payload(self) -> Dict[str, Any]:
        """Fetch the raw agencies payload."""
        logger.info("Fetching agencies from eCFR API")
        return self._get_json(AGENCIES_ENDPOINT)

    def get_titles_payload(self) -> Dict[str, Any]:
        """Fetch the raw titles payload."""
        logger.info("Fetching title catalog from eCFR API")
        return self._get_json(TITLES_ENDPOINT)

    def get_structure(self, date: str, title_number: Union[int, str]) -> str:
        """
        Fetch the structure (table of contents) JSON of a title.

        Args:
            date: Canonical YYYY-MM-DD date
            title_number: CFR title number

        Returns:
            Raw JSON text of the structure
        """
        endpoint = STRUCTURE_ENDPOINT.format(date=date, title=title_number)
        logger.debug(f"Fetching structure for title {title_number} at {date}")
        return self._get(endpoint, 'application/json').text

    def get_full_content(self, date: str, title_number: Union[int, str]) -> str:
        """
        Fetch the full XML content of a title.

        Args:
            date: Canonical YYYY-MM-DD date
            title_number: CFR title number

        Returns:
            Raw XML text of the title
        """
        endpoint = CONTENT_ENDPOINT.format(date=date, title=title_number)
        logger.debug(f"Fetching full content for title {title_number} at {date}")
        return self._get(endpoint, 'application/xml').text

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()
            logger.debug("API client session closed")
