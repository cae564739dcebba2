"""
eCFR API client for retrieving agencies, the titles summary and title content.

This module handles communication with the eCFR admin and versioner services,
including client-side rate limiting, retry with backoff and error handling.
Responses are returned as parsed JSON (or raw XML text); turning them into
typed models is the loader's job.
"""

import time
import logging
import requests
from typing import Any, Dict, List, Optional

from .config import Config
from .error_handler import ECFRAPIError
from .retry_handler import RetryConfig, RetryHandler


logger = logging.getLogger(__name__)


API_PATHS = {
    # Admin service
    'agencies': '/api/admin/v1/agencies.json',
    # Versioner service
    'titles_summary': '/api/versioner/v1/titles.json',
    'title_structure': '/api/versioner/v1/structure/{date}/title-{title}.json',
    'title_full': '/api/versioner/v1/full/{date}/title-{title}.xml',
    'title_versions': '/api/versioner/v1/versions/title-{title}.json',
}


class ECFRClient:
    """Client for interacting with the eCFR API."""

    def __init__(self, base_url: Optional[str] = None, rate_limit: Optional[float] = None,
                 timeout: Optional[int] = None, retry_handler: Optional[RetryHandler] = None):
        """
        Initialize the eCFR API client.

        Args:
            base_url: Base URL of the eCFR site (default from config)
            rate_limit: Maximum requests per second (default from config)
            timeout: Request timeout in seconds (default from config)
            retry_handler: Retry policy for failed requests (default from config)
        """
        self.base_url = (base_url or Config.ECFR_BASE_URL).rstrip('/')
        self.rate_limit = rate_limit or Config.ECFR_RATE_LIMIT
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.retry_handler = retry_handler or RetryHandler(RetryConfig.from_config())
        self.session = requests.Session()
        self.last_request_time = 0.0

        # Set up session headers
        self.session.headers.update({
            'User-Agent': 'CFR-Structure-Analyzer/1.0.0 (Educational/Research Tool)',
            'Accept': 'application/json',
            'Accept-Encoding': 'gzip, deflate'
        })

        logger.info(f"Initialized eCFR client with base URL: {self.base_url}")
        logger.info(f"Rate limit: {self.rate_limit} requests/second")

    def __enter__(self) -> 'ECFRClient':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting between API requests."""
        if self.rate_limit <= 0:
            return

        min_interval = 1.0 / self.rate_limit
        elapsed = time.time() - self.last_request_time

        if elapsed < min_interval:
            sleep_time = min_interval - elapsed
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
            time.sleep(sleep_time)

        self.last_request_time = time.time()

    def _make_request(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        Make a GET request to the eCFR API with retry logic.

        Args:
            path: API path (relative to base URL)
            params: Query parameters

        Returns:
            Successful HTTP response

        Raises:
            ECFRAPIError: If the request fails permanently or after all retries
        """
        url = f"{self.base_url}{path}"

        def _send() -> requests.Response:
            self._enforce_rate_limit()
            logger.debug(f"Making request to {url}")
            response = self.session.get(url, params=params or {}, timeout=self.timeout)
            response.raise_for_status()
            return response

        try:
            return self.retry_handler.execute_with_retry(_send)
        except requests.exceptions.RequestException as e:
            response = getattr(e, 'response', None)
            status_code = response.status_code if response is not None else None
            logger.error(f"Request to {url} failed: {e}")
            raise ECFRAPIError(f"Request to {url} failed: {e}", status_code=status_code, cause=e)

    def _get_json(self, path: str) -> Any:
        """
        Fetch a JSON document.

        Raises:
            ECFRAPIError: If the request fails or the body is not valid JSON
        """
        response = self._make_request(path)
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response from {response.url}: {response.text[:200]}")
            raise ECFRAPIError(f"Invalid JSON response: {e}", status_code=response.status_code, cause=e)

    def fetch_agencies(self) -> List[Dict[str, Any]]:
        """
        Fetch all agencies with their children and CFR references.

        Returns:
            List of agency dictionaries
        """
        logger.info("Fetching agencies data")
        data = self._get_json(API_PATHS['agencies'])
        agencies = data.get('agencies', []) if isinstance(data, dict) else data
        logger.info(f"Retrieved {len(agencies)} agencies")
        return agencies

    def fetch_titles_summary(self) -> List[Dict[str, Any]]:
        """
        Fetch summary information for all CFR titles.

        Returns:
            List of title dictionaries
        """
        logger.info("Fetching titles summary")
        data = self._get_json(API_PATHS['titles_summary'])
        titles = data.get('titles', []) if isinstance(data, dict) else data
        logger.info(f"Retrieved {len(titles)} titles")
        return titles

    def fetch_title_structure(self, title: int, date: str) -> Dict[str, Any]:
        """
        Fetch the hierarchy of a title as of a date.

        Args:
            title: Title number (e.g., 17)
            date: Date in YYYY-MM-DD format

        Returns:
            Title structure dictionary
        """
        logger.info(f"Fetching structure for Title {title} ({date})")
        return self._get_json(API_PATHS['title_structure'].format(date=date, title=title))

    def fetch_title_full(self, title: int, date: str) -> str:
        """
        Fetch the full XML content of a title as of a date.

        Args:
            title: Title number (e.g., 17)
            date: Date in YYYY-MM-DD format

        Returns:
            XML content as a string
        """
        logger.info(f"Fetching full XML for Title {title} ({date})")
        response = self._make_request(API_PATHS['title_full'].format(date=date, title=title))
        return response.text

    def fetch_title_versions(self, title: int) -> Dict[str, Any]:
        """
        Fetch the version history of all sections and appendices in a title.

        Args:
            title: Title number (e.g., 17)

        Returns:
            Version history dictionary
        """
        logger.info(f"Fetching version history for Title {title}")
        return self._get_json(API_PATHS['title_versions'].format(title=title))

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()
            logger.debug("API client session closed")
