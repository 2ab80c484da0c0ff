"""HTTP page fetcher with per-host request spacing."""
import logging
import threading
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) '
        'AppleWebKit/537.36 (KHTML, like Gecko) '
        'Chrome/120.0.0.0 Safari/537.36'
    ),
    'Accept': (
        'text/html,application/xhtml+xml,application/xml;q=0.9,'
        'image/avif,image/webp,image/apng,*/*;q=0.8'
    ),
    'Accept-Language': 'en-US,en;q=0.9',
    'DNT': '1',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1'
}


class FetchError(Exception):
    """Raised when a page cannot be retrieved."""

    def __init__(self, url: str, reason: str):
        super().__init__(reason)
        self.url = url
        self.reason = reason


class HostThrottle:
    """Enforce a minimum spacing between requests to the same host."""

    def __init__(
        self,
        min_interval: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.min_interval = min_interval
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._next_allowed: Dict[str, float] = {}

    def wait(self, url: str) -> None:
        """Block until a request to the url's host is allowed."""
        host = urlparse(url).netloc.lower()
        with self._lock:
            now = self._clock()
            allowed_at = max(now, self._next_allowed.get(host, now))
            self._next_allowed[host] = allowed_at + self.min_interval
        delay = allowed_at - now
        if delay > 0:
            logger.debug(f"Throttling {host} for {delay:.2f}s")
            self._sleep(delay)


class PageFetcher:
    """Fetch raw HTML documents for source adapters."""

    def __init__(
        self,
        timeout: int = 15,
        max_retries: int = 1,
        throttle: Optional[HostThrottle] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the page fetcher.

        Args:
            timeout: HTTP request timeout in seconds (default: 15)
            max_retries: Total attempts per fetch; 1 disables retries
            throttle: Optional per-host spacing shared across fetches
            session: Optional requests session to reuse connections
        """
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.throttle = throttle
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str:
        """
        Fetch a page as text.

        Args:
            url: Page to retrieve

        Returns:
            Response body as string

        Raises:
            FetchError: On network error, timeout, or non-success status
        """
        base_delay = 1  # seconds

        for attempt in range(self.max_retries):
            if self.throttle:
                self.throttle.wait(url)
            try:
                logger.info(f"Fetching {url} (attempt {attempt + 1}/{self.max_retries})")
                response = self.session.get(
                    url,
                    headers=REQUEST_HEADERS,
                    timeout=self.timeout
                )
                response.raise_for_status()
                logger.info(f"Fetched {url} ({len(response.text)} chars)")
                return response.text

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(f"Fetching {url} failed: {e}")
                    raise FetchError(url, str(e)) from e

        raise FetchError(url, 'no attempts made')
