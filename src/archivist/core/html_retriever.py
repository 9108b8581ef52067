"""
HTML Page Retrieval Module

This module downloads HTML pages for the crawl engine with retries and
exponential backoff. Every attempt, retries included, first takes a token
from the shared DomainThrottle for the page's host.
"""

from __future__ import annotations

import time
import logging
from dataclasses import dataclass, field
from typing import Optional

import requests
from bs4 import BeautifulSoup

from ..utils.rate_limiter import DomainThrottle
from ..utils.validators import authority_of


@dataclass
class FetchedPage:
    """A successfully retrieved HTML page."""

    url: str          # URL as requested (and as recorded in the archive)
    final_url: str    # URL after redirects, used to resolve relative links
    html: str
    status_code: int = 200
    depth: int = 0
    _document: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    def document(self) -> BeautifulSoup:
        """Parsed DOM, built on first use."""
        if self._document is None:
            self._document = BeautifulSoup(self.html, 'lxml')
        return self._document


class PageRetriever:
    """
    Downloads HTML pages through an injected session.

    - Timeouts, connection errors, 429 and 5xx are retried with backoff
    - 403/404/410 and non-HTML responses are not retried
    """

    PERMANENT_STATUS = (403, 404, 410)

    def __init__(self,
                 session: requests.Session,
                 retry_delay: float = 1.0,
                 max_retries: int = 2,
                 timeout: float = 30,
                 throttle: DomainThrottle = None):
        """
        Args:
            session: HTTP session for page requests
            retry_delay: Base delay in seconds for exponential backoff between retries
            max_retries: Maximum number of retry attempts for failed requests
            timeout: Per-request timeout in seconds
            throttle: Per-host pacing shared with the other crawl workers
        """
        self.session = session
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self.timeout = timeout
        self.throttle = throttle
        self.logger = logging.getLogger(__name__)

    def retrieve_page(self, url: str, depth: int = 0) -> Optional[FetchedPage]:
        """
        Retrieve an HTML page.

        Returns:
            FetchedPage, or None if the page is not HTML or the download fails after all retries
        """
        self.logger.debug(f"Retrieving HTML for: {url}")

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.retry_delay * (2 ** attempt)
                self.logger.info(f"Retry {attempt} for {url} after {delay:.1f}s delay")
                time.sleep(delay)

            if self.throttle is not None:
                self.throttle.acquire(authority_of(url))

            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.exceptions.Timeout:
                self.logger.warning(f"Timeout retrieving {url} (attempt {attempt + 1})")
                continue
            except requests.exceptions.RequestException as e:
                self.logger.warning(f"Request error for {url} (attempt {attempt + 1}): {e}")
                continue

            status_code = response.status_code
            if status_code in self.PERMANENT_STATUS:
                self.logger.info(f"Permanent error {status_code} for {url}, not retrying")
                return None
            if status_code == 429 or 500 <= status_code < 600:
                self.logger.warning(f"HTTP error {status_code} for {url} (attempt {attempt + 1})")
                continue
            if not response.ok:
                self.logger.info(f"HTTP error {status_code} for {url}, skipping")
                return None

            content_type = response.headers.get('content-type', '').lower()
            if 'text/html' not in content_type:
                self.logger.debug(f"Non-HTML content type for {url}: {content_type}")
                return None

            if response.encoding is None or response.encoding.lower() == 'iso-8859-1':
                response.encoding = response.apparent_encoding or 'utf-8'

            return FetchedPage(
                url=url,
                final_url=response.url or url,
                html=response.text,
                status_code=status_code,
                depth=depth,
            )

        self.logger.error(f"Failed to retrieve {url} after {self.max_retries + 1} attempts")
        return None
