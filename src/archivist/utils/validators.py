"""
URL Validation Utilities

This module provides root URL validation and the small URL helpers shared by
the admission policy, the crawl engine and the image downloader.
"""

import re
from urllib.parse import urlsplit, urlunsplit
from typing import Tuple, Optional
import logging


DEFAULT_PORTS = {'http': 80, 'https': 443}


class URLValidator:
    """
    Validates the root URL a crawl starts from.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        self.domain_pattern = re.compile(
            r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
        )

    def validate_and_normalize(self, url: str) -> Tuple[bool, str, str]:
        """
        Validate and normalize a root URL.

        Args:
            url: The URL to validate

        Returns:
            Tuple of (is_valid, normalized_url, error_message)
        """
        if not url or not isinstance(url, str):
            return False, "", "URL cannot be empty"

        url = url.strip()

        try:
            parsed = urlsplit(url)

            if not parsed.scheme:
                return False, "", "URL must include a scheme (http:// or https://)"
            if parsed.scheme.lower() not in DEFAULT_PORTS:
                return False, "", "URL must use HTTP or HTTPS protocol"

            host = parsed.hostname
            if not host:
                return False, "", "URL must have a valid domain"

            if not self.domain_pattern.match(host):
                return False, "", "Invalid domain format"

            # Accessing .port validates it
            parsed.port

            return True, self._normalize_url(parsed), ""

        except ValueError as e:
            return False, "", f"URL validation error: {str(e)}"

    def _normalize_url(self, parsed) -> str:
        """Lowercase scheme and host, default the path to '/' and drop the fragment."""
        scheme = parsed.scheme.lower()
        netloc = parsed.netloc.lower()
        path = parsed.path or '/'
        return urlunsplit((scheme, netloc, path, parsed.query, ''))


_validator_instance: Optional[URLValidator] = None


def get_validator() -> URLValidator:
    """
    Get the global URL validator instance.

    Returns:
        URLValidator instance
    """
    global _validator_instance
    if _validator_instance is None:
        _validator_instance = URLValidator()
    return _validator_instance


def validate_url(url: str) -> Tuple[bool, str, str]:
    """
    Validate and normalize a URL.

    Returns:
        Tuple of (is_valid, normalized_url, error_message)
    """
    return get_validator().validate_and_normalize(url)


def authority_of(url: str) -> str:
    """
    Return host[:port] for a URL, lowercased, omitting the scheme's default port.

    Unparseable URLs yield an empty string.
    """
    try:
        parsed = urlsplit(url)
        host = (parsed.hostname or '').lower()
        port = parsed.port
    except ValueError:
        return ''
    if port is None or port == DEFAULT_PORTS.get(parsed.scheme.lower()):
        return host
    return f"{host}:{port}"


def path_and_query(url: str) -> str:
    """Path plus '?query' when a query is present, e.g. '/wp/12.html?lang=en'."""
    parsed = urlsplit(url)
    path = parsed.path or '/'
    if parsed.query:
        return f"{path}?{parsed.query}"
    return path


def strip_fragment(url: str) -> str:
    """Drop the '#fragment' part of a URL."""
    parsed = urlsplit(url)
    return urlunsplit((parsed.scheme, parsed.netloc, parsed.path, parsed.query, ''))


def is_http(url: str) -> bool:
    try:
        return urlsplit(url).scheme.lower() in DEFAULT_PORTS
    except ValueError:
        return False
