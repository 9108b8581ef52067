"""
Exception types raised by the archiving pipeline.

Page-scoped problems are reported as PageOutcome values; the exceptions here
cover setup failures and the few I/O errors that callers must see.
"""


class ArchiveError(Exception):
    """Base class for all archivist errors."""


class ConfigError(ArchiveError):
    """Invalid run configuration (root URL, site name, option values)."""


class PersistenceError(ArchiveError):
    """An article was extracted but could not be written to disk."""

    def __init__(self, message: str, article_id: int = None):
        super().__init__(message)
        self.article_id = article_id


class CrawlError(ArchiveError):
    """The crawl engine stopped on an unrecoverable error."""
