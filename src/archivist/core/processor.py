"""
Page processing: extraction, images, persistence, in that order.

A page either ends with a complete article on disk or leaves no completion
marker behind, in which case it is retried on the next run. Every call
returns a PageOutcome so the crawl engine can count what happened.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional

from .article_id import ArticleIdExtractor
from .errors import PersistenceError
from .extractor import ArticleExtractor, ExtractionSkipped
from .html_retriever import FetchedPage
from .images import ImageDownloader
from .persister import ArticlePersister, PersistStatus
from ..utils.file_manager import ArchiveLayout


class PageStatus(Enum):
    PERSISTED = "persisted"
    SKIPPED = "skipped"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class PageOutcome:
    url: str
    status: PageStatus
    article_id: Optional[int] = None
    reason: str = ""


class ArticleClaims:
    """
    In-process claim on an article id.

    Two URLs that resolve to the same id are processed one after the other;
    the second one then finds the first one's completion marker.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}
        self._waiters: Dict[int, int] = {}

    @contextmanager
    def claim(self, article_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(article_id, threading.Lock())
            self._waiters[article_id] = self._waiters.get(article_id, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[article_id] -= 1
                if self._waiters[article_id] == 0:
                    del self._waiters[article_id]
                    del self._locks[article_id]


class PageProcessor:
    def __init__(self,
                 id_extractor: ArticleIdExtractor,
                 extractor: ArticleExtractor,
                 downloader: ImageDownloader,
                 persister: ArticlePersister,
                 layout: ArchiveLayout,
                 claims: ArticleClaims = None):
        self.id_extractor = id_extractor
        self.extractor = extractor
        self.downloader = downloader
        self.persister = persister
        self.layout = layout
        self.claims = claims or ArticleClaims()
        self.logger = logging.getLogger(__name__)

    def process(self, page: FetchedPage) -> PageOutcome:
        url = page.url
        article_id = self.id_extractor.extract(url)
        if article_id is None:
            self.logger.debug(f"skip {url}")
            return PageOutcome(url, PageStatus.SKIPPED, reason="not an article page")

        with self.claims.claim(article_id):
            return self._process_article(page, article_id)

    def _process_article(self, page: FetchedPage, article_id: int) -> PageOutcome:
        url = page.url

        extracted = self.extractor.extract(page.document(), article_id)
        if isinstance(extracted, ExtractionSkipped):
            self.logger.info(f"Skipping {url}: {extracted.reason}")
            return PageOutcome(url, PageStatus.SKIPPED, article_id, extracted.reason)

        try:
            article_dir = self.layout.ensure_article_dir(article_id)
        except OSError as e:
            self.logger.error(f"Failed to create directory for article {article_id} ({url}): {e}")
            return PageOutcome(url, PageStatus.FAILED, article_id, f"cannot create article directory: {e}")

        batch = self.downloader.process(extracted.content_tag, url, article_dir)
        if batch.aborted:
            self.logger.warning(f"Has network error, skipping further parsing {url}")
            return PageOutcome(url, PageStatus.ABORTED, article_id, "image download failed")

        try:
            status = self.persister.persist(article_id, extracted, batch.images, batch.cover, url)
        except PersistenceError as e:
            self.logger.error(str(e))
            return PageOutcome(url, PageStatus.FAILED, article_id, str(e))

        if status is PersistStatus.ALREADY_EXISTS:
            return PageOutcome(url, PageStatus.SKIPPED, article_id, "already fetched")
        return PageOutcome(url, PageStatus.PERSISTED, article_id)
