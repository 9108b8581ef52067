"""
Polite crawl engine.

Walks a site from a seed URL: every discovered link is offered once to an
admission callable, admitted links are fetched by a pool of workers
through a retriever that keeps a minimum delay between requests to the
same host, and every fetched page is handed to a page callback whose
returned outcome is counted. Page-level problems never stop the crawl; only
a failure of the engine itself does, and it is reported in CrawlResult.error.
"""

from __future__ import annotations

import time
import logging
import threading
from collections import Counter, deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Set, Tuple
from urllib.parse import urljoin

from .admission import CrawlDecision
from .html_retriever import FetchedPage, PageRetriever
from .logger import ErrorTracker, create_error_tracker
from .processor import PageOutcome, PageStatus
from ..utils.validators import is_http, strip_fragment


@dataclass
class CrawlResult:
    root_url: str
    elapsed_seconds: float = 0.0
    pages_crawled: int = 0
    outcomes: Counter = field(default_factory=Counter)
    error: Optional[BaseException] = None

    @property
    def error_occurred(self) -> bool:
        return self.error is not None


class PoliteCrawler:
    def __init__(self,
                 retriever: PageRetriever,
                 should_crawl: Callable[[str], CrawlDecision],
                 on_page: Callable[[FetchedPage], PageOutcome],
                 concurrency: int = 4,
                 max_pages: int = 0,
                 max_depth: int = 100,
                 error_tracker: ErrorTracker = None):
        """
        Args:
            retriever: Fetches pages; paces requests per host
            should_crawl: Admission decision for a discovered URL
            on_page: Called once per fetched page; its outcome is counted
            concurrency: Number of worker threads
            max_pages: Stop scheduling after this many pages (0 = no cap)
            max_depth: Links found deeper than this are not followed
            error_tracker: Receives page callback failures
        """
        self.retriever = retriever
        self.should_crawl = should_crawl
        self.on_page = on_page
        self.concurrency = max(1, concurrency)
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.error_tracker = error_tracker or create_error_tracker('crawler')
        self.logger = logging.getLogger(__name__)

        self._stop_event = threading.Event()
        self._frontier: Deque[Tuple[str, int]] = deque()
        self._seen: Set[str] = set()

    def stop(self):
        """Stop scheduling new pages; pages already in flight finish."""
        self._stop_event.set()

    def crawl(self, root_url: str) -> CrawlResult:
        result = CrawlResult(root_url=root_url)
        start = time.perf_counter()
        self._frontier.clear()
        self._seen.clear()

        try:
            self._consider(root_url, 0)
            self._run(result)
        except Exception as e:  # engine failure, not a page failure
            self.logger.exception(f"Crawl of {root_url} stopped on an unexpected error")
            result.error = e

        result.elapsed_seconds = time.perf_counter() - start
        self.logger.info(
            f"Crawl finished in {result.elapsed_seconds:.2f}s: {result.pages_crawled} pages, "
            + ", ".join(f"{status.value}={count}" for status, count in sorted(result.outcomes.items(), key=lambda i: i[0].value))
        )
        return result

    def _run(self, result: CrawlResult) -> None:
        scheduled = 0
        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="crawl") as ex:
            pending: Dict[Future, Tuple[str, int]] = {}
            while True:
                while (self._frontier
                       and len(pending) < self.concurrency
                       and not self._stop_event.is_set()
                       and not (self.max_pages and scheduled >= self.max_pages)):
                    url, depth = self._frontier.popleft()
                    pending[ex.submit(self._crawl_page, url, depth)] = (url, depth)
                    scheduled += 1

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    url, depth = pending.pop(future)
                    fetched, outcome, links = future.result()
                    if fetched:
                        result.pages_crawled += 1
                    if outcome is not None:
                        result.outcomes[outcome.status] += 1
                    for link in links:
                        self._consider(link, depth + 1)

    def _consider(self, url: str, depth: int) -> None:
        url = strip_fragment(url)
        if url in self._seen:
            return
        self._seen.add(url)

        if depth > self.max_depth:
            return

        decision = self.should_crawl(url)
        if not decision.allow:
            self.logger.debug(f"Page crawl disallowed: {url}, reason: {decision.reason}")
            return
        self._frontier.append((url, depth))

    def _crawl_page(self, url: str, depth: int) -> Tuple[bool, Optional[PageOutcome], List[str]]:
        self.logger.info(f"About to crawl link {url}")

        page = self.retriever.retrieve_page(url, depth)
        if page is None:
            return False, None, []
        self.logger.info(f"Page crawled: {url}")

        try:
            outcome = self.on_page(page)
        except Exception as e:  # a page must never take the crawl down
            self.error_tracker.log_error(e, context="page processing", url=url)
            outcome = PageOutcome(url, PageStatus.FAILED, reason=f"{type(e).__name__}: {e}")
        else:
            if outcome.status is PageStatus.FAILED:
                self.error_tracker.log_warning(outcome.reason, context="page failed", url=url)
            elif outcome.status is PageStatus.ABORTED:
                self.error_tracker.log_warning(outcome.reason, context="page aborted", url=url)

        links = self.extract_links(page) if depth < self.max_depth else []
        return True, outcome, links

    def extract_links(self, page: FetchedPage) -> List[str]:
        links = []
        for anchor in page.document().find_all('a', href=True):
            href = anchor['href'].strip()
            if not href:
                continue
            try:
                link = urljoin(page.final_url, href)
            except ValueError:
                continue
            if is_http(link):
                links.append(link)
        return links
