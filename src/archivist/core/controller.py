"""
Archivist Orchestrator: wires the pipeline together and runs one crawl.

The controller owns everything with a lifetime (HTTP sessions, the error
tracker, the crawl engine); the pipeline components only borrow them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Optional

from .admission import AdmissionPolicy
from .article_id import ArticleIdExtractor
from .crawler import CrawlResult, PoliteCrawler
from .errors import ConfigError, CrawlError
from .extractor import ArticleExtractor
from .html_retriever import PageRetriever
from .images import ImageDownloader
from .logger import ErrorTracker, create_error_tracker
from .persister import ArticlePersister
from .processor import PageProcessor
from .site import DEFAULT_SITE, get_site
from ..utils.file_manager import ArchiveLayout
from ..utils.http import DEFAULT_USER_AGENT, build_image_session, build_page_session
from ..utils.rate_limiter import DomainThrottle
from ..utils.validators import validate_url


@dataclass
class RunConfig:
    root_url: str
    output_dir: str = "output"
    proxy: Optional[str] = None
    site: str = DEFAULT_SITE
    concurrency: int = 4
    crawl_delay: float = 1.0   # min seconds between page requests to one host
    image_delay: float = 1.0   # pause before each image request
    max_pages: int = 0         # 0 = no cap
    max_depth: int = 100
    timeout: float = 30
    max_retries: int = 2
    user_agent: str = DEFAULT_USER_AGENT
    log_dir: str = "logs"

    def validate(self) -> str:
        """
        Check option values and return the normalized root URL.

        Raises:
            ConfigError: on the first invalid value
        """
        ok, normalized, error = validate_url(self.root_url)
        if not ok:
            raise ConfigError(f"Invalid root URL '{self.root_url}': {error}")
        if not self.output_dir:
            raise ConfigError("Output path cannot be empty")
        get_site(self.site)
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")
        for name in ('crawl_delay', 'image_delay', 'timeout', 'max_pages', 'max_depth', 'max_retries'):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} cannot be negative")
        return normalized


@dataclass
class CrawlSummary:
    root_url: str
    elapsed_seconds: float
    pages_crawled: int
    outcomes: Dict[str, int] = field(default_factory=dict)
    articles_archived: int = 0
    error_types: Dict[str, int] = field(default_factory=dict)
    error_report: Optional[str] = None

    @property
    def elapsed(self) -> timedelta:
        return timedelta(seconds=self.elapsed_seconds)


class ArchiveController:
    def __init__(self, config: RunConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.root_url = config.validate()
        self.site = get_site(config.site)
        self.layout = ArchiveLayout(config.output_dir)
        self.error_tracker: ErrorTracker = create_error_tracker('controller')
        self._crawler: Optional[PoliteCrawler] = None

    def stop(self):
        if self._crawler is not None:
            self._crawler.stop()

    def run(self) -> CrawlSummary:
        """
        Crawl the site from the root URL and archive every article found.

        Raises:
            OSError: if the output directory cannot be created
            CrawlError: if the crawl engine stopped on an unexpected error
        """
        self.layout.create_root()
        self.logger.info(f"Crawling {self.root_url} into {self.layout.base_output_dir} (site: {self.site.name})")

        page_session = build_page_session(self.config.user_agent)
        image_session = build_image_session(self.config.proxy, self.config.user_agent)
        try:
            self._crawler = self._build_crawler(page_session, image_session)
            result = self._crawler.crawl(self.root_url)
        finally:
            page_session.close()
            image_session.close()

        report = self._save_error_report()

        if result.error_occurred:
            raise CrawlError(f"Crawl of {self.root_url} failed: {result.error}") from result.error

        summary = self._summarize(result, report)
        self.logger.info(
            f"Crawl complete: {summary.pages_crawled} pages, {summary.articles_archived} articles archived, "
            f"outcomes {summary.outcomes}"
        )
        return summary

    def _build_crawler(self, page_session, image_session) -> PoliteCrawler:
        config = self.config
        id_extractor = ArticleIdExtractor(self.site.article_id_pattern)
        admission = AdmissionPolicy(self.root_url, self.site, self.layout, id_extractor)
        processor = PageProcessor(
            id_extractor=id_extractor,
            extractor=ArticleExtractor(self.site, self.layout),
            downloader=ImageDownloader(
                image_session,
                request_delay=config.image_delay,
                proxy_configured=bool(config.proxy),
                timeout=config.timeout,
            ),
            persister=ArticlePersister(self.layout),
            layout=self.layout,
        )
        retriever = PageRetriever(
            page_session,
            retry_delay=config.crawl_delay,
            max_retries=config.max_retries,
            timeout=config.timeout,
            throttle=DomainThrottle(min_delay=config.crawl_delay),
        )
        return PoliteCrawler(
            retriever=retriever,
            should_crawl=admission.admit,
            on_page=processor.process,
            concurrency=config.concurrency,
            max_pages=config.max_pages,
            max_depth=config.max_depth,
            error_tracker=self.error_tracker,
        )

    def _save_error_report(self) -> Optional[str]:
        summary = self.error_tracker.get_error_summary()
        if not summary['total_errors'] and not summary['total_warnings']:
            return None

        report_path = Path(self.config.log_dir) / f"error_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
        try:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            self.error_tracker.save_error_report(str(report_path))
        except OSError as e:
            self.logger.error(f"Could not write error report {report_path}: {e}")
            return None
        return str(report_path)

    def _summarize(self, result: CrawlResult, report: Optional[str]) -> CrawlSummary:
        return CrawlSummary(
            root_url=self.root_url,
            elapsed_seconds=result.elapsed_seconds,
            pages_crawled=result.pages_crawled,
            outcomes={status.value: count for status, count in result.outcomes.items()},
            articles_archived=sum(1 for _ in self.layout.iter_completed()),
            error_types=self.error_tracker.get_error_summary()['error_types'],
            error_report=report,
        )


_CONFIG_FIELDS = {f.name for f in fields(RunConfig)} - {'root_url', 'output_dir', 'proxy'}


def crawl(root_url: str, output_path: str, proxy: Optional[str] = None, **options) -> CrawlSummary:
    """
    Archive every article reachable from `root_url` into `output_path`.

    Keyword options are RunConfig fields (site, concurrency, crawl_delay, ...).

    Raises:
        ConfigError: invalid root URL or option
        OSError: the output directory cannot be created
        CrawlError: the crawl engine stopped on an unexpected error
    """
    unknown = sorted(set(options) - _CONFIG_FIELDS)
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")

    config = RunConfig(root_url=root_url, output_dir=output_path, proxy=proxy, **options)
    return ArchiveController(config).run()
