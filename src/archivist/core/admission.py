"""
Crawl admission: decides whether a discovered URL is worth fetching.

Rules are evaluated in a fixed order and the first match wins:

1. the URL's authority differs from the root authority
2. site deny rules on the path-and-query (tag, lang, bbs, ad, author, about)
3. the URL names an article that is already archived

Anything else is allowed, including URLs that carry no article id; those are
fetched for their links and skipped later by the page processor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .article_id import ArticleIdExtractor
from .site import SiteAdapter
from ..utils.file_manager import ArchiveLayout
from ..utils.validators import authority_of, path_and_query


@dataclass(frozen=True)
class CrawlDecision:
    allow: bool
    reason: str = ""

    @classmethod
    def allowed(cls) -> "CrawlDecision":
        return cls(True)

    @classmethod
    def denied(cls, reason: str) -> "CrawlDecision":
        return cls(False, reason)


class AdmissionPolicy:
    """
    Stateless apart from its configuration; the only shared state it reads is
    the archive layout on disk, so it is safe to call from any worker.
    """

    def __init__(self,
                 root_url: str,
                 site: SiteAdapter,
                 layout: ArchiveLayout,
                 id_extractor: ArticleIdExtractor = None):
        self.root_authority = authority_of(root_url)
        self.site = site
        self.layout = layout
        self.id_extractor = id_extractor or ArticleIdExtractor(site.article_id_pattern)
        self.logger = logging.getLogger(__name__)

    def admit(self, url: str) -> CrawlDecision:
        if authority_of(url) != self.root_authority:
            return CrawlDecision.denied("invalid authority")

        target = path_and_query(url)
        for rule in self.site.deny_rules:
            if rule.matches(target):
                return CrawlDecision.denied(rule.reason)

        article_id = self.id_extractor.extract(url)
        if article_id is not None and self.layout.is_complete(article_id):
            return CrawlDecision.denied("already crawled")

        return CrawlDecision.allowed()
