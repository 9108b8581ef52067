"""
Article Field Extraction Module

Turns a fetched page's DOM into the fields of an article record. Extraction
either succeeds with every field the site adapter requires, or stops at the
first missing element with a reason; nothing is written in either case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .site import MissingFieldPolicy, SiteAdapter
from ..utils.file_manager import ArchiveLayout


@dataclass
class ExtractedArticle:
    title: str
    content: str
    category: str
    published: str
    tags: List[str] = field(default_factory=list)
    content_tag: Optional[Tag] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class ExtractionSkipped:
    reason: str


ExtractionResult = Union[ExtractedArticle, ExtractionSkipped]


class ArticleExtractor:
    """
    Locates the article container, title, content block, publish date,
    category and tags using the adapter's selectors.

    Title and content are looked up inside the container; date, category and
    tags anywhere in the document, where the site's theme renders them.
    """

    def __init__(self, site: SiteAdapter, layout: ArchiveLayout):
        self.site = site
        self.layout = layout
        self.logger = logging.getLogger(__name__)

    def extract(self, document: BeautifulSoup, article_id: int) -> ExtractionResult:
        """
        Extract the article fields from a parsed page.

        Args:
            document: Parsed page
            article_id: Id derived from the page URL, used for the completion re-check

        Returns:
            ExtractedArticle on success, ExtractionSkipped with a reason otherwise
        """
        site = self.site

        article = document.select_one(site.article_selector)
        if article is None:
            return ExtractionSkipped("no article container")

        title_tag = article.select_one(site.title_selector)
        if title_tag is None:
            return ExtractionSkipped("no title")

        content_tag = article.select_one(site.content_selector)
        if content_tag is None:
            return ExtractionSkipped("no content")

        # The admission policy normally filters these out before the fetch
        if self.layout.is_complete(article_id):
            return ExtractionSkipped("already fetched")

        date_tag = document.select_one(site.date_selector)
        if date_tag is None and site.missing_field_policy is MissingFieldPolicy.SKIP:
            return ExtractionSkipped("no publish date")

        category_tag = document.select_one(site.category_selector)
        if category_tag is None and site.missing_field_policy is MissingFieldPolicy.SKIP:
            return ExtractionSkipped("no category")

        published = ""
        if date_tag is not None:
            published = date_tag.get(site.date_attribute) or ""
        else:
            self.logger.debug(f"No publish date for article {article_id}, saving it empty")

        category = ""
        if category_tag is not None:
            category = category_tag.get_text()
        else:
            self.logger.debug(f"No category for article {article_id}, saving it empty")

        tags = [tag.get_text() for tag in document.select(site.tag_selector)]

        return ExtractedArticle(
            title=title_tag.get_text(),
            content=content_tag.decode_contents(),
            category=category,
            published=published,
            tags=tags,
            content_tag=content_tag,
        )
