#!/usr/bin/env python3
"""
Tests for article field extraction.
"""

import pytest
from bs4 import BeautifulSoup

from archivist.core.extractor import ArticleExtractor, ExtractedArticle, ExtractionSkipped
from archivist.core.site import LIULI, LIULI_HTML
from archivist.utils.file_manager import ArchiveLayout


def parse(html):
    return BeautifulSoup(html, 'lxml')


@pytest.fixture
def layout(tmp_path):
    return ArchiveLayout(tmp_path)


def test_extracts_all_fields(layout, article_html):
    html = article_html(
        title="First Post",
        content='<p>Hello <b>world</b></p><img src="/a.png">',
        published="2020-01-02T03:04:05+00:00",
        category="Anime",
        tags=("one", "two", "three"),
    )
    result = ArticleExtractor(LIULI, layout).extract(parse(html), 1)

    assert isinstance(result, ExtractedArticle)
    assert result.title == "First Post"
    assert result.content == '<p>Hello <b>world</b></p><img src="/a.png"/>'
    assert result.published == "2020-01-02T03:04:05+00:00"
    assert result.category == "Anime"
    assert result.tags == ["one", "two", "three"]
    assert result.content_tag is not None
    assert len(result.content_tag.find_all('img')) == 1


def test_tags_are_optional(layout, article_html):
    result = ArticleExtractor(LIULI, layout).extract(parse(article_html(tags=())), 1)
    assert isinstance(result, ExtractedArticle)
    assert result.tags == []


def test_non_ascii_text_preserved(layout, article_html):
    html = article_html(title="琉璃神社", category="动画", tags=("日常",))
    result = ArticleExtractor(LIULI, layout).extract(parse(html), 1)
    assert result.title == "琉璃神社"
    assert result.category == "动画"
    assert result.tags == ["日常"]


@pytest.mark.parametrize("html,reason", [
    ('<html><body><div id="content"><p>no article</p></div></body></html>', "no article container"),
    ('<html><body><div id="content"><article><div class="entry-content">x</div></article></div></body></html>',
     "no title"),
    ('<html><body><div id="content"><article><h1 class="entry-title">T</h1></article></div></body></html>',
     "no content"),
])
def test_missing_structure_skips(layout, html, reason):
    assert ArticleExtractor(LIULI, layout).extract(parse(html), 1) == ExtractionSkipped(reason)


def test_article_outside_content_container_skipped(layout, article_html):
    html = article_html(container=False)
    assert ArticleExtractor(LIULI, layout).extract(parse(html), 1) == ExtractionSkipped("no article container")


def test_missing_date_and_category_skip_under_liuli(layout, article_html):
    extractor = ArticleExtractor(LIULI, layout)
    assert extractor.extract(parse(article_html(published=None)), 1) == ExtractionSkipped("no publish date")
    assert extractor.extract(parse(article_html(category=None)), 1) == ExtractionSkipped("no category")


def test_missing_date_and_category_saved_empty_under_liuli_html(layout, article_html):
    extractor = ArticleExtractor(LIULI_HTML, layout)
    result = extractor.extract(parse(article_html(published=None, category=None)), 1)
    assert isinstance(result, ExtractedArticle)
    assert result.published == ""
    assert result.category == ""


def test_date_element_without_datetime_attribute(layout, article_html):
    html = article_html().replace(' datetime="2021-05-06T07:08:09+08:00"', '')
    result = ArticleExtractor(LIULI, layout).extract(parse(html), 1)
    assert isinstance(result, ExtractedArticle)
    assert result.published == ""


def test_already_fetched_after_structure_checks(layout, article_html):
    layout.ensure_article_dir(9)
    layout.index_path(9).write_text("{}", encoding="utf-8")
    extractor = ArticleExtractor(LIULI, layout)

    assert extractor.extract(parse(article_html()), 9) == ExtractionSkipped("already fetched")
    # structural problems are still reported first
    html = '<html><body><div id="content"><p>x</p></div></body></html>'
    assert extractor.extract(parse(html), 9) == ExtractionSkipped("no article container")
