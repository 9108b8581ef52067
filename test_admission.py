#!/usr/bin/env python3
"""
Tests for article id derivation, site presets and the crawl admission policy.
"""

import re

import pytest

from archivist.core.admission import AdmissionPolicy, CrawlDecision
from archivist.core.article_id import ArticleIdExtractor
from archivist.core.errors import ConfigError
from archivist.core.site import LIULI, LIULI_HTML, MissingFieldPolicy, get_site
from archivist.utils.file_manager import ArchiveLayout


ROOT = "https://www.example.com/"


@pytest.fixture
def layout(tmp_path):
    return ArchiveLayout(tmp_path / "out")


@pytest.fixture
def policy(layout):
    return AdmissionPolicy(ROOT, LIULI, layout)


def mark_complete(layout, article_id):
    layout.ensure_article_dir(article_id)
    layout.index_path(article_id).write_text("{}", encoding="utf-8")


@pytest.mark.parametrize("url,expected", [
    ("https://www.example.com/wp/123.html", 123),
    ("https://www.example.com/wp/45/", 45),
    ("https://www.example.com/wp/0.html", 0),
    ("https://www.example.com/index.php?p=/wp/77", 77),
    ("https://www.example.com/wp/abc.html", None),
    ("https://www.example.com/wp2/12.html", None),
    ("https://www.example.com/about.html", None),
    ("https://www.example.com/wp/99999999999.html", None),
    ("https://www.example.com/wp/١٢.html", None),
])
def test_liuli_article_ids(url, expected):
    assert ArticleIdExtractor(LIULI.article_id_pattern).extract(url) == expected


def test_article_id_upper_bound():
    extractor = ArticleIdExtractor(LIULI.article_id_pattern)
    assert extractor.extract("https://www.example.com/wp/2147483647.html") == 2147483647
    assert extractor.extract("https://www.example.com/wp/2147483648.html") is None


def test_liuli_html_article_ids():
    extractor = ArticleIdExtractor(LIULI_HTML.article_id_pattern)
    assert extractor.extract("https://www.example.com/archives/456.html") == 456
    assert extractor.extract("https://www.example.com/archives/456") is None
    assert extractor.extract("https://www.example.com/archives/١٢.html") is None


def test_non_ascii_digits_rejected_by_custom_pattern():
    extractor = ArticleIdExtractor(re.compile(r"/post/(\d+)"))
    assert extractor.extract("https://www.example.com/post/١٢") is None
    assert extractor.extract("https://www.example.com/post/１２") is None
    assert extractor.extract("https://www.example.com/post/12") == 12


def test_site_presets():
    assert get_site("liuli") is LIULI
    assert get_site("liuli-html").missing_field_policy is MissingFieldPolicy.EMPTY
    with pytest.raises(ConfigError):
        get_site("nope")


def test_admits_article_on_root_host(policy):
    assert policy.admit("https://www.example.com/wp/1.html") == CrawlDecision.allowed()


def test_authority_ignores_case_and_default_port(policy):
    assert policy.admit("https://WWW.Example.com:443/wp/1.html").allow
    assert policy.admit("http://www.example.com/wp/1.html").allow


@pytest.mark.parametrize("url", [
    "https://example.com/wp/1.html",
    "https://www.example.com:8443/wp/1.html",
    "https://cdn.other.org/wp/1.html",
])
def test_foreign_authority_denied(policy, url):
    assert policy.admit(url) == CrawlDecision.denied("invalid authority")


@pytest.mark.parametrize("url,reason", [
    ("https://www.example.com/tag/anime", "tag page"),
    ("https://www.example.com/wp/1.html?lang=en", "lang page"),
    ("https://www.example.com/community/thread/3", "bbs page"),
    ("https://www.example.com/bbs/", "bbs page"),
    ("https://www.example.com/wp2/promo.html", "ad page"),
    ("https://www.example.com/author/admin", "author page"),
    ("https://www.example.com/about.html", "about page"),
])
def test_deny_rules(policy, url, reason):
    decision = policy.admit(url)
    assert not decision.allow
    assert decision.reason == reason


def test_first_matching_rule_wins(policy):
    assert policy.admit("https://www.example.com/author/x?tag=1").reason == "tag page"
    assert policy.admit("https://www.example.com/bbs/?lang=zh").reason == "lang page"
    assert policy.admit("https://other.example.org/tag/x").reason == "invalid authority"


def test_already_crawled(policy, layout):
    mark_complete(layout, 42)
    assert policy.admit("https://www.example.com/wp/42.html") == CrawlDecision.denied("already crawled")
    assert policy.admit("https://www.example.com/wp/43.html").allow
    mark_complete(layout, 12)
    assert policy.admit("https://www.example.com/wp/١٢.html").allow


def test_directory_without_marker_is_not_crawled(policy, layout):
    layout.ensure_article_dir(7)
    (layout.article_dir(7) / "ABC.png").write_bytes(b"x")
    assert policy.admit("https://www.example.com/wp/7.html").allow


def test_non_article_pages_are_admitted(policy):
    assert policy.admit("https://www.example.com/").allow
    assert policy.admit("https://www.example.com/page/2").allow
