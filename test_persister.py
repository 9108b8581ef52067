#!/usr/bin/env python3
"""
Tests for index.json writing.
"""

import json

import pytest

from archivist.core.errors import PersistenceError
from archivist.core.extractor import ExtractedArticle
from archivist.core.persister import ArticlePersister, PersistStatus
from archivist.utils.file_manager import ArchiveLayout


@pytest.fixture
def layout(tmp_path):
    return ArchiveLayout(tmp_path)


def sample_article():
    return ExtractedArticle(
        title="标题",
        content="<p>Body</p>",
        category="Notes",
        published="2021-05-06T07:08:09+08:00",
        tags=["a", "b"],
    )


def test_writes_record_with_wire_names(layout):
    status = ArticlePersister(layout).persist(
        12, sample_article(), {"https://cdn/a.png": "A.png"}, "A.png", "https://example.com/wp/12.html")

    assert status is PersistStatus.PERSISTED
    raw = layout.index_path(12).read_text(encoding="utf-8")
    data = json.loads(raw)
    assert list(data) == ["category", "tags", "title", "content", "images",
                          "published", "externalId", "originalUrl", "cover"]
    assert data == {
        "category": "Notes",
        "tags": ["a", "b"],
        "title": "标题",
        "content": "<p>Body</p>",
        "images": {"https://cdn/a.png": "A.png"},
        "published": "2021-05-06T07:08:09+08:00",
        "externalId": "12",
        "originalUrl": "https://example.com/wp/12.html",
        "cover": "A.png",
    }
    # indented, non-ASCII kept literal
    assert '\n  "category"' in raw
    assert "标题" in raw


def test_existing_marker_is_left_untouched(layout):
    layout.ensure_article_dir(5)
    layout.index_path(5).write_text('{"keep": true}', encoding="utf-8")

    status = ArticlePersister(layout).persist(5, sample_article(), {}, "", "https://example.com/wp/5.html")

    assert status is PersistStatus.ALREADY_EXISTS
    assert layout.index_path(5).read_text(encoding="utf-8") == '{"keep": true}'


def test_write_failure_raises_persistence_error(layout, tmp_path):
    # a file where the article directory should be
    (tmp_path / "8").write_text("not a dir")

    with pytest.raises(PersistenceError) as exc_info:
        ArticlePersister(layout).persist(8, sample_article(), {}, "", "https://example.com/wp/8.html")
    assert exc_info.value.article_id == 8


def test_no_temporary_files_remain(layout):
    ArticlePersister(layout).persist(3, sample_article(), {}, "", "https://example.com/wp/3.html")
    assert [p.name for p in layout.article_dir(3).iterdir()] == ["index.json"]
