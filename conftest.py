"""
Shared pytest fixtures: article page markup in the target site's theme.
"""

import sys
from pathlib import Path

import pytest

# Add the src directory to the path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))


def render_article(title="Hello World",
                   content='<p>Body text</p>',
                   published="2021-05-06T07:08:09+08:00",
                   category="Notes",
                   tags=("alpha", "beta"),
                   links=(),
                   container=True):
    """Build an article page. Pass None for published/category to leave them out."""
    date_html = f'<time class="entry-date" datetime="{published}">May 6</time>' if published is not None else ''
    category_html = f'<a href="/category/notes" rel="category tag">{category}</a>' if category is not None else ''
    tags_html = ''.join(f'<a href="/tag/{t}" rel="tag">{t}</a>' for t in tags)
    links_html = ''.join(f'<a href="{href}">link</a>' for href in links)

    body = (
        f'<header><h1 class="entry-title">{title}</h1>{date_html}{category_html}</header>'
        f'<div class="entry-content">{content}</div>'
        f'<footer>{tags_html}</footer>'
    )
    if container:
        body = f'<div id="content"><article>{body}</article></div>'
    return (
        '<html><head><meta charset="utf-8"><title>page</title></head>'
        f'<body>{body}<nav>{links_html}</nav></body></html>'
    )


def render_index(links=()):
    """A non-article page that only links elsewhere."""
    links_html = ''.join(f'<a href="{href}">link</a>' for href in links)
    return f'<html><head><title>index</title></head><body><div id="main">{links_html}</div></body></html>'


@pytest.fixture
def article_html():
    return render_article


@pytest.fixture
def index_html():
    return render_index
