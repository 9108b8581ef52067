#!/usr/bin/env python3
"""
Tests for HTML page retrieval: retries, permanent errors, content types.
"""

import pytest
import requests
import requests_mock

from archivist.core.html_retriever import PageRetriever


URL = "https://example.com/wp/1.html"


@pytest.fixture
def retriever():
    session = requests.Session()
    yield PageRetriever(session, retry_delay=0, max_retries=2, timeout=5)
    session.close()


def test_returns_page(retriever):
    with requests_mock.Mocker() as m:
        m.get(URL, text="<html><body><p>hi</p></body></html>", headers={'Content-Type': 'text/html'})
        page = retriever.retrieve_page(URL, depth=3)

    assert page.url == URL
    assert page.final_url == URL
    assert page.depth == 3
    assert page.document().p.get_text() == "hi"
    assert page.document() is page.document()


def test_redirect_keeps_requested_url(retriever):
    final = "https://example.com/wp/1.html/"
    with requests_mock.Mocker() as m:
        m.get(URL, status_code=301, headers={'Location': final})
        m.get(final, text="<html></html>", headers={'Content-Type': 'text/html'})
        page = retriever.retrieve_page(URL)

    assert page.url == URL
    assert page.final_url == final


def test_server_errors_are_retried(retriever):
    with requests_mock.Mocker() as m:
        m.get(URL, [
            {'status_code': 503},
            {'exc': requests.exceptions.ConnectTimeout},
            {'text': "<html>ok</html>", 'headers': {'Content-Type': 'text/html'}},
        ])
        page = retriever.retrieve_page(URL)

    assert page is not None
    assert m.call_count == 3


def test_gives_up_after_retries(retriever):
    with requests_mock.Mocker() as m:
        m.get(URL, status_code=500)
        assert retriever.retrieve_page(URL) is None
        assert m.call_count == 3


@pytest.mark.parametrize("status", [403, 404, 410])
def test_permanent_errors_not_retried(retriever, status):
    with requests_mock.Mocker() as m:
        m.get(URL, status_code=status)
        assert retriever.retrieve_page(URL) is None
        assert m.call_count == 1


def test_non_html_is_not_delivered(retriever):
    with requests_mock.Mocker() as m:
        m.get(URL, content=b"\x89PNG", headers={'Content-Type': 'image/png'})
        assert retriever.retrieve_page(URL) is None


def test_missing_charset_decoded_from_content(retriever):
    body = '<html><head><meta charset="utf-8"></head><body>琉璃神社</body></html>'.encode('utf-8')
    with requests_mock.Mocker() as m:
        m.get(URL, content=body, headers={'Content-Type': 'text/html'})
        page = retriever.retrieve_page(URL)

    assert "琉璃神社" in page.html


class CountingThrottle:
    def __init__(self):
        self.hosts = []

    def acquire(self, domain):
        self.hosts.append(domain)


def test_every_attempt_takes_a_throttle_token():
    throttle = CountingThrottle()
    session = requests.Session()
    retriever = PageRetriever(session, retry_delay=0, max_retries=2, timeout=5, throttle=throttle)
    with requests_mock.Mocker() as m:
        m.get(URL, [
            {'status_code': 500},
            {'status_code': 429},
            {'text': "<html>ok</html>", 'headers': {'Content-Type': 'text/html'}},
        ])
        page = retriever.retrieve_page(URL)
    session.close()

    assert page is not None
    assert throttle.hosts == ["example.com"] * 3
