"""
Image download, dedup, and cover selection.

Images referenced by an article's content block are stored next to its
index.json under a name derived from the image URL:

    MD5(url) in upper-case hex + the extension of the URL path

so the same URL always maps to the same file, and a file left by an earlier,
interrupted run is reused instead of fetched again. Failures are split in
two classes: soft failures (404, or 503 from a configured proxy) are logged
and ignored; anything else marks the batch as aborted, and the caller must
not write the article's completion marker. Remaining images are still
attempted after an abort so their bytes are on disk for the next run.
"""

from __future__ import annotations

import hashlib
import os
import time
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict
from urllib.parse import urlsplit, urlunsplit

import requests
from bs4 import Tag

from ..utils.file_manager import write_atomic


DOWNLOAD_CHUNK_SIZE = 64 * 1024


@dataclass
class ImageBatch:
    """Result of processing one article's images."""

    images: Dict[str, str] = field(default_factory=dict)  # source URL -> local filename
    cover: str = ""
    aborted: bool = False


class ImageFetchError(Exception):
    """Non-2xx response while fetching an image."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP {status_code} for {url}")
        self.url = url
        self.status_code = status_code


def resolve_image_url(src: str, page_url: str) -> str:
    """
    Resolve an <img> src against the page it appears on.

    '//host/path' takes the page's scheme. '/path?query' is rebuilt on the
    page's scheme and authority with the query dropped. Anything else is
    used as-is.
    """
    page = urlsplit(page_url)
    if src.startswith('//'):
        return f"{page.scheme}:{src}"
    if src.startswith('/'):
        path = urlsplit(src).path
        return urlunsplit((page.scheme, page.netloc, path, '', ''))
    return src


def image_filename(url: str) -> str:
    digest = hashlib.md5(url.encode('utf-8')).hexdigest().upper()
    extension = os.path.splitext(urlsplit(url).path)[1]
    return f"{digest}{extension}"


class ImageDownloader:
    def __init__(self,
                 session: requests.Session,
                 request_delay: float = 1.0,
                 proxy_configured: bool = False,
                 timeout: float = 30):
        """
        Args:
            session: HTTP session used for every image request
            request_delay: Seconds to wait before each image request
            proxy_configured: Whether `session` goes through a proxy; makes 503 a soft failure
            timeout: Per-request timeout in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.session = session
        self.request_delay = request_delay
        self.proxy_configured = proxy_configured
        self.timeout = timeout

    def process(self, content: Tag, page_url: str, article_dir: Path) -> ImageBatch:
        """
        Download (or reuse) every image in `content`, in document order.

        Args:
            content: The article's content block
            page_url: URL of the page, used to resolve root-relative sources
            article_dir: Existing directory the image files are written to

        Returns:
            ImageBatch with the URL -> filename mapping, the cover filename and the abort flag
        """
        batch = ImageBatch()
        article_dir = Path(article_dir)

        for img in content.find_all('img'):
            src = (img.get('src') or '').strip()
            if not src:
                self.logger.info(f"Invalid image url: {src!r}, page {page_url}")
                continue
            if src.lower().startswith('data:'):
                self.logger.debug(f"Inline image skipped, page {page_url}")
                continue

            try:
                url = resolve_image_url(src, page_url)
                filename = image_filename(url)
            except ValueError as e:
                self.logger.error(f"Malformed image url({src}) in {page_url}: {e}")
                batch.aborted = True
                continue
            target = article_dir / filename

            if url in batch.images:
                self.logger.debug(f"Already registered image url({url}), page url: {page_url}")
                continue

            existing_size = self._existing_size(target)
            if existing_size:
                self.logger.info(
                    f"Image file already exists for url({url}): {filename}, "
                    f"file size: {existing_size}, page url: {page_url}"
                )
                self._register(batch, url, filename)
                continue

            try:
                size = self._download(url, target)
            except ImageFetchError as e:
                if self._is_soft_failure(e.status_code):
                    self.logger.warning(f"Failed to get image({url}) in {page_url}: {e}")
                    continue
                self.logger.error(f"Failed to get image({url}) in {page_url}: {e}")
                batch.aborted = True
                continue
            except (requests.RequestException, OSError) as e:
                self.logger.error(f"Failed to get image({url}) in {page_url}: {type(e).__name__}: {e}")
                batch.aborted = True
                continue

            self.logger.info(f"Image downloaded {page_url}, {url}: {filename} ({size} bytes)")
            self._register(batch, url, filename)

        return batch

    def _register(self, batch: ImageBatch, url: str, filename: str) -> None:
        batch.images[url] = filename
        if not batch.cover:
            batch.cover = filename

    def _existing_size(self, target: Path) -> int:
        try:
            return target.stat().st_size if target.is_file() else 0
        except OSError:
            return 0

    def _is_soft_failure(self, status_code: int) -> bool:
        if status_code == 404:
            return True
        return status_code == 503 and self.proxy_configured

    def _download(self, url: str, target: Path) -> int:
        if self.request_delay > 0:
            time.sleep(self.request_delay)

        with self.session.get(url, timeout=self.timeout, stream=True) as resp:
            if not resp.ok:
                raise ImageFetchError(url, resp.status_code)
            return write_atomic(target, resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE))
