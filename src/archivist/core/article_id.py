"""Article id derivation from page URLs."""

from __future__ import annotations

import logging
from typing import Optional, Pattern

from ..utils.validators import path_and_query

MAX_ARTICLE_ID = 2 ** 31 - 1


class ArticleIdExtractor:
    """
    Applies a site's article id pattern to a URL's path-and-query.

    Group 1 of the pattern captures the id. A URL that does not match, or
    whose captured text is not a non-negative 32-bit integer, is not an
    article page and yields None.
    """

    def __init__(self, pattern: Pattern[str]):
        self.pattern = pattern
        self.logger = logging.getLogger(__name__)

    def extract(self, url: str) -> Optional[int]:
        try:
            target = path_and_query(url)
        except ValueError:
            return None

        match = self.pattern.search(target)
        if match is None or match.lastindex is None:
            return None

        captured = match.group(1)
        if not (captured.isascii() and captured.isdigit()):
            self.logger.debug(f"Failed to parse id from {url}: {captured!r}")
            return None

        article_id = int(captured)
        if article_id > MAX_ARTICLE_ID:
            self.logger.debug(f"Article id out of range in {url}: {captured}")
            return None
        return article_id
