"""
Article persistence.

Writing index.json is what marks an article as archived, so it is written
last, only for pages whose images all succeeded, and through a temporary
file that is renamed into place: a reader either sees no marker or a
complete one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from .errors import PersistenceError
from .extractor import ExtractedArticle
from ..utils.file_manager import ArchiveLayout, write_atomic


class PersistStatus(Enum):
    PERSISTED = "persisted"
    ALREADY_EXISTS = "already_exists"


@dataclass
class ArticleRecord:
    category: str
    tags: List[str]
    title: str
    content: str
    images: Dict[str, str]
    published: str
    external_id: str
    original_url: str
    cover: str = ""

    def to_json_dict(self) -> Dict[str, Any]:
        """Field names and order of index.json."""
        return {
            'category': self.category,
            'tags': list(self.tags),
            'title': self.title,
            'content': self.content,
            'images': dict(self.images),
            'published': self.published,
            'externalId': self.external_id,
            'originalUrl': self.original_url,
            'cover': self.cover,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_json_dict(), indent=2, ensure_ascii=False)


class ArticlePersister:
    def __init__(self, layout: ArchiveLayout):
        self.layout = layout
        self.logger = logging.getLogger(__name__)

    def build_record(self,
                     article_id: int,
                     article: ExtractedArticle,
                     images: Dict[str, str],
                     cover: str,
                     original_url: str) -> ArticleRecord:
        return ArticleRecord(
            category=article.category,
            tags=list(article.tags),
            title=article.title,
            content=article.content,
            images=dict(images),
            published=article.published,
            external_id=str(article_id),
            original_url=original_url,
            cover=cover,
        )

    def persist(self,
                article_id: int,
                article: ExtractedArticle,
                images: Dict[str, str],
                cover: str,
                original_url: str) -> PersistStatus:
        """
        Write the article's index.json.

        Raises:
            PersistenceError: if the directory or the file cannot be written
        """
        if self.layout.is_complete(article_id):
            return PersistStatus.ALREADY_EXISTS

        record = self.build_record(article_id, article, images, cover, original_url)
        payload = record.to_json().encode('utf-8')

        try:
            self.layout.ensure_article_dir(article_id)
            write_atomic(self.layout.index_path(article_id), [payload])
        except OSError as e:
            raise PersistenceError(f"Failed to write index for article {article_id}: {e}", article_id) from e

        self.logger.info(f"Index write done: {original_url}")
        return PersistStatus.PERSISTED
