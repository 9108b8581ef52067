"""
File Management Utilities

This module owns the on-disk archive layout:

    <output>/<article_id>/index.json        completion marker and article record
    <output>/<article_id>/<HASH><ext>       one file per distinct image URL

and the write-to-temporary-then-rename helper used for every file the
pipeline produces, so a file under its final name is always complete.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Any, Iterable, Union
import logging


INDEX_FILE_NAME = "index.json"


class ArchiveLayout:
    """
    Maps article ids to directories and files under the output root.
    """

    def __init__(self, base_output_dir: Union[str, Path] = "output"):
        """
        Args:
            base_output_dir: Root directory holding one sub-directory per article
        """
        self.base_output_dir = Path(base_output_dir)
        self.logger = logging.getLogger(__name__)

    def create_root(self) -> None:
        """Create the output root; errors propagate to the caller."""
        self.base_output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Output directory ready at: {self.base_output_dir.absolute()}")

    def article_dir(self, article_id: int) -> Path:
        return self.base_output_dir / str(article_id)

    def index_path(self, article_id: int) -> Path:
        return self.article_dir(article_id) / INDEX_FILE_NAME

    def is_complete(self, article_id: int) -> bool:
        """True when the article's completion marker exists."""
        return self.index_path(article_id).is_file()

    def ensure_article_dir(self, article_id: int) -> Path:
        path = self.article_dir(article_id)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def iter_completed(self) -> Iterable[int]:
        """Yield the ids of all archived articles."""
        if not self.base_output_dir.is_dir():
            return
        for entry in self.base_output_dir.iterdir():
            if entry.is_dir() and entry.name.isdigit() and (entry / INDEX_FILE_NAME).is_file():
                yield int(entry.name)

    def get_output_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the output directory.

        Returns:
            Dictionary with article and image counts and total image size
        """
        stats = {
            'articles': 0,
            'images': 0,
            'total_image_size': 0,
            'output_dir': str(self.base_output_dir),
        }
        for article_id in self.iter_completed():
            stats['articles'] += 1
            for item in self.article_dir(article_id).iterdir():
                if item.is_file() and item.name != INDEX_FILE_NAME and not item.name.startswith('.'):
                    stats['images'] += 1
                    stats['total_image_size'] += item.stat().st_size
        return stats


def write_atomic(target: Union[str, Path], chunks: Iterable[bytes]) -> int:
    """
    Write `chunks` to a hidden temporary file next to `target`, then rename it
    onto `target`. Returns the number of bytes written.

    On any error the temporary file is removed and the error is re-raised;
    `target` is never left half-written.
    """
    target = Path(target)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=target.parent)
    written = 0
    try:
        with os.fdopen(fd, 'wb') as f:
            for chunk in chunks:
                if chunk:
                    f.write(chunk)
                    written += len(chunk)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return written
