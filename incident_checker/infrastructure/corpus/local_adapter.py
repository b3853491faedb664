"""Local directory implementation of the corpus provider interface."""

import asyncio
import logging
from pathlib import Path
from typing import List

from ...domain.errors import CorpusError, CorpusNotFoundError
from ...domain.ports.corpus_provider import CorpusEntry, CorpusProvider

logger = logging.getLogger(__name__)


class LocalCorpusAdapter(CorpusProvider):
    """Reads published articles from a checkout of the corpus repository.

    Paths are relative to ``root`` and use forward slashes, matching the
    paths reported by the GitHub adapter.
    """

    def __init__(self, root: Path):
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self._root / path.strip("/")).resolve()
        if target != self._root and self._root not in target.parents:
            raise CorpusError(f"{path} is outside the corpus root")
        return target

    async def fetch_content(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise CorpusNotFoundError(f"{path} not found in {self._root}")
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CorpusError(f"Failed to read {path}: {e}") from e

    async def list_entries(self, directory: str) -> List[CorpusEntry]:
        target = self._resolve(directory)
        if not target.is_dir():
            raise CorpusNotFoundError(f"{directory} not found in {self._root}")

        entries = [
            CorpusEntry(name=item.name, path=item.relative_to(self._root).as_posix())
            for item in sorted(target.iterdir())
            if item.is_file()
        ]
        logger.info(f"📚 Found {len(entries)} files in {directory}")
        return entries
