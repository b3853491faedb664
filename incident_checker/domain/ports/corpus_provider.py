"""Corpus access capability for already published articles."""

from typing import List, Protocol

from pydantic import BaseModel, Field


class CorpusEntry(BaseModel):
    """A file in the article corpus."""

    name: str = Field(..., description="Base file name")
    path: str = Field(..., description="Path relative to the corpus root")


class CorpusProvider(Protocol):
    """Read access to the corpus of published articles."""

    async def fetch_content(self, path: str) -> str:
        """Return the raw text of the file at ``path``.

        Raises:
            CorpusNotFoundError: If the path does not exist
            CorpusError: On any other access failure
        """
        ...

    async def list_entries(self, directory: str) -> List[CorpusEntry]:
        """List the files of ``directory``."""
        ...
