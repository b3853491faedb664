"""GitHub repository implementation of the corpus provider interface."""

import logging
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import CorpusError, CorpusNotFoundError
from ...domain.ports.corpus_provider import CorpusEntry, CorpusProvider

logger = logging.getLogger(__name__)

RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"
JSON_MEDIA_TYPE = "application/vnd.github.v3+json"


class GitHubCorpusConfig(BaseModel):
    """Configuration for GitHub corpus adapter."""

    token: str = Field(..., description="GitHub token with read access to the repository")
    repository: str = Field(..., description="Repository holding the corpus, as owner/name")
    ref: Optional[str] = Field(default=None, description="Branch, tag or commit; default branch if unset")
    base_url: str = Field(default="https://api.github.com", description="GitHub API base URL")
    user_agent: str = Field(default="IncidentChecker-Bot", description="User-Agent header")
    timeout: float = Field(default=15.0, description="Request timeout in seconds")


class GitHubCorpusAdapter(CorpusProvider):
    """Reads published articles through the GitHub contents API."""

    def __init__(self, config: GitHubCorpusConfig):
        self._config = config
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        if "/" not in self._config.repository:
            raise ValueError(f"Repository must be owner/name, got '{self._config.repository}'")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={
                    "Authorization": f"Bearer {self._config.token}",
                    "User-Agent": self._config.user_agent,
                },
            )

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self._config.repository}/contents/{quote(path.strip('/'))}"

    async def _get(self, path: str, accept: str) -> httpx.Response:
        if not self._client:
            raise RuntimeError("Provider not initialized")

        params = {"ref": self._config.ref} if self._config.ref else None
        try:
            response = await self._client.get(
                self._contents_url(path),
                params=params,
                headers={"Accept": accept},
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ GitHub API request failed for {path}: {e}")
            raise CorpusError(f"GitHub API request failed for {path}: {e}") from e

        if response.status_code == 404:
            raise CorpusNotFoundError(f"{path} not found in {self._config.repository}")
        if response.status_code >= 400:
            logger.error(f"❌ GitHub API error {response.status_code} for {path}: {response.text[:500]}")
            raise CorpusError(f"GitHub API error: {response.status_code} - {response.text[:500]}")
        return response

    async def fetch_content(self, path: str) -> str:
        """Return the raw text of the file at ``path``."""
        response = await self._get(path, RAW_MEDIA_TYPE)
        return response.text

    async def list_entries(self, directory: str) -> List[CorpusEntry]:
        """List the files of ``directory``."""
        response = await self._get(directory, JSON_MEDIA_TYPE)
        items = response.json()
        if not isinstance(items, list):
            raise CorpusError(f"{directory} is not a directory in {self._config.repository}")

        entries = [
            CorpusEntry(name=item["name"], path=item["path"])
            for item in items
            if item.get("type", "file") == "file"
        ]
        logger.info(f"📚 Found {len(entries)} files in {directory}")
        return entries

    async def shutdown(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_available(self) -> bool:
        return self._client is not None
