"""Brave Search implementation of the search provider interface."""

import logging
from typing import List, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field, ValidationError

from ...domain.errors import RateLimitExceeded, ServiceError, TransientServiceError
from ...domain.ports.search_provider import SearchHit, SearchProvider

logger = logging.getLogger(__name__)


class BraveSearchConfig(BaseModel):
    """Configuration for Brave Search adapter."""

    api_key: str = Field(..., description="Brave Search subscription token")
    base_url: str = Field(
        default="https://api.search.brave.com/res/v1",
        description="Brave Search API base URL",
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    cache_ttl: int = Field(default=3600, description="Cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cache size")


class BraveSearchAdapter(SearchProvider):
    """Web search through the Brave Search API.

    Results are cached per query for ``cache_ttl`` seconds.
    """

    def __init__(self, config: Optional[BraveSearchConfig] = None):
        self._config = config or BraveSearchConfig(api_key="")
        self._client: Optional[httpx.AsyncClient] = None
        self._cache = TTLCache(
            maxsize=self._config.cache_maxsize,
            ttl=self._config.cache_ttl,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        if not self._config.api_key:
            raise ConnectionError("Failed to initialize Brave Search provider: BRAVE_API_KEY is not set")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip",
                    "X-Subscription-Token": self._config.api_key,
                },
            )

    async def search(self, query: str) -> List[SearchHit]:
        """Return the web results for ``query``.

        Raises:
            RateLimitExceeded: On HTTP 429
            TransientServiceError: On 5xx responses, timeouts and connection failures
            ServiceError: On any other error response
        """
        if not self._client:
            raise RuntimeError("Provider not initialized")

        cache_key = f"search:{query}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        logger.debug(f"Executing Brave search query: {query}")
        try:
            response = await self._client.get("/web/search", params={"q": query})
        except httpx.TimeoutException as e:
            raise TransientServiceError(f"Brave Search request timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransientServiceError(f"Brave Search connection failed: {e}") from e

        if response.status_code >= 400:
            message = f"Brave Search API error: {response.status_code} - {response.text[:500]}"
            logger.error(f"❌ {message} (query: {query})")
            if response.status_code == 429:
                raise RateLimitExceeded(message, response.status_code)
            if response.status_code >= 500:
                raise TransientServiceError(message, response.status_code)
            raise ServiceError(message, response.status_code)

        data = response.json()
        results = (data.get("web") or {}).get("results") if isinstance(data, dict) else None
        if not results:
            logger.warning(f"⚠️ No results from Brave search for query: {query}")
            self._cache[cache_key] = []
            return []

        hits = []
        for result in results:
            try:
                hits.append(SearchHit(
                    title=result.get("title") or "",
                    url=result["url"],
                    description=result.get("description") or "",
                    age=result.get("age"),
                    domain=result.get("domain") or (result.get("meta_url") or {}).get("hostname"),
                ))
            except (KeyError, TypeError, AttributeError, ValidationError) as e:
                logger.warning(f"⚠️ Skipping malformed search result: {e}")

        self._cache[cache_key] = hits
        return hits

    async def shutdown(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        self._cache.clear()

    @property
    def provider_name(self) -> str:
        return "Brave"

    @property
    def is_available(self) -> bool:
        return self._client is not None
