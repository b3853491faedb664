"""Protocol for web search providers."""

from typing import List, Optional, Protocol

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """A single ranked web search result."""

    title: str = Field("", description="Result title")
    url: str = Field(..., description="Result URL")
    description: str = Field("", description="Result snippet")
    age: Optional[str] = Field(None, description="Relative age, e.g. '3 days ago'")
    domain: Optional[str] = Field(None, description="Host name, when the provider reports it")


class SearchProvider(Protocol):
    """Web search capability used for source discovery."""

    async def search(self, query: str) -> List[SearchHit]:
        """Return ranked results for ``query``."""
        ...
