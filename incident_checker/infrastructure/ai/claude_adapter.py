"""Claude implementation of the inference provider interface."""

import asyncio
import logging
from typing import Dict, Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import (
    RateLimitExceeded,
    SchemaError,
    ServiceError,
    ServiceOverloadedError,
    TransientServiceError,
)
from ...domain.ports.inference_provider import InferenceProvider

logger = logging.getLogger(__name__)


class ClaudeConfig(BaseModel):
    """Configuration for Claude adapter."""

    api_key: str = Field(..., description="Anthropic API key")
    model: str = Field(default="claude-3-sonnet-20240229", description="Model to use")
    base_url: str = Field(default="https://api.anthropic.com/v1", description="Messages API base URL")
    api_version: str = Field(default="2023-06-01", description="anthropic-version header")
    temperature: float = Field(default=0.0, description="Temperature for responses")
    timeout: Optional[float] = Field(
        default=None,
        description="Transport timeout in seconds; None leaves the per-call budgets of complete() in charge",
    )


def _raise_for_status(status_code: int, body: str) -> None:
    if status_code < 400:
        return
    message = f"Claude API error: {status_code} - {body[:500]}"
    if status_code == 429:
        raise RateLimitExceeded(message, status_code)
    if status_code == 529:
        raise ServiceOverloadedError(message, status_code)
    if status_code >= 500:
        raise TransientServiceError(message, status_code)
    raise ServiceError(message, status_code)


class ClaudeAdapter(InferenceProvider):
    """Claude implementation of the inference provider interface."""

    def __init__(self, config: Optional[ClaudeConfig] = None):
        """Initialize the adapter."""
        self._config = config or ClaudeConfig(api_key="")
        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        if not self._config.api_key:
            raise ConnectionError("Failed to initialize Claude provider: ANTHROPIC_API_KEY is not set")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={
                    "x-api-key": self._config.api_key,
                    "anthropic-version": self._config.api_version,
                    "Content-Type": "application/json",
                },
            )
        self._initialized = True
        logger.info(f"✅ Claude provider ready (model {self._config.model})")

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = 4096,
        request_timeout: float = 20.0,
        read_timeout: float = 15.0,
    ) -> str:
        """Send ``prompt`` as a single user message and return the reply text.

        The request (up to response headers) and the body read have separate
        timeouts; either expiring raises ``TransientServiceError``.
        """
        if not self._client:
            raise RuntimeError("Provider not initialized")

        request = self._client.build_request(
            "POST",
            "/messages",
            json={
                "model": self._config.model,
                "max_tokens": max_tokens,
                "temperature": self._config.temperature,
                "messages": [{"role": "user", "content": prompt}],
            },
        )

        try:
            response = await asyncio.wait_for(
                self._client.send(request, stream=True), timeout=request_timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"❌ Claude API request timed out after {request_timeout}s")
            raise TransientServiceError(f"Claude API request timed out after {request_timeout}s") from e
        except httpx.TransportError as e:
            logger.error(f"❌ Claude API connection failed: {e}")
            raise TransientServiceError(f"Claude API connection failed: {e}") from e

        try:
            try:
                body = await asyncio.wait_for(response.aread(), timeout=read_timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                logger.error(f"❌ Claude API response reading timed out after {read_timeout}s")
                raise TransientServiceError(
                    f"Claude API response reading timed out after {read_timeout}s"
                ) from e
            except httpx.TransportError as e:
                raise TransientServiceError(f"Claude API response reading failed: {e}") from e
        finally:
            await response.aclose()

        _raise_for_status(response.status_code, body.decode("utf-8", errors="replace"))

        try:
            data = response.json()
            text = data["content"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SchemaError("Unexpected response format from Claude API", [str(e)]) from e
        if not isinstance(text, str):
            raise SchemaError("Unexpected response format from Claude API", ["content[0].text is not a string"])

        logger.debug(f"Claude reply: {len(text)} chars, usage {data.get('usage')}")
        return text

    async def shutdown(self) -> None:
        """Clean up resources and shut down the provider."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._initialized = False

    @property
    def provider_name(self) -> str:
        """Get the name of the inference provider."""
        return "Claude"

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        return self._initialized and self._client is not None

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        return {
            "statement_extraction": True,
            "fact_verification": True,
            "article_comparison": False,
        }
