"""OpenRouter implementation of the comparison oracle."""

import logging
from typing import Dict, Optional

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from ...domain.errors import RateLimitExceeded, SchemaError, ServiceError, TransientServiceError
from ...domain.ports.comparison_oracle import ComparisonOracle

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at comparing articles and identifying new information. "
    "You must respond with raw JSON only, no markdown formatting or explanation text."
)

COMPARISON_PROMPT = """Compare these two articles and determine if the new article contains any significant new information not present in the existing article. Respond with raw JSON only (no markdown, no code blocks) using this exact format:
{{"hasNewInformation": boolean, "differences": string[], "similarityScore": number}}

Existing article:
{existing}

New article:
{new}"""


class OpenRouterConfig(BaseModel):
    """Configuration for OpenRouter adapter."""

    api_key: str = Field(..., description="OpenRouter API key")
    model: str = Field(default="openai/gpt-3.5-turbo", description="Model to use")
    base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenAI-compatible endpoint")
    referer: str = Field(default="https://github.com/incident-checker", description="HTTP-Referer header")
    timeout: float = Field(default=30.0, description="API timeout in seconds")


class OpenRouterAdapter(ComparisonOracle):
    """Compares articles with a chat model served through OpenRouter."""

    def __init__(self, config: Optional[OpenRouterConfig] = None):
        self._config = config or OpenRouterConfig(api_key="")
        self._client: Optional[AsyncOpenAI] = None

    async def initialize(self) -> None:
        """Create the API client."""
        if not self._config.api_key:
            raise ConnectionError("Failed to initialize OpenRouter provider: OPENROUTER_API_KEY is not set")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                max_retries=0,
                default_headers={"HTTP-Referer": self._config.referer},
            )
        logger.info(f"✅ OpenRouter provider ready (model {self._config.model})")

    async def compare(self, new_content: str, existing_content: str) -> str:
        """Ask the model how much ``new_content`` adds to ``existing_content``."""
        if not self._client:
            raise RuntimeError("Provider not initialized")

        logger.info(
            f"🤖 Starting OpenRouter comparison ({len(new_content)} vs "
            f"{len(existing_content)} chars)"
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": COMPARISON_PROMPT.format(existing=existing_content, new=new_content),
                    },
                ],
            )
        except openai.RateLimitError as e:
            raise RateLimitExceeded(f"OpenRouter API error: {e}", 429) from e
        except openai.APIConnectionError as e:
            raise TransientServiceError(f"OpenRouter API connection failed: {e}") from e
        except openai.APIStatusError as e:
            if e.status_code >= 500:
                raise TransientServiceError(f"OpenRouter API error: {e}", e.status_code) from e
            raise ServiceError(f"OpenRouter API error: {e}", e.status_code) from e

        if not response.choices or response.choices[0].message.content is None:
            raise SchemaError("Unexpected response format from OpenRouter API", ["no message content"])
        content = response.choices[0].message.content
        logger.debug(f"OpenRouter reply: {content[:200]}")
        return content

    async def shutdown(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def provider_name(self) -> str:
        return "OpenRouter"

    @property
    def is_available(self) -> bool:
        return self._client is not None

    @property
    def capabilities(self) -> Dict[str, bool]:
        return {
            "statement_extraction": False,
            "fact_verification": False,
            "article_comparison": True,
        }
