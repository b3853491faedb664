"""Extraction of key statements, entities and search queries from an article."""

import logging
from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..errors import SchemaError
from ..models.claims import ExtractedClaims, ExtractedEntities, TechnicalDetails
from .oracle_payload import Invalid, validate_payload
from .rate_limiter import EXTRACTION_RETRY_POLICY, RateLimitedCallAdapter, RetryPolicy

logger = logging.getLogger(__name__)

LARGE_CONTENT_BYTES = 150_000

EXTRACTION_PROMPT = """Analyze this cybersecurity incident article and extract key information. Respond in JSON format with the following structure:
{{
  "keyStatements": ["list of the most important factual statements"],
  "entities": {{
    "organizations": ["affected companies, organizations"],
    "people": ["key individuals involved"],
    "locations": ["relevant locations"],
    "dates": ["important dates in YYYY-MM-DD format"],
    "amounts": ["financial losses, cryptocurrency amounts"]
  }},
  "searchQueries": ["list of search queries to verify the facts"],
  "technicalDetails": {{
    "attackVectors": ["methods used in the attack"],
    "vulnerabilities": ["exploited vulnerabilities"],
    "impactedSystems": ["affected systems, platforms"]
  }}
}}

Article:
{content}"""


class _EntitiesPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    organizations: List[str]
    people: List[str]
    locations: List[str]
    dates: List[str]
    amounts: List[str]


class _TechnicalPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    attack_vectors: List[str]
    vulnerabilities: List[str]
    impacted_systems: List[str]


class _ExtractionPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    key_statements: List[str]
    entities: _EntitiesPayload
    search_queries: List[str]
    technical_details: _TechnicalPayload


class StatementExtractor:
    """Asks the inference oracle for the verifiable content of an article."""

    def __init__(
        self,
        call_adapter: RateLimitedCallAdapter,
        retry_policy: RetryPolicy = EXTRACTION_RETRY_POLICY,
        max_tokens: int = 4096,
    ):
        self._adapter = call_adapter
        self._retry_policy = retry_policy
        self._max_tokens = max_tokens

    def build_prompt(self, content: str) -> str:
        return EXTRACTION_PROMPT.format(content=content)

    async def extract(self, content: str) -> ExtractedClaims:
        """Extract claims from ``content``.

        Raises:
            SchemaError: If the oracle reply does not match the schema
            TransientServiceError: If the oracle stays unavailable after retries
        """
        size = len(content.encode("utf-8"))
        logger.info(f"🧾 Extracting statements from {size / 1024:.0f} KB of content")
        if size > LARGE_CONTENT_BYTES:
            logger.warning(
                f"⚠️ Content may be too large for the inference service "
                f"({size / 1024:.0f} KB), consider shortening the article"
            )

        reply = await self._adapter.call(
            self.build_prompt(content),
            retry_policy=self._retry_policy,
            description="Statement extraction",
            max_tokens=self._max_tokens,
        )

        result = validate_payload(reply, _ExtractionPayload)
        if isinstance(result, Invalid):
            logger.error(f"❌ Invalid extraction result structure: {result.reasons}")
            raise SchemaError("Invalid extraction response from inference service", result.reasons)

        payload = result.value
        claims = ExtractedClaims(
            key_statements=payload.key_statements,
            entities=ExtractedEntities(**payload.entities.model_dump()),
            search_queries=payload.search_queries,
            technical_details=TechnicalDetails(**payload.technical_details.model_dump()),
        )
        logger.info(
            f"✅ Extracted {len(claims.key_statements)} statements, "
            f"{len(claims.search_queries)} search queries"
        )
        return claims
