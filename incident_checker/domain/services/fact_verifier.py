"""Verification of extracted statements against discovered sources."""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, constr
from pydantic.alias_generators import to_camel

from ..errors import SchemaError
from ..models.claims import ExtractedClaims
from ..models.verification import (
    FactCheckVerdict,
    SourceRecord,
    UnverifiedClaim,
    VerifiedClaim,
)
from .oracle_payload import Invalid, validate_payload
from .rate_limiter import RateLimitedCallAdapter, RetryPolicy, VERIFICATION_RETRY_POLICY
from .source_searcher import extract_domain

logger = logging.getLogger(__name__)

CHUNK_SIZE = 5
MAX_PROMPT_SOURCES = 8
MAX_SNIPPET_LENGTH = 300
REQUEST_TIMEOUT = 20.0
READ_TIMEOUT = 15.0

AVERAGE_CONFIDENCE_WEIGHT = 0.4
VERIFIED_RATIO_WEIGHT = 0.3
SOURCE_RELIABILITY_WEIGHT = 0.3
DEFAULT_SOURCE_RELIABILITY = 0.5

NonEmptyStr = constr(strip_whitespace=True, min_length=1)


class _SourceRefPayload(BaseModel):
    url: str
    title: Optional[str] = None
    reliability: Optional[float] = None


class _VerifiedFactPayload(BaseModel):
    statement: NonEmptyStr
    confidence: float
    sources: List[_SourceRefPayload]


class _UnreliableFactPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    statement: NonEmptyStr
    reason: NonEmptyStr
    suggested_correction: Optional[str] = None


class _FactCheckPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    is_factual: bool
    verified_facts: List[_VerifiedFactPayload]
    unreliable_facts: List[_UnreliableFactPayload]
    sources_used: List[_SourceRefPayload]
    confidence: float


def normalize_confidence(value: float) -> float:
    """Map a confidence to [0, 1], reading values above 1 as percentages."""
    if value > 1:
        value = value / 100
    return min(1.0, max(0.0, value))


def chunk_statements(statements: List[str], size: int = CHUNK_SIZE) -> List[List[str]]:
    """Split statements into ordered chunks of at most ``size``."""
    if len(statements) <= size:
        return [list(statements)]
    return [statements[i:i + size] for i in range(0, len(statements), size)]


def overall_confidence(
    verified: List[VerifiedClaim],
    unverified: List[UnverifiedClaim],
    sources: List[SourceRecord],
) -> float:
    """Weighted blend of fact confidence, verified ratio and source reliability."""
    if not verified:
        return 0.0

    average_confidence = sum(claim.confidence for claim in verified) / len(verified)
    verified_ratio = len(verified) / (len(verified) + len(unverified))
    if sources:
        source_reliability = sum(source.reliability for source in sources) / len(sources)
    else:
        source_reliability = DEFAULT_SOURCE_RELIABILITY

    confidence = (
        average_confidence * AVERAGE_CONFIDENCE_WEIGHT
        + verified_ratio * VERIFIED_RATIO_WEIGHT
        + source_reliability * SOURCE_RELIABILITY_WEIGHT
    )
    return min(1.0, max(0.0, confidence))


def _unique_by_url(sources: List[SourceRecord]) -> List[SourceRecord]:
    unique: Dict[str, SourceRecord] = {}
    for source in sources:
        unique.setdefault(source.url, source)
    return list(unique.values())


class FactVerifier:
    """Cross-checks statements against sources through the inference oracle."""

    def __init__(
        self,
        call_adapter: RateLimitedCallAdapter,
        min_confidence_threshold: float = 0.7,
        chunk_size: int = CHUNK_SIZE,
        retry_policy: RetryPolicy = VERIFICATION_RETRY_POLICY,
        max_tokens: int = 4096,
    ):
        """Initialize the verifier.

        Args:
            call_adapter: Rate-limited access to the inference provider
            min_confidence_threshold: Verified facts below this are discarded
            chunk_size: Statements verified per oracle call
            retry_policy: Backoff applied to transient oracle failures
            max_tokens: Reply size limit per call
        """
        self._adapter = call_adapter
        self._min_confidence = min_confidence_threshold
        self._chunk_size = chunk_size
        self._retry_policy = retry_policy
        self._max_tokens = max_tokens

    async def verify_facts(
        self,
        claims: ExtractedClaims,
        sources: List[SourceRecord],
    ) -> FactCheckVerdict:
        """Verify every key statement and merge the per-chunk verdicts."""
        chunks = chunk_statements(claims.key_statements, self._chunk_size)
        logger.info(
            f"🔍 Starting fact verification: {len(claims.key_statements)} statements, "
            f"{len(sources)} sources, {len(chunks)} chunk(s)"
        )

        results: List[FactCheckVerdict] = []
        for index, statements in enumerate(chunks, start=1):
            logger.info(f"📦 Verifying chunk {index}/{len(chunks)} ({len(statements)} statements)")
            results.append(await self.verify_chunk(claims.with_statements(statements), sources))

        merged = FactCheckVerdict(
            is_factual=all(result.is_factual for result in results),
            verified_claims=[claim for result in results for claim in result.verified_claims],
            unverified_claims=[claim for result in results for claim in result.unverified_claims],
            sources_used=_unique_by_url([s for result in results for s in result.sources_used]),
            confidence=sum(result.confidence for result in results) / len(results),
        )
        logger.info(
            f"✅ Fact verification complete: {len(merged.verified_claims)} verified, "
            f"{len(merged.unverified_claims)} unreliable, confidence {merged.confidence:.2f}"
        )
        return merged

    def build_prompt(self, claims: ExtractedClaims, sources: List[SourceRecord]) -> str:
        """Compose the verification prompt for one chunk."""
        top_sources = sorted(sources, key=lambda s: s.reliability, reverse=True)[:MAX_PROMPT_SOURCES]

        statements = "\n".join(
            f"{i}. {statement}" for i, statement in enumerate(claims.key_statements, start=1)
        )

        details = claims.technical_details
        detail_lines = []
        if details.attack_vectors:
            detail_lines.append(f"Attack Vectors: {', '.join(details.attack_vectors)}")
        if details.vulnerabilities:
            detail_lines.append(f"Vulnerabilities: {', '.join(details.vulnerabilities)}")
        if details.impacted_systems:
            detail_lines.append(f"Impacted Systems: {', '.join(details.impacted_systems)}")

        entities = claims.entities
        for label, values in (
            ("Organizations", entities.organizations),
            ("People", entities.people),
            ("Locations", entities.locations),
            ("Dates", entities.dates),
            ("Amounts", entities.amounts),
        ):
            if values:
                detail_lines.append(f"{label}: {', '.join(values)}")

        source_lines = []
        for i, source in enumerate(top_sources, start=1):
            snippet = source.snippet
            if len(snippet) > MAX_SNIPPET_LENGTH:
                snippet = snippet[:MAX_SNIPPET_LENGTH] + "..."
            source_lines.append(f"[{i}] {source.title} ({source.domain}) - {snippet}")

        return (
            "Verify these statements against the sources. Respond in JSON only. "
            "All confidence values MUST be between 0 and 1 (e.g., 0.85 for 85% confidence).\n\n"
            f"Statements:\n{statements}\n\n"
            f"Key Details:\n{chr(10).join(detail_lines)}\n\n"
            f"Sources:\n{chr(10).join(source_lines)}\n\n"
            "Response format (all confidence values MUST be between 0 and 1):\n"
            "{\n"
            '  "isFactual": boolean,\n'
            '  "verifiedFacts": [{"statement": "text", "confidence": number (0-1), '
            '"sources": [{"url": "url", "title": "title"}]}],\n'
            '  "unreliableFacts": [{"statement": "text", "reason": "why", '
            '"suggestedCorrection": "optional correction"}],\n'
            '  "sourcesUsed": [{"url": "url", "title": "title", "reliability": number (0-1)}],\n'
            '  "confidence": number (0-1)\n'
            "}"
        )

    async def verify_chunk(
        self,
        claims: ExtractedClaims,
        sources: List[SourceRecord],
    ) -> FactCheckVerdict:
        """Verify one chunk of statements with a single oracle call."""
        reply = await self._adapter.call(
            self.build_prompt(claims, sources),
            retry_policy=self._retry_policy,
            description="Fact verification",
            max_tokens=self._max_tokens,
            request_timeout=REQUEST_TIMEOUT,
            read_timeout=READ_TIMEOUT,
        )
        return self.parse_reply(reply, sources)

    def parse_reply(self, reply: str, sources: List[SourceRecord]) -> FactCheckVerdict:
        """Validate, normalise and score an oracle reply.

        Raises:
            SchemaError: If the reply does not match the expected structure
        """
        result = validate_payload(reply, _FactCheckPayload)
        if isinstance(result, Invalid):
            logger.error(f"❌ Invalid fact check result structure: {result.reasons}")
            raise SchemaError("Invalid fact check response from inference service", result.reasons)
        payload = result.value

        known = {source.url: source for source in sources}

        def resolve(ref: _SourceRefPayload) -> SourceRecord:
            if ref.url in known:
                return known[ref.url]
            reliability = normalize_confidence(ref.reliability) if ref.reliability is not None else 0.0
            return SourceRecord(
                url=ref.url,
                title=ref.title or "",
                domain=extract_domain(ref.url),
                reliability=reliability,
            )

        verified = [
            VerifiedClaim(
                statement=fact.statement,
                confidence=normalize_confidence(fact.confidence),
                supporting_sources=_unique_by_url([resolve(ref) for ref in fact.sources]),
            )
            for fact in payload.verified_facts
        ]
        dropped = [claim for claim in verified if claim.confidence < self._min_confidence]
        if dropped:
            logger.debug(f"Dropping {len(dropped)} verified facts below {self._min_confidence}")
        verified = sorted(
            (claim for claim in verified if claim.confidence >= self._min_confidence),
            key=lambda claim: claim.confidence,
            reverse=True,
        )

        unverified = [
            UnverifiedClaim(
                statement=fact.statement,
                reason=fact.reason,
                suggested_correction=fact.suggested_correction or None,
            )
            for fact in payload.unreliable_facts
        ]
        sources_used = _unique_by_url([resolve(ref) for ref in payload.sources_used])

        confidence = overall_confidence(verified, unverified, sources_used)
        logger.debug(
            f"Oracle confidence {normalize_confidence(payload.confidence):.2f} "
            f"recomputed as {confidence:.2f}"
        )
        return FactCheckVerdict(
            is_factual=payload.is_factual,
            verified_claims=verified,
            unverified_claims=unverified,
            sources_used=sources_used,
            confidence=confidence,
        )
