"""Domain models for discovered sources and fact verification results."""

from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class SourceRecord(CamelModel):
    """A web source discovered for verification.

    ``reliability`` is derived by the source searcher when the record is
    created and never recomputed.
    """

    url: str = Field(..., description="Source URL")
    title: str = Field("", description="Page title")
    snippet: str = Field("", description="Search result excerpt")
    publish_date: Optional[str] = Field(None, description="Approximate publication date (ISO)")
    domain: str = Field("", description="Host name of the source")
    reliability: float = Field(..., ge=0.0, le=1.0, description="Derived trust estimate (0-1)")


class VerifiedClaim(CamelModel):
    """A statement supported by the available sources."""

    statement: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    supporting_sources: List[SourceRecord] = Field(default_factory=list)


class UnverifiedClaim(CamelModel):
    """A statement the sources do not support."""

    statement: str
    reason: str
    suggested_correction: Optional[str] = None


class FactCheckVerdict(CamelModel):
    """Aggregated fact verification result for one article."""

    is_factual: bool
    verified_claims: List[VerifiedClaim] = Field(default_factory=list)
    unverified_claims: List[UnverifiedClaim] = Field(default_factory=list)
    sources_used: List[SourceRecord] = Field(default_factory=list, description="Unique by URL")
    confidence: float = Field(..., ge=0.0, le=1.0)
