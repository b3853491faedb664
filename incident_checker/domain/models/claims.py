"""Domain model for statements extracted from an article."""

from typing import List

from pydantic import Field

from .base import CamelModel


class ExtractedEntities(CamelModel):
    """Named entities mentioned in the article."""

    organizations: List[str] = Field(default_factory=list)
    people: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    amounts: List[str] = Field(default_factory=list)


class TechnicalDetails(CamelModel):
    """Technical description of the incident."""

    attack_vectors: List[str] = Field(default_factory=list)
    vulnerabilities: List[str] = Field(default_factory=list)
    impacted_systems: List[str] = Field(default_factory=list)


class ExtractedClaims(CamelModel):
    """Key statements plus the context needed to verify them."""

    key_statements: List[str] = Field(default_factory=list, description="Atomic factual assertions")
    entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
    search_queries: List[str] = Field(default_factory=list, description="Web queries for verification")
    technical_details: TechnicalDetails = Field(default_factory=TechnicalDetails)

    def with_statements(self, statements: List[str]) -> "ExtractedClaims":
        """Copy carrying the same context but a different statement list."""
        return self.model_copy(update={"key_statements": list(statements)})
