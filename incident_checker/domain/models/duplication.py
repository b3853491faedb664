"""Domain models for duplicate detection."""

from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class ComparisonOutcome(CamelModel):
    """Result of comparing a submission with one existing article."""

    has_new_information: bool = Field(..., description="Whether the submission adds information")
    differences: List[str] = Field(default_factory=list, description="Notable differences")
    similarity_score: float = Field(..., ge=0.0, le=1.0, description="Similarity (0-1)")


class DuplicationVerdict(CamelModel):
    """Outcome of checking a submission against the corpus."""

    is_duplicate: bool = Field(..., description="Whether the submission is a duplicate")
    matched_path: Optional[str] = Field(None, description="Corpus path of the compared article")
    comparison: Optional[ComparisonOutcome] = Field(None, description="Conclusive comparison, if any")
