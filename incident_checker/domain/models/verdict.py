"""Domain model for the final article validation verdict."""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .article import FrontMatterRecord
from .base import CamelModel
from .duplication import DuplicationVerdict
from .verification import FactCheckVerdict


class VerdictStatus(str, Enum):
    """Overall outcome of a validation run."""

    SUCCESS = "success"
    FAILURE = "failure"


class ValidationVerdict(CamelModel):
    """Everything the pipeline learned about one submission."""

    filename: str = Field(..., description="Submitted file name")
    is_valid: bool = Field(..., description="Whether the article may be accepted")
    status: VerdictStatus = Field(..., description="success when is_valid, otherwise failure")
    message: str = Field(..., description="One-line human-readable summary")
    errors: List[str] = Field(default_factory=list, description="Structural errors")
    warnings: List[str] = Field(default_factory=list, description="Non-fatal issues")
    front_matter: Optional[FrontMatterRecord] = None
    front_matter_valid: bool = False
    sections_valid: bool = False
    missing_required_sections: List[str] = Field(default_factory=list)
    additional_sections: List[str] = Field(default_factory=list)
    duplication_check: Optional[DuplicationVerdict] = None
    fact_check: Optional[FactCheckVerdict] = None
    error: Optional[str] = Field(None, description="Unexpected failure, if the run aborted")

    def to_dict(self) -> dict:
        """Convert the verdict to a JSON-ready dictionary."""
        return self.model_dump(mode="json", by_alias=True)
