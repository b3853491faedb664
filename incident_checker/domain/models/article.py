"""Domain models for submitted incident articles."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_SECTIONS = (
    "Summary",
    "Attackers",
    "Losses",
    "Timeline",
    "Security Failure Causes",
)


class FrontMatterRecord(BaseModel):
    """Metadata block at the top of an incident article.

    Values are kept exactly as parsed from YAML so that validation can report
    each violated rule; see ``StructuralValidator.validate_front_matter``.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    date: Any = Field(None, description="Incident date, YYYY-MM-DD")
    target_entities: Any = Field(None, alias="target-entities", description="Attacked entities")
    entity_types: Any = Field(None, alias="entity-types", description="Kinds of attacked entities")
    attack_types: Any = Field(None, alias="attack-types", description="Attack classification")
    title: Any = Field(None, description="Article title")
    loss: Any = Field(None, description="Numeric loss amount")


class SectionCheck(BaseModel):
    """Outcome of checking a section map against the required set."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    missing_required: List[str] = Field(default_factory=list)
    additional: List[str] = Field(default_factory=list)


class StructuralReport(BaseModel):
    """Aggregated structural validation of one article."""

    front_matter: Optional[FrontMatterRecord] = None
    front_matter_valid: bool = False
    sections_valid: bool = False
    section_titles: List[str] = Field(default_factory=list)
    missing_required_sections: List[str] = Field(default_factory=list)
    additional_sections: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Whether the article passed every structural rule."""
        return self.front_matter_valid and self.sections_valid and not self.errors
