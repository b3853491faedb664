"""Structural validation of incident articles: front matter and sections."""

import datetime
import logging
import re
from typing import Dict, List, Optional, Tuple

import yaml

from ..models.article import (
    REQUIRED_SECTIONS,
    FrontMatterRecord,
    SectionCheck,
    StructuralReport,
)

logger = logging.getLogger(__name__)

_FRONT_MATTER = re.compile(r"^---\n(?:(.*?)\n)?---(?:\n|$)", re.DOTALL)
_SECTION_HEADING = re.compile(r"^## (.+)$", re.MULTILINE)
_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontMatterLoader(yaml.SafeLoader):
    """Safe loader that keeps dates as written; ``_DATE`` checks their format."""


_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, pattern) for tag, pattern in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _is_date(value) -> bool:
    if not isinstance(value, str) or not _DATE.match(value):
        return False
    try:
        datetime.date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class StructuralValidator:
    """Parses and validates the front matter block and section layout.

    None of the methods raise on malformed input; every problem is reported
    through the returned error lists.
    """

    def __init__(self, required_sections: Tuple[str, ...] = REQUIRED_SECTIONS):
        self._required = tuple(section.strip() for section in required_sections)

    @property
    def required_sections(self) -> Tuple[str, ...]:
        return self._required

    def parse_front_matter(self, text: str) -> Tuple[Optional[FrontMatterRecord], List[str]]:
        """Parse the YAML block delimited by ``---`` lines at the top of ``text``."""
        match = _FRONT_MATTER.match(_normalize_newlines(text))
        if not match:
            return None, ["Front matter not found or invalid format"]

        try:
            data = yaml.load(match.group(1) or "", Loader=_FrontMatterLoader)
        except (yaml.YAMLError, ValueError) as e:
            logger.error(f"Error parsing front matter: {e}")
            return None, [f"Failed to parse front matter: {e}"]

        if data is None:
            data = {}
        if not isinstance(data, dict):
            return None, ["Front matter must be a mapping of keys to values"]

        values = {str(key): value for key, value in data.items()}
        return FrontMatterRecord.model_validate(values), []

    def validate_front_matter(self, record: FrontMatterRecord) -> Tuple[bool, List[str]]:
        """Check the record against the front matter rules."""
        errors: List[str] = []

        if not _is_date(record.date):
            errors.append("Date must be in YYYY-MM-DD format")
        if not record.target_entities:
            errors.append("target-entities is required")
        if not isinstance(record.entity_types, list) or len(record.entity_types) == 0:
            errors.append("entity-types must be a non-empty array")
        if not record.attack_types:
            errors.append("attack-types is required")
        if not record.title:
            errors.append("title is required")
        if not _is_number(record.loss):
            errors.append("loss must be a number")

        return len(errors) == 0, errors

    def extract_sections(self, text: str) -> Tuple[Dict[str, str], List[str]]:
        """Split the article body on level-2 headings.

        Text before the first heading is ignored. Sections with an empty body
        are reported and left out of the returned map.
        """
        errors: List[str] = []
        sections: Dict[str, str] = {}

        body = _FRONT_MATTER.sub("", _normalize_newlines(text), count=1).strip()
        parts = _SECTION_HEADING.split(body)
        if len(parts) < 2:
            errors.append("No sections found in the article")
            logger.debug(f"No level-2 headings in {len(body)} chars of article body")
            return sections, errors

        # parts = [preamble, title1, body1, title2, body2, ...]
        for title, content in zip(parts[1::2], parts[2::2]):
            name = title.strip()
            content = content.strip()
            if not content:
                errors.append(f'Section "{name}" is empty')
                sections.pop(name, None)
                continue
            sections[name] = content
            logger.debug(f"Extracted section '{name}' ({len(content)} chars)")

        logger.debug(f"Found sections: {list(sections)}")
        return sections, errors

    def validate_sections(self, sections: Dict[str, str]) -> SectionCheck:
        """Compare a section map with the required section set."""
        errors = [
            f'Section "{name}" is empty'
            for name, content in sections.items()
            if not content.strip()
        ]
        missing = [name for name in self._required if not sections.get(name, "").strip()]
        additional = [name for name in sections if name not in self._required]

        return SectionCheck(
            is_valid=not missing and not errors,
            errors=errors,
            missing_required=missing,
            additional=additional,
        )

    def validate(self, text: str) -> StructuralReport:
        """Run every structural check on ``text`` and aggregate the findings."""
        errors: List[str] = []

        record, parse_errors = self.parse_front_matter(text)
        errors.extend(parse_errors)
        front_matter_valid = False
        if record is not None:
            front_matter_valid, front_matter_errors = self.validate_front_matter(record)
            errors.extend(front_matter_errors)

        sections, section_errors = self.extract_sections(text)
        errors.extend(section_errors)
        check = self.validate_sections(sections)
        errors.extend(check.errors)

        return StructuralReport(
            front_matter=record,
            front_matter_valid=front_matter_valid,
            sections_valid=check.is_valid,
            section_titles=list(sections),
            missing_required_sections=check.missing_required,
            additional_sections=check.additional,
            errors=errors,
        )
