"""Markdown rendering of validation verdicts for reviewers."""

from typing import List

from ..models.article import REQUIRED_SECTIONS
from ..models.verdict import ValidationVerdict

HIGHLIGHT_CONFIDENCE = 0.8

REQUIRED_STRUCTURE = (
    "#### Required Article Structure:\n"
    "1. Front matter with:\n"
    "   - date (YYYY-MM-DD)\n"
    "   - target-entities\n"
    "   - entity-types (array)\n"
    "   - attack-types\n"
    "   - title\n"
    "   - loss (number)\n\n"
    "2. Required sections:\n"
    + "\n".join(f"   - {section}" for section in REQUIRED_SECTIONS)
)


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def _bullets(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _render_fact_check(verdict: ValidationVerdict) -> str:
    fact_check = verdict.fact_check
    text = "#### Fact-Checking Results:\n"
    if fact_check.verified_claims:
        lines = [
            f"- {claim.statement} (Confidence: {_percent(claim.confidence)})\n"
            f"  Sources: {', '.join(source.url for source in claim.supporting_sources)}"
            for claim in fact_check.verified_claims
        ]
        text += "\n**Verified Facts:**\n" + "\n".join(lines) + "\n\n"
    if fact_check.unverified_claims:
        lines = []
        for claim in fact_check.unverified_claims:
            line = f"- {claim.statement}\n  Reason: {claim.reason}"
            if claim.suggested_correction:
                line += f"\n  Suggested Correction: {claim.suggested_correction}"
            lines.append(line)
        text += "**Unreliable Facts:**\n" + "\n".join(lines) + "\n\n"
    text += f"**Overall Fact-Check Confidence:** {_percent(fact_check.confidence)}\n\n"
    return text


def render_failure(verdict: ValidationVerdict) -> str:
    message = "### Article Validation Failed\n\n"

    if verdict.error:
        return message + f"An error occurred while checking the article: {verdict.error}\n"

    duplication = verdict.duplication_check
    if duplication is not None and duplication.is_duplicate:
        message += (
            "#### Duplication Check Results:\n"
            f"This article appears to be a duplicate of: {duplication.matched_path}\n\n"
            "**Similarity Analysis:**\n"
        )
        if duplication.comparison is not None:
            message += f"- Similarity Score: {duplication.comparison.similarity_score * 100:.2f}%\n"
        return message

    if not verdict.front_matter_valid and verdict.errors:
        message += "#### Front Matter Issues:\n" + _bullets(verdict.errors) + "\n\n"

    if not verdict.sections_valid:
        if verdict.missing_required_sections:
            message += "#### Missing Required Sections:\n" + _bullets(verdict.missing_required_sections) + "\n\n"
        if verdict.additional_sections:
            message += "#### Additional Unexpected Sections:\n" + _bullets(verdict.additional_sections) + "\n\n"

    if verdict.fact_check is not None:
        message += _render_fact_check(verdict)

    if verdict.warnings:
        message += "#### Warnings:\n" + _bullets(verdict.warnings) + "\n\n"

    return message + REQUIRED_STRUCTURE


def render_success(verdict: ValidationVerdict) -> str:
    message = "### Article Validation Successful! 🎉\n\n"

    duplication = verdict.duplication_check
    if duplication is not None and duplication.comparison is not None and duplication.comparison.has_new_information:
        message += (
            "#### New Information Detected\n"
            "While a similar article exists, this submission contains valuable new information:\n\n"
            + _bullets(duplication.comparison.differences)
            + "\n\n"
        )

    fact_check = verdict.fact_check
    if fact_check is not None:
        highlights = [
            f"{claim.statement} ({_percent(claim.confidence)} confidence)"
            for claim in fact_check.verified_claims
            if claim.confidence > HIGHLIGHT_CONFIDENCE
        ]
        message += (
            "#### Fact-Checking Results\n"
            f"Successfully verified {len(fact_check.verified_claims)} facts with "
            f"{len(fact_check.sources_used)} reliable sources.\n\n"
            "**Key Verified Facts:**\n"
            + _bullets(highlights)
            + "\n\n"
            f"**Overall Fact-Check Confidence:** {_percent(fact_check.confidence)}\n\n"
        )

    if verdict.warnings:
        message += "#### Warnings:\n" + _bullets(verdict.warnings) + "\n\n"

    message += (
        "#### Validated Components:\n"
        "- ✅ Front matter format and required fields\n"
        "- ✅ All required sections present\n"
        "- ✅ Section content validation\n"
        "- ✅ Duplication check\n"
    )
    if fact_check is not None:
        message += "- ✅ Fact verification\n"
    return message + "\nThe article is ready for review!"


def render_report(verdict: ValidationVerdict) -> str:
    """Render ``verdict`` as a Markdown summary."""
    if verdict.is_valid:
        return render_success(verdict)
    return render_failure(verdict)
