"""Tests for the article validation pipeline."""

import json
from unittest.mock import AsyncMock

import pytest

from incident_checker.domain.errors import TransientServiceError
from incident_checker.domain.models.claims import ExtractedClaims
from incident_checker.domain.models.duplication import ComparisonOutcome, DuplicationVerdict
from incident_checker.domain.models.job import JobState
from incident_checker.domain.models.verdict import VerdictStatus
from incident_checker.domain.models.verification import FactCheckVerdict
from incident_checker.domain.ports.search_provider import SearchHit
from incident_checker.domain.services.article_pipeline import ArticleValidationPipeline, PipelineConfig
from incident_checker.domain.services.fact_verifier import FactVerifier
from incident_checker.domain.services.source_searcher import SourceSearcher
from incident_checker.domain.services.statement_extractor import StatementExtractor


def fact_check(confidence: float) -> FactCheckVerdict:
    return FactCheckVerdict(is_factual=True, confidence=confidence)


@pytest.fixture
def detector() -> AsyncMock:
    detector = AsyncMock()
    detector.check_duplication.return_value = DuplicationVerdict(is_duplicate=False)
    return detector


@pytest.fixture
def extractor(sample_claims) -> AsyncMock:
    extractor = AsyncMock()
    extractor.extract.return_value = sample_claims
    return extractor


@pytest.fixture
def searcher(sample_sources) -> AsyncMock:
    searcher = AsyncMock()
    searcher.find_sources.return_value = sample_sources
    return searcher


@pytest.fixture
def verifier() -> AsyncMock:
    verifier = AsyncMock()
    verifier.verify_facts.return_value = fact_check(0.9)
    return verifier


@pytest.fixture
def pipeline(detector, extractor, searcher, verifier) -> ArticleValidationPipeline:
    return ArticleValidationPipeline(
        duplication_detector=detector,
        statement_extractor=extractor,
        source_searcher=searcher,
        fact_verifier=verifier,
    )


@pytest.mark.asyncio
async def test_valid_article_with_confident_fact_check(pipeline, valid_article, sample_claims, sample_sources, verifier):
    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert verdict.is_valid
    assert verdict.status is VerdictStatus.SUCCESS
    assert verdict.errors == []
    assert verdict.front_matter.title == "Example Exchange Hot Wallet Breach"
    assert verdict.fact_check.confidence == 0.9
    verifier.verify_facts.assert_awaited_once_with(sample_claims, sample_sources)


@pytest.mark.asyncio
async def test_low_fact_check_confidence_is_invalid(pipeline, verifier, valid_article):
    verifier.verify_facts.return_value = fact_check(0.5)

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert not verdict.is_valid
    assert verdict.status is VerdictStatus.FAILURE
    assert verdict.front_matter_valid and verdict.sections_valid


@pytest.mark.asyncio
async def test_fact_check_threshold_is_configurable(detector, extractor, searcher, verifier, valid_article):
    verifier.verify_facts.return_value = fact_check(0.5)
    pipeline = ArticleValidationPipeline(
        duplication_detector=detector,
        statement_extractor=extractor,
        source_searcher=searcher,
        fact_verifier=verifier,
        config=PipelineConfig(fact_check_threshold=0.4),
    )

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert verdict.is_valid


@pytest.mark.asyncio
async def test_duplicate_stops_the_pipeline(pipeline, detector, extractor, valid_article):
    detector.check_duplication.return_value = DuplicationVerdict(
        is_duplicate=True,
        matched_path="incidents/example-hack.md",
        comparison=ComparisonOutcome(has_new_information=False, differences=[], similarity_score=0.9),
    )

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert not verdict.is_valid
    assert verdict.duplication_check.is_duplicate
    assert "incidents/example-hack.md" in verdict.message
    assert verdict.front_matter is None
    extractor.extract.assert_not_awaited()


@pytest.mark.asyncio
async def test_structural_failure_skips_fact_check(pipeline, extractor):
    verdict = await pipeline.validate_article("## Summary\nNo front matter.", "bad.md")

    assert not verdict.is_valid
    assert "Front matter not found or invalid format" in verdict.errors
    assert verdict.missing_required_sections == ["Attackers", "Losses", "Timeline", "Security Failure Causes"]
    assert verdict.fact_check is None
    assert verdict.error is None
    assert verdict.message == "Article validation failed"
    extractor.extract.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_sections_alone_stop_before_fact_check(pipeline, extractor, valid_article):
    content = valid_article.split("## Attackers")[0]

    verdict = await pipeline.validate_article(content, "example-hack.md")

    assert not verdict.is_valid
    assert verdict.front_matter_valid
    assert verdict.error is None
    assert "Attackers" in verdict.missing_required_sections
    extractor.extract.assert_not_awaited()


@pytest.mark.asyncio
async def test_impossible_date_is_a_structural_failure(pipeline, extractor, valid_article):
    content = valid_article.replace("date: 2024-03-15", "date: 2024-13-45")

    verdict = await pipeline.validate_article(content, "example-hack.md")

    assert not verdict.is_valid
    assert verdict.error is None
    assert "Date must be in YYYY-MM-DD format" in verdict.errors
    extractor.extract.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_failure_yields_failed_verdict(pipeline, extractor, valid_article):
    extractor.extract.side_effect = TransientServiceError("Claude API request timed out after 20.0s")

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert not verdict.is_valid
    assert verdict.status is VerdictStatus.FAILURE
    assert "timed out" in verdict.error
    assert verdict.error.startswith("Fact check failed")
    assert verdict.front_matter_valid
    assert verdict.duplication_check is not None


@pytest.mark.asyncio
async def test_corpus_failure_yields_failed_verdict(pipeline, detector, valid_article):
    detector.check_duplication.side_effect = RuntimeError("corpus unreachable")

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert not verdict.is_valid
    assert verdict.error == "Duplication check failed: corpus unreachable"


@pytest.mark.asyncio
async def test_no_statements_skips_fact_check(pipeline, extractor, searcher, valid_article):
    extractor.extract.return_value = ExtractedClaims()

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert verdict.is_valid
    assert verdict.fact_check is None
    assert any("fact check skipped" in warning for warning in verdict.warnings)
    searcher.find_sources.assert_not_awaited()


@pytest.mark.asyncio
async def test_unconfigured_stages_are_skipped(valid_article):
    pipeline = ArticleValidationPipeline()

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert verdict.is_valid
    assert verdict.duplication_check is None
    assert verdict.fact_check is None
    assert len(verdict.warnings) == 2


@pytest.mark.asyncio
async def test_verdict_serialises_with_camel_case_keys(pipeline, valid_article):
    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    data = verdict.to_dict()

    assert data["isValid"] is True
    assert data["status"] == "success"
    assert data["missingRequiredSections"] == []
    assert data["frontMatter"]["target-entities"] == "Example Exchange"
    assert data["factCheck"]["confidence"] == 0.9


@pytest.mark.asyncio
async def test_submit_runs_job_and_renders_report(pipeline, valid_article):
    job = await pipeline.submit(valid_article, "example-hack.md")

    assert job.state is JobState.COMPLETED
    assert job.result.status == "success"
    assert "Article Validation Successful" in job.result.message
    assert job.result.details["filename"] == "example-hack.md"
    assert pipeline.sequencer.current_job is None


@pytest.mark.asyncio
async def test_end_to_end_with_real_services(
    call_adapter, inference_provider, fake_clock, valid_article, detector, fact_check_reply,
):
    extraction = {
        "keyStatements": ["Example Exchange lost 1.5 million USD"],
        "entities": {"organizations": ["Example Exchange"], "people": [], "locations": [],
                     "dates": ["2024-03-15"], "amounts": ["1.5 million USD"]},
        "searchQueries": ["Example Exchange hack"],
        "technicalDetails": {"attackVectors": [], "vulnerabilities": [], "impactedSystems": []},
    }
    inference_provider.complete.side_effect = [json.dumps(extraction), fact_check_reply()]
    search_provider = AsyncMock()
    search_provider.search.return_value = [
        SearchHit(
            title="Reuters",
            url="https://www.reuters.com/example-exchange-hack",
            description="x" * 250,
            age="3 days ago",
        ),
    ]
    pipeline = ArticleValidationPipeline(
        duplication_detector=detector,
        statement_extractor=StatementExtractor(call_adapter),
        source_searcher=SourceSearcher(search_provider, sleep=fake_clock.sleep),
        fact_verifier=FactVerifier(call_adapter),
    )

    verdict = await pipeline.validate_article(valid_article, "example-hack.md")

    assert verdict.is_valid
    assert verdict.fact_check.sources_used[0].reliability == 1.0
    assert verdict.fact_check.confidence == pytest.approx(0.4 * 0.9 + 0.3 + 0.3 * 1.0)
    assert call_adapter.requests_this_window == 2
