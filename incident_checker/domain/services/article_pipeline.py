"""Orchestration of the article validation pipeline."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import DuplicateContentError, PipelineError, StructuralError
from ..models.article import FrontMatterRecord, StructuralReport
from ..models.duplication import DuplicationVerdict
from ..models.job import Job, JobResult
from ..models.verdict import ValidationVerdict, VerdictStatus
from ..models.verification import FactCheckVerdict
from .duplication_detector import DEFAULT_CORPUS_DIRECTORY, DuplicationDetector
from .fact_verifier import FactVerifier
from .job_sequencer import JobSequencer
from .source_searcher import SourceSearcher
from .statement_extractor import StatementExtractor
from .structural_validator import StructuralValidator
from .verdict_report import render_report

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Article validation successful"
FAILURE_MESSAGE = "Article validation failed"


class PipelineConfig(BaseModel):
    """Thresholds and locations used by the pipeline."""

    similarity_threshold: float = Field(
        default=0.8, ge=0.0, le=1.0,
        description="Similarity above which an article without new information is a duplicate",
    )
    fact_check_threshold: float = Field(
        default=0.7, ge=0.0, le=1.0,
        description="Minimum fact check confidence for a valid article",
    )
    corpus_directory: str = Field(
        default=DEFAULT_CORPUS_DIRECTORY,
        description="Corpus directory holding published articles",
    )


@dataclass
class _Progress:
    """Findings collected so far; survives a failure in a later stage."""

    filename: str
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    front_matter: Optional[FrontMatterRecord] = None
    front_matter_valid: bool = False
    sections_valid: bool = False
    missing_required_sections: List[str] = field(default_factory=list)
    additional_sections: List[str] = field(default_factory=list)
    duplication_check: Optional[DuplicationVerdict] = None
    fact_check: Optional[FactCheckVerdict] = None

    def apply(self, report: StructuralReport) -> None:
        self.front_matter = report.front_matter
        self.front_matter_valid = report.front_matter_valid
        self.sections_valid = report.sections_valid
        self.missing_required_sections = list(report.missing_required_sections)
        self.additional_sections = list(report.additional_sections)
        self.errors.extend(report.errors)

    def verdict(self, is_valid: bool, message: str, error: Optional[str] = None) -> ValidationVerdict:
        return ValidationVerdict(
            filename=self.filename,
            is_valid=is_valid,
            status=VerdictStatus.SUCCESS if is_valid else VerdictStatus.FAILURE,
            message=message,
            errors=self.errors,
            warnings=self.warnings,
            front_matter=self.front_matter,
            front_matter_valid=self.front_matter_valid,
            sections_valid=self.sections_valid,
            missing_required_sections=self.missing_required_sections,
            additional_sections=self.additional_sections,
            duplication_check=self.duplication_check,
            fact_check=self.fact_check,
            error=error,
        )


class ArticleValidationPipeline:
    """Runs duplication, structural and fact checks and merges one verdict.

    Collaborators that are not configured are skipped with a warning, so a
    pipeline without corpus access or inference keys still validates the
    article structure.
    """

    def __init__(
        self,
        structural_validator: Optional[StructuralValidator] = None,
        duplication_detector: Optional[DuplicationDetector] = None,
        statement_extractor: Optional[StatementExtractor] = None,
        source_searcher: Optional[SourceSearcher] = None,
        fact_verifier: Optional[FactVerifier] = None,
        sequencer: Optional[JobSequencer] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self._validator = structural_validator or StructuralValidator()
        self._detector = duplication_detector
        self._extractor = statement_extractor
        self._searcher = source_searcher
        self._verifier = fact_verifier
        self._sequencer = sequencer or JobSequencer()
        self._config = config or PipelineConfig()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def sequencer(self) -> JobSequencer:
        return self._sequencer

    @property
    def fact_checking_enabled(self) -> bool:
        return all((self._extractor, self._searcher, self._verifier))

    async def validate_article(self, content: str, filename: str) -> ValidationVerdict:
        """Validate one submission. Never raises.

        Unexpected failures yield a failed verdict carrying the error message
        and whatever earlier stages produced.
        """
        logger.info(f"🔍 Validating article {filename}")
        progress = _Progress(filename=filename)
        stage = "Duplication check"
        try:
            progress.duplication_check = await self._check_duplication(content, filename, progress)

            stage = "Structural validation"
            report = self._validator.validate(content)
            progress.apply(report)

            if not report.is_valid:
                raise StructuralError(report.errors or [
                    f"Missing required sections: {', '.join(report.missing_required_sections)}"
                ])

            stage = "Fact check"
            progress.fact_check = await self._check_facts(content, progress)
        except DuplicateContentError as e:
            progress.duplication_check = e.verdict
            progress.errors.append(str(e))
            logger.warning(f"⚠️ {e}")
            return progress.verdict(False, str(e))
        except StructuralError as e:
            # Findings are already in progress; the run ends without a fact check.
            logger.info(f"Structural validation failed with {len(e.errors)} error(s): {e}")
            return progress.verdict(False, FAILURE_MESSAGE)
        except Exception as e:
            failure = PipelineError(stage, e)
            logger.error(f"❌ Article validation aborted: {failure}", exc_info=True)
            return progress.verdict(False, f"{FAILURE_MESSAGE}: {failure}", error=str(failure))

        is_valid = (
            progress.front_matter_valid
            and progress.sections_valid
            and not progress.errors
            and (
                progress.fact_check is None
                or progress.fact_check.confidence >= self._config.fact_check_threshold
            )
        )
        logger.info(f"{'✅' if is_valid else '❌'} Article {filename} is {'valid' if is_valid else 'invalid'}")
        return progress.verdict(is_valid, SUCCESS_MESSAGE if is_valid else FAILURE_MESSAGE)

    async def _check_duplication(
        self,
        content: str,
        filename: str,
        progress: _Progress,
    ) -> Optional[DuplicationVerdict]:
        if self._detector is None:
            logger.warning("⚠️ Duplication check skipped: no corpus or comparison oracle configured")
            progress.warnings.append("Duplication check skipped: corpus access is not configured")
            return None

        verdict = await self._detector.check_duplication(content, filename)
        if verdict.is_duplicate:
            raise DuplicateContentError(verdict)
        return verdict

    async def _check_facts(self, content: str, progress: _Progress) -> Optional[FactCheckVerdict]:
        if not self.fact_checking_enabled:
            logger.warning("⚠️ Fact check skipped: inference or search services not configured")
            progress.warnings.append("Fact check skipped: inference or search services are not configured")
            return None

        claims = await self._extractor.extract(content)
        if not claims.key_statements:
            logger.warning("⚠️ No key statements extracted, skipping fact check")
            progress.warnings.append("No key statements could be extracted; fact check skipped")
            return None

        sources = await self._searcher.find_sources(claims.search_queries)
        if not sources:
            progress.warnings.append("No reliable sources found for the article's statements")
        return await self._verifier.verify_facts(claims, sources)

    def enqueue(self, content: str, filename: str) -> Job:
        """Register a submission with the job sequencer without running it."""
        return self._sequencer.add_job(filename, content)

    async def drain(self, job: Job) -> None:
        """Run ``job`` if it is active, followed by every job queued behind it."""
        await self._sequencer.run(job, self._run_job)

    async def submit(self, content: str, filename: str) -> Job:
        """Sequence a submission and wait for the active run to finish."""
        job = self.enqueue(content, filename)
        await self.drain(job)
        return job

    async def _run_job(self, job: Job) -> JobResult:
        verdict = await self.validate_article(job.content, job.filename)
        return JobResult(
            status=verdict.status.value,
            message=render_report(verdict),
            details=verdict.to_dict(),
        )
