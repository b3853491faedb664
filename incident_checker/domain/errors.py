"""Error taxonomy for the article checking pipeline."""

from typing import List, Optional


class ArticleCheckerError(Exception):
    """Base class for all article checker errors."""


class StructuralError(ArticleCheckerError):
    """Malformed front matter or sections.

    Raised by the pipeline to end a run before fact checking; the findings
    themselves are reported in the verdict, not propagated to the caller.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid article structure")


class DuplicateContentError(ArticleCheckerError):
    """The submission duplicates an article already in the corpus."""

    def __init__(self, verdict):
        self.verdict = verdict
        super().__init__(f"Article duplicates existing file: {verdict.matched_path}")


class SchemaError(ArticleCheckerError):
    """An oracle response failed shape validation. Never retried."""

    def __init__(self, message: str, reasons: Optional[List[str]] = None):
        self.reasons = list(reasons or [])
        detail = f"{message}: {'; '.join(self.reasons)}" if self.reasons else message
        super().__init__(detail)


class ServiceError(ArticleCheckerError):
    """A non-retryable failure reported by an external service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TransientServiceError(ServiceError):
    """A 5xx, timeout or connection failure that may succeed on retry."""


class ServiceOverloadedError(TransientServiceError):
    """The inference service reported overload (HTTP 529)."""


class RateLimitExceeded(TransientServiceError):
    """The external service rejected the call with HTTP 429."""


class CorpusError(ArticleCheckerError):
    """The article corpus could not be read."""


class CorpusNotFoundError(CorpusError):
    """The requested corpus path does not exist."""


class PipelineError(ArticleCheckerError):
    """Unexpected failure caught at the orchestrator boundary."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {cause}")


class SequencerBusyError(ArticleCheckerError):
    """The job sequencer lock is held by another caller."""
