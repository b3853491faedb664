"""Detection of submissions that duplicate an article already in the corpus."""

import logging
import posixpath
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import SchemaError
from ..models.duplication import ComparisonOutcome, DuplicationVerdict
from ..ports.comparison_oracle import ComparisonOracle
from ..ports.corpus_provider import CorpusProvider
from .oracle_payload import Invalid, validate_payload

logger = logging.getLogger(__name__)

DEFAULT_CORPUS_DIRECTORY = "content/research/cyberattacks/incidents"


class _ComparisonPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, extra="forbid")

    has_new_information: bool
    differences: List[str]
    similarity_score: float = Field(..., ge=0.0, le=1.0)


def parse_comparison(reply: str) -> ComparisonOutcome:
    """Validate an oracle comparison reply.

    Raises:
        SchemaError: If the reply is not exactly the expected object
    """
    result = validate_payload(reply, _ComparisonPayload)
    if isinstance(result, Invalid):
        logger.error(f"❌ Invalid comparison result structure: {result.reasons}")
        raise SchemaError("Invalid comparison response from comparison oracle", result.reasons)
    payload = result.value
    return ComparisonOutcome(
        has_new_information=payload.has_new_information,
        differences=payload.differences,
        similarity_score=payload.similarity_score,
    )


class DuplicationDetector:
    """Compares a submission with same-named articles in the corpus."""

    def __init__(
        self,
        corpus: CorpusProvider,
        oracle: ComparisonOracle,
        corpus_directory: str = DEFAULT_CORPUS_DIRECTORY,
        similarity_threshold: float = 0.8,
    ):
        self._corpus = corpus
        self._oracle = oracle
        self._directory = corpus_directory
        self._threshold = similarity_threshold

    @property
    def similarity_threshold(self) -> float:
        return self._threshold

    async def find_candidates(self, filename: str) -> List[str]:
        """Paths of corpus entries sharing the submission's base name."""
        base_name = posixpath.basename(filename.replace("\\", "/"))
        entries = await self._corpus.list_entries(self._directory)
        candidates = [entry.path for entry in entries if entry.name == base_name]
        logger.info(f"🔍 Found {len(candidates)} duplicate candidate(s) for {base_name}")
        return candidates

    async def check_duplication(self, content: str, filename: str) -> DuplicationVerdict:
        """Decide whether ``content`` duplicates an existing article.

        Candidates are compared in listing order. The first conclusive
        comparison decides the verdict: a high score without new information
        marks a duplicate, new information clears the submission.

        Raises:
            SchemaError: If the oracle reply is malformed
            CorpusError: If the corpus cannot be read
        """
        for path in await self.find_candidates(filename):
            existing = await self._corpus.fetch_content(path)
            logger.info(f"🤖 Comparing submission with {path}")
            comparison = parse_comparison(await self._oracle.compare(content, existing))
            logger.info(
                f"Similarity {comparison.similarity_score:.2f} with {path}, "
                f"new information: {comparison.has_new_information}"
            )

            if comparison.similarity_score > self._threshold and not comparison.has_new_information:
                logger.warning(f"⚠️ Submission duplicates {path}")
                return DuplicationVerdict(is_duplicate=True, matched_path=path, comparison=comparison)
            if comparison.has_new_information:
                logger.info(f"✅ Submission adds new information to {path}")
                return DuplicationVerdict(is_duplicate=False, matched_path=path, comparison=comparison)

        logger.info("✅ No duplicate found")
        return DuplicationVerdict(is_duplicate=False)
