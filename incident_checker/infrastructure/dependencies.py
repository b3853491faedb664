"""Dependency injection configuration for hexagonal architecture."""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..domain.services.article_pipeline import ArticleValidationPipeline, PipelineConfig
from ..domain.services.duplication_detector import DuplicationDetector
from ..domain.services.fact_verifier import FactVerifier
from ..domain.services.job_sequencer import JobSequencer
from ..domain.services.rate_limiter import RateLimitedCallAdapter
from ..domain.services.source_searcher import SourceSearcher
from ..domain.services.statement_extractor import StatementExtractor
from ..domain.services.structural_validator import StructuralValidator
from .ai.factory import AIProviderFactory
from .corpus.github_adapter import GitHubCorpusAdapter, GitHubCorpusConfig
from .corpus.local_adapter import LocalCorpusAdapter
from .search.brave_adapter import BraveSearchAdapter, BraveSearchConfig

# Try to load .env from current directory or parent directories
load_dotenv()

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"⚠️ Ignoring invalid {name}={value!r}, using {default}")
        return default


def load_pipeline_config() -> PipelineConfig:
    """Pipeline thresholds and corpus location from the environment."""
    defaults = PipelineConfig()
    return PipelineConfig(
        similarity_threshold=_env_float("DUPLICATE_SIMILARITY_THRESHOLD", defaults.similarity_threshold),
        fact_check_threshold=_env_float("FACT_CHECK_CONFIDENCE_THRESHOLD", defaults.fact_check_threshold),
        corpus_directory=os.getenv("CORPUS_DIRECTORY") or defaults.corpus_directory,
    )


class ServiceContainer:
    """Service container for dependency injection.

    Providers whose credentials are missing are left out; the pipeline then
    skips the stages that need them.
    """

    def __init__(self, config: Optional[PipelineConfig] = None, corpus: Optional[Any] = None):
        """Initialize service container.

        Args:
            config: Pipeline configuration, read from the environment if omitted
            corpus: Corpus provider to use instead of the configured one
        """
        self._config = config or load_pipeline_config()
        self._ai_factory = AIProviderFactory()
        self._search: Optional[BraveSearchAdapter] = None
        self._corpus: Optional[Any] = corpus
        self._sequencer = JobSequencer()
        self._pipeline: Optional[ArticleValidationPipeline] = None

    @property
    def ai_factory(self) -> AIProviderFactory:
        return self._ai_factory

    async def _create_ai_provider(self, name: str) -> Optional[Any]:
        try:
            provider = self._ai_factory.get_provider(name)
            if provider is None:
                logger.info(f"🔨 Creating {name} provider...")
                provider = await self._ai_factory.create_provider(name)
            return provider
        except Exception as e:
            logger.warning(f"⚠️ Failed to setup {name} provider: {e}")
            return None

    async def _setup_search(self) -> Optional[BraveSearchAdapter]:
        api_key = os.getenv("BRAVE_API_KEY", "")
        if not api_key:
            logger.warning("⚠️ BRAVE_API_KEY not found in environment variables")
            return None
        adapter = BraveSearchAdapter(BraveSearchConfig(api_key=api_key))
        await adapter.initialize()
        logger.info("✅ Brave Search provider ready")
        return adapter

    async def _setup_corpus(self) -> Optional[Any]:
        token = os.getenv("GITHUB_TOKEN", "")
        repository = os.getenv("GITHUB_REPOSITORY", "")
        if token and repository:
            adapter = GitHubCorpusAdapter(GitHubCorpusConfig(token=token, repository=repository))
            await adapter.initialize()
            logger.info(f"✅ GitHub corpus ready: {repository}")
            return adapter

        local_path = os.getenv("LOCAL_CORPUS_PATH", "")
        if local_path:
            logger.info(f"✅ Local corpus ready: {local_path}")
            return LocalCorpusAdapter(Path(local_path))

        logger.warning("⚠️ No corpus configured (GITHUB_TOKEN/GITHUB_REPOSITORY or LOCAL_CORPUS_PATH)")
        return None

    async def initialize(self) -> None:
        """Create providers and assemble the pipeline."""
        if self._pipeline is not None:
            return
        logger.info("🔧 Setting up service container...")

        claude = await self._create_ai_provider("claude")
        openrouter = await self._create_ai_provider("openrouter")
        try:
            self._search = await self._setup_search()
        except Exception as e:
            logger.warning(f"⚠️ Failed to setup Brave Search provider: {e}")
        if self._corpus is None:
            try:
                self._corpus = await self._setup_corpus()
            except Exception as e:
                logger.warning(f"⚠️ Failed to setup corpus provider: {e}")

        self._pipeline = self.build_pipeline(claude, openrouter, self._search, self._corpus)
        logger.info("✅ Service container setup completed")

    def build_pipeline(
        self,
        inference: Optional[Any],
        comparison: Optional[Any],
        search: Optional[Any],
        corpus: Optional[Any],
    ) -> ArticleValidationPipeline:
        """Wire the pipeline from whichever providers are available."""
        detector = None
        if corpus is not None and comparison is not None:
            detector = DuplicationDetector(
                corpus,
                comparison,
                corpus_directory=self._config.corpus_directory,
                similarity_threshold=self._config.similarity_threshold,
            )

        extractor = verifier = None
        if inference is not None:
            # Extraction and verification share one request/token budget.
            call_adapter = RateLimitedCallAdapter(inference)
            extractor = StatementExtractor(call_adapter)
            verifier = FactVerifier(call_adapter)

        searcher = SourceSearcher(search) if search is not None else None

        return ArticleValidationPipeline(
            structural_validator=StructuralValidator(),
            duplication_detector=detector,
            statement_extractor=extractor,
            source_searcher=searcher,
            fact_verifier=verifier,
            sequencer=self._sequencer,
            config=self._config,
        )

    async def get_pipeline(self) -> ArticleValidationPipeline:
        """Get the article validation pipeline, creating providers on first use."""
        await self.initialize()
        return self._pipeline

    @property
    def provider_status(self) -> Dict[str, Dict[str, bool]]:
        """Availability of every external provider."""
        return {
            "ai_providers": {
                name.title(): available
                for name, available in self._ai_factory.available_providers.items()
            },
            "search_providers": {"Brave": self._search is not None and self._search.is_available},
            "corpus_providers": {"Corpus": self._corpus is not None},
        }

    async def shutdown(self) -> None:
        """Shut down every provider."""
        await self._ai_factory.shutdown()
        for provider in (self._search, self._corpus):
            shutdown = getattr(provider, "shutdown", None)
            if shutdown is not None:
                await shutdown()
        self._search = None
        self._corpus = None
        self._pipeline = None


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance."""
    return ServiceContainer()


async def get_article_pipeline() -> ArticleValidationPipeline:
    """FastAPI dependency for the article validation pipeline."""
    return await get_service_container().get_pipeline()
