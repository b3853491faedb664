"""Tests for the service container wiring."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from incident_checker.domain.services.article_pipeline import PipelineConfig
from incident_checker.infrastructure.corpus.github_adapter import GitHubCorpusAdapter
from incident_checker.infrastructure.corpus.local_adapter import LocalCorpusAdapter
from incident_checker.infrastructure.dependencies import ServiceContainer, load_pipeline_config


def test_pipeline_config_defaults():
    with patch.dict(os.environ, {}, clear=True):
        config = load_pipeline_config()

    assert config == PipelineConfig()


def test_pipeline_config_from_environment():
    env = {
        "DUPLICATE_SIMILARITY_THRESHOLD": "0.9",
        "FACT_CHECK_CONFIDENCE_THRESHOLD": "0.6",
        "CORPUS_DIRECTORY": "articles",
    }
    with patch.dict(os.environ, env, clear=True):
        config = load_pipeline_config()

    assert config.similarity_threshold == 0.9
    assert config.fact_check_threshold == 0.6
    assert config.corpus_directory == "articles"


def test_invalid_threshold_falls_back_to_default():
    with patch.dict(os.environ, {"FACT_CHECK_CONFIDENCE_THRESHOLD": "high"}, clear=True):
        config = load_pipeline_config()

    assert config.fact_check_threshold == PipelineConfig().fact_check_threshold


def test_build_pipeline_without_providers():
    container = ServiceContainer(config=PipelineConfig())

    pipeline = container.build_pipeline(None, None, None, None)

    assert pipeline._detector is None
    assert pipeline._extractor is None
    assert pipeline._verifier is None
    assert pipeline._searcher is None
    assert not pipeline.fact_checking_enabled


def test_build_pipeline_shares_call_adapter():
    config = PipelineConfig(similarity_threshold=0.85, corpus_directory="articles")
    container = ServiceContainer(config=config)

    pipeline = container.build_pipeline(AsyncMock(), AsyncMock(), AsyncMock(), AsyncMock())

    assert pipeline._extractor._adapter is pipeline._verifier._adapter
    assert pipeline._detector._threshold == 0.85
    assert pipeline._detector._directory == "articles"
    assert pipeline.fact_checking_enabled
    assert pipeline.config is config


def test_duplication_check_needs_corpus_and_oracle():
    container = ServiceContainer(config=PipelineConfig())

    pipeline = container.build_pipeline(None, AsyncMock(), None, None)

    assert pipeline._detector is None


@pytest.mark.asyncio
async def test_initialize_without_credentials():
    with patch.dict(os.environ, {}, clear=True):
        container = ServiceContainer(config=PipelineConfig())
        pipeline = await container.get_pipeline()

    assert not pipeline.fact_checking_enabled
    assert container.provider_status == {
        "ai_providers": {"Claude": False, "Openrouter": False},
        "search_providers": {"Brave": False},
        "corpus_providers": {"Corpus": False},
    }
    assert await container.get_pipeline() is pipeline


@pytest.mark.asyncio
async def test_initialize_with_local_corpus(tmp_path):
    with patch.dict(os.environ, {"LOCAL_CORPUS_PATH": str(tmp_path)}, clear=True):
        container = ServiceContainer(config=PipelineConfig())
        await container.initialize()

    assert isinstance(container._corpus, LocalCorpusAdapter)
    assert container.provider_status["corpus_providers"] == {"Corpus": True}


@pytest.mark.asyncio
async def test_github_corpus_takes_precedence(tmp_path):
    env = {
        "GITHUB_TOKEN": "token",
        "GITHUB_REPOSITORY": "acme/incidents",
        "LOCAL_CORPUS_PATH": str(tmp_path),
    }
    with patch.dict(os.environ, env, clear=True):
        container = ServiceContainer(config=PipelineConfig())
        await container.initialize()

    assert isinstance(container._corpus, GitHubCorpusAdapter)
    await container.shutdown()
    assert container._corpus is None


@pytest.mark.asyncio
async def test_corpus_override_is_kept(tmp_path):
    corpus = LocalCorpusAdapter(tmp_path)
    with patch.dict(os.environ, {"GITHUB_TOKEN": "token", "GITHUB_REPOSITORY": "acme/incidents"}, clear=True):
        container = ServiceContainer(config=PipelineConfig(), corpus=corpus)
        await container.initialize()

    assert container._corpus is corpus


@pytest.mark.asyncio
async def test_shutdown_closes_providers():
    container = ServiceContainer(config=PipelineConfig())
    search = MagicMock()
    search.shutdown = AsyncMock()
    container._search = search

    await container.shutdown()

    search.shutdown.assert_awaited_once()
    assert container.provider_status["search_providers"] == {"Brave": False}
