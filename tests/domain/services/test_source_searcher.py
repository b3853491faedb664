"""Tests for source discovery and reliability scoring."""

import datetime
from unittest.mock import AsyncMock

import pytest

from incident_checker.domain.ports.search_provider import SearchHit
from incident_checker.domain.services.source_searcher import (
    SourceSearcher,
    age_in_days,
    extract_domain,
    publish_date_from_age,
    score_reliability,
)


def hit(url: str, description: str = "", age=None, domain=None) -> SearchHit:
    return SearchHit(title="Title", url=url, description=description, age=age, domain=domain)


class TestScoring:
    """Deterministic reliability scores."""

    def test_government_source_with_long_recent_snippet_is_capped(self):
        result = hit("https://www.cisa.gov/news", "x" * 250, age="30 days ago", domain="www.cisa.gov")

        assert score_reliability(result) == 1.0

    def test_missing_domain_scores_base(self):
        assert score_reliability(hit("not a url", "x" * 250)) == 0.5

    def test_malformed_domain_scores_base(self):
        assert score_reliability(hit("https://x", "x" * 250, domain="-bad_domain")) == 0.5

    @pytest.mark.parametrize("domain, expected", [
        ("www.reuters.com", 0.75),
        ("reuters.com", 0.75),
        ("github.com", 0.65),
        ("somewhere.com", 0.5),
        ("mit.edu", 0.8),
        ("example.org", 0.7),
        ("wikipedia.org", 0.7),
        ("notreuters.com", 0.5),
    ])
    def test_domain_bonuses(self, domain, expected):
        assert score_reliability(hit(f"https://{domain}/a", domain=domain)) == pytest.approx(expected)

    @pytest.mark.parametrize("age, bonus", [
        ("2 days ago", 0.1),
        ("6 months ago", 0.1),
        ("7 months ago", 0.05),
        ("1 year ago", 0.05),
        ("2 years ago", 0.0),
        ("March 3, 2021", 0.0),
    ])
    def test_age_bonus(self, age, bonus):
        result = hit("https://somewhere.com/a", age=age, domain="somewhere.com")

        assert score_reliability(result) == pytest.approx(0.5 + bonus)

    @pytest.mark.parametrize("length, bonus", [(50, 0.0), (150, 0.1), (201, 0.15)])
    def test_snippet_bonus(self, length, bonus):
        result = hit("https://somewhere.com/a", "x" * length, domain="somewhere.com")

        assert score_reliability(result) == pytest.approx(0.5 + bonus)


def test_extract_domain():
    assert extract_domain("https://News.Example.com/path?q=1") == "news.example.com"
    assert extract_domain("not a url") == ""


def test_age_in_days():
    assert age_in_days("3 months ago") == 90
    assert age_in_days("1 year ago") == 365
    assert age_in_days(None) is None


def test_publish_date_from_age():
    today = datetime.date(2024, 5, 31)

    assert publish_date_from_age("10 days ago", today) == "2024-05-21"
    assert publish_date_from_age("3 months ago", today) == "2024-02-28"
    assert publish_date_from_age("1 year ago", today) == "2023-05-28"
    assert publish_date_from_age("yesterday", today) is None


class TestSourceSearcher:
    """Querying, filtering and deduplication."""

    @pytest.fixture
    def search_provider(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def searcher(self, search_provider, fake_clock) -> SourceSearcher:
        return SourceSearcher(
            search_provider,
            sleep=fake_clock.sleep,
            today=lambda: datetime.date(2024, 5, 31),
        )

    @pytest.mark.asyncio
    async def test_filters_unreliable_and_duplicate_sources(self, searcher, search_provider, fake_clock):
        reliable = hit("https://www.reuters.com/a", "x" * 150, age="2 days ago")
        unreliable = hit("https://blog.somewhere.com/b", "short")
        search_provider.search.side_effect = [
            [reliable, unreliable],
            [reliable, hit("https://www.cisa.gov/c", "y" * 120)],
        ]

        sources = await searcher.find_sources(["first query", "second query"])

        assert [source.url for source in sources] == ["https://www.reuters.com/a", "https://www.cisa.gov/c"]
        assert sources[0].domain == "www.reuters.com"
        assert sources[0].reliability == pytest.approx(0.95)
        assert sources[0].publish_date == "2024-05-29"
        assert fake_clock.sleeps == [0.2, 0.2]

    @pytest.mark.asyncio
    async def test_considers_only_the_first_results(self, search_provider, fake_clock):
        searcher = SourceSearcher(search_provider, max_results_per_query=2, sleep=fake_clock.sleep)
        search_provider.search.return_value = [
            hit(f"https://site{i}.gov/a", domain=f"site{i}.gov") for i in range(5)
        ]

        sources = await searcher.find_sources(["query"])

        assert len(sources) == 2

    @pytest.mark.asyncio
    async def test_no_queries(self, searcher, search_provider, fake_clock):
        assert await searcher.find_sources([]) == []
        search_provider.search.assert_not_awaited()
        assert fake_clock.sleeps == []
