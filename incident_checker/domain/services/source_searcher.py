"""Discovery and reliability scoring of web sources for fact verification."""

import asyncio
import datetime
import logging
import re
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlparse

from ..models.verification import SourceRecord
from ..ports.search_provider import SearchHit, SearchProvider

logger = logging.getLogger(__name__)

BASE_SCORE = 0.5

# News, security and blockchain-forensics outlets.
RELIABLE_DOMAINS = (
    "reuters.com",
    "bloomberg.com",
    "techcrunch.com",
    "zdnet.com",
    "wired.com",
    "securityweek.com",
    "bleepingcomputer.com",
    "theregister.com",
    "thehackernews.com",
    "krebsonsecurity.com",
    "cyberscoop.com",
    "darkreading.com",
    "threatpost.com",
    "cointelegraph.com",
    "coindesk.com",
    "bitcoin.com",
    "bitcoinmagazine.com",
    "ciphertrace.com",
    "chainalysis.com",
    "elliptic.co",
)

# Code hosting, reference wiki and discussion platforms.
MEDIUM_RELIABLE_DOMAINS = (
    "medium.com",
    "github.com",
    "gitlab.com",
    "wikipedia.org",
    "reddit.com",
)

_DOMAIN_FORMAT = re.compile(r"^[a-z0-9][a-z0-9.-]*\.[a-z]{2,}$")
_RELATIVE_AGE = re.compile(r"(\d+)\s+(day|month|year)s?\s+ago", re.IGNORECASE)
_DAYS_PER_UNIT = {"day": 1, "month": 30, "year": 365}


def _matches_domain(domain: str, known: str) -> bool:
    return domain == known or domain.endswith("." + known)


def extract_domain(url: str) -> str:
    """Host name of ``url``, lower-cased, or an empty string."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        logger.warning(f"Failed to extract domain from URL: {url}")
        return ""


def age_in_days(age: Optional[str]) -> Optional[int]:
    """Convert a relative age such as ``"3 months ago"`` to days."""
    if not age:
        return None
    match = _RELATIVE_AGE.search(age)
    if not match:
        return None
    amount, unit = match.groups()
    return int(amount) * _DAYS_PER_UNIT[unit.lower()]


def publish_date_from_age(age: Optional[str], today: Optional[datetime.date] = None) -> Optional[str]:
    """Approximate ISO publication date for a relative age."""
    match = _RELATIVE_AGE.search(age or "")
    if not match:
        return None
    today = today or datetime.date.today()
    amount, unit = int(match.group(1)), match.group(2).lower()
    if unit == "day":
        return (today - datetime.timedelta(days=amount)).isoformat()
    if unit == "month":
        month_index = today.year * 12 + today.month - 1 - amount
        year, month = divmod(month_index, 12)
        day = min(today.day, 28)
        return datetime.date(year, month + 1, day).isoformat()
    return datetime.date(today.year - amount, today.month, min(today.day, 28)).isoformat()


def score_reliability(hit: SearchHit, domain: Optional[str] = None) -> float:
    """Deterministic trust estimate for a search result, in [0, 1]."""
    score = BASE_SCORE

    domain = (domain if domain is not None else hit.domain or "").lower()
    if not domain:
        logger.warning(f"Missing domain for search result {hit.url}")
        return score
    if not _DOMAIN_FORMAT.match(domain):
        logger.warning(f"Invalid domain format: {domain}")
        return score

    if domain.endswith(".gov") or domain.endswith(".edu"):
        score += 0.3
    elif domain.endswith(".org"):
        score += 0.2
    elif domain.endswith(".com") or domain.endswith(".net"):
        if any(_matches_domain(domain, known) for known in RELIABLE_DOMAINS):
            score += 0.25
        elif any(_matches_domain(domain, known) for known in MEDIUM_RELIABLE_DOMAINS):
            score += 0.15

    days = age_in_days(hit.age)
    if days is not None:
        if days <= 180:
            score += 0.1
        elif days <= 365:
            score += 0.05

    snippet_length = len(hit.description or "")
    if snippet_length > 200:
        score += 0.15
    elif snippet_length > 100:
        score += 0.1

    return min(1.0, max(0.0, score))


class SourceSearcher:
    """Searches the web for each query and keeps the reliable, unique results."""

    def __init__(
        self,
        search_provider: SearchProvider,
        max_results_per_query: int = 5,
        min_reliability_score: float = 0.6,
        query_delay: float = 0.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        today: Optional[Callable[[], datetime.date]] = None,
    ):
        """Initialize the searcher.

        Args:
            search_provider: Web search port implementation
            max_results_per_query: Results considered per query
            min_reliability_score: Sources scoring below this are dropped
            query_delay: Pause after each query, seconds
            sleep: Awaitable sleep, injectable for tests
            today: Date provider used for publish dates
        """
        self._provider = search_provider
        self._max_results = max_results_per_query
        self._min_reliability = min_reliability_score
        self._query_delay = query_delay
        self._sleep = sleep
        self._today = today or datetime.date.today

    def to_source(self, hit: SearchHit) -> SourceRecord:
        """Build a scored source record from a search hit."""
        domain = (hit.domain or extract_domain(hit.url)).lower()
        return SourceRecord(
            url=hit.url,
            title=hit.title,
            snippet=hit.description or "",
            publish_date=publish_date_from_age(hit.age, self._today()),
            domain=domain,
            reliability=score_reliability(hit, domain),
        )

    async def _search(self, query: str) -> List[SourceRecord]:
        hits = await self._provider.search(query)
        sources = [self.to_source(hit) for hit in hits[: self._max_results]]
        kept = [source for source in sources if source.reliability >= self._min_reliability]
        logger.debug(
            f"Query '{query}': {len(hits)} results, {len(kept)} above "
            f"reliability {self._min_reliability}"
        )
        return kept

    async def find_sources(self, queries: List[str]) -> List[SourceRecord]:
        """Find reliable sources for every query, unique by URL."""
        logger.info(f"🔎 Starting source search for {len(queries)} queries")

        found: List[SourceRecord] = []
        seen_urls = set()
        for query in queries:
            for source in await self._search(query):
                if source.url not in seen_urls:
                    seen_urls.add(source.url)
                    found.append(source)
            # Search provider rate limit
            await self._sleep(self._query_delay)

        logger.info(
            f"✅ Source search completed: {len(found)} sources from "
            f"{len({source.domain for source in found})} domains"
        )
        return found
