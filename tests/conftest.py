"""Test configuration and common fixtures."""

import json
from typing import List
from unittest.mock import AsyncMock

import pytest

from incident_checker.domain.models.claims import ExtractedClaims, ExtractedEntities, TechnicalDetails
from incident_checker.domain.models.verification import SourceRecord
from incident_checker.domain.services.rate_limiter import RateLimitedCallAdapter

VALID_ARTICLE = """---
date: 2024-03-15
target-entities: Example Exchange
entity-types:
  - exchange
attack-types: private key compromise
title: Example Exchange Hot Wallet Breach
loss: 1500000
---

## Summary
Attackers drained the hot wallet of Example Exchange.

## Attackers
An unidentified group linked to earlier exchange thefts.

## Losses
About 1.5 million USD in assorted tokens.

## Timeline
- 2024-03-15: Suspicious withdrawals detected.
- 2024-03-16: Exchange paused withdrawals.

## Security Failure Causes
A private key stored on an internet-facing server.
"""


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += max(seconds, 0.0)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a clock that never really waits."""
    return FakeClock()


@pytest.fixture
def valid_article() -> str:
    """Provide a structurally valid incident article."""
    return VALID_ARTICLE


@pytest.fixture
def inference_provider() -> AsyncMock:
    """Provide a mock inference provider."""
    provider = AsyncMock()
    provider.complete = AsyncMock(return_value="{}")
    return provider


@pytest.fixture
def call_adapter(inference_provider, fake_clock) -> RateLimitedCallAdapter:
    """Provide a rate-limited adapter driven by the fake clock, without jitter."""
    return RateLimitedCallAdapter(
        inference_provider,
        sleep=fake_clock.sleep,
        clock=fake_clock,
        rng=lambda: 0.0,
    )


@pytest.fixture
def sample_claims() -> ExtractedClaims:
    """Provide extracted claims for the valid article."""
    return ExtractedClaims(
        key_statements=[
            "Example Exchange lost 1.5 million USD",
            "The breach happened on 2024-03-15",
        ],
        entities=ExtractedEntities(
            organizations=["Example Exchange"],
            dates=["2024-03-15"],
            amounts=["1.5 million USD"],
        ),
        search_queries=["Example Exchange hack 2024"],
        technical_details=TechnicalDetails(attack_vectors=["private key compromise"]),
    )


@pytest.fixture
def sample_sources() -> List[SourceRecord]:
    """Provide discovered sources of varying reliability."""
    return [
        SourceRecord(
            url="https://www.reuters.com/example-exchange-hack",
            title="Example Exchange hacked",
            snippet="Example Exchange lost 1.5 million USD in a hot wallet breach.",
            domain="www.reuters.com",
            reliability=0.9,
        ),
        SourceRecord(
            url="https://example.org/report",
            title="Incident report",
            snippet="Report on the breach.",
            domain="example.org",
            reliability=0.7,
        ),
    ]


@pytest.fixture
def fact_check_reply():
    """Provide a builder for well-formed fact verification replies."""
    return build_fact_check_reply


def build_fact_check_reply(**overrides) -> str:
    payload = {
        "isFactual": True,
        "verifiedFacts": [
            {
                "statement": "Example Exchange lost 1.5 million USD",
                "confidence": 0.9,
                "sources": [{"url": "https://www.reuters.com/example-exchange-hack", "title": "Reuters"}],
            }
        ],
        "unreliableFacts": [],
        "sourcesUsed": [{"url": "https://www.reuters.com/example-exchange-hack", "title": "Reuters"}],
        "confidence": 0.9,
    }
    payload.update(overrides)
    return json.dumps(payload)
