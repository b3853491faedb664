"""Request/token budgets and retry policy around inference calls."""

import asyncio
import logging
import math
import random
import time
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, Field

from ..errors import TransientServiceError
from ..ports.inference_provider import InferenceProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class RetryPolicy(BaseModel):
    """Exponential backoff with jitter, bounded by attempts and total time."""

    max_attempts: int = Field(default=3, ge=1, description="Attempts including the first call")
    base_delay: float = Field(default=1.0, description="Delay before the first retry, seconds")
    multiplier: float = Field(default=2.0, description="Backoff growth factor")
    max_delay: Optional[float] = Field(default=None, description="Cap on the backoff delay, seconds")
    max_jitter: float = Field(default=0.0, description="Absolute random jitter added, seconds")
    jitter_ratio: float = Field(default=0.0, description="Random jitter as a fraction of the delay")
    max_total_duration: float = Field(default=60.0, description="Give up after this many seconds")

    def backoff_delay(self, retry_number: int, rng: Callable[[], float] = random.random) -> float:
        """Delay before retry ``retry_number`` (0 for the first retry)."""
        delay = self.base_delay * (self.multiplier ** retry_number)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay + rng() * (self.max_jitter + delay * self.jitter_ratio)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "call",
        retry_on: Tuple[Type[BaseException], ...] = (TransientServiceError,),
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
        rng: Callable[[], float] = random.random,
    ) -> T:
        """Run ``operation`` until it succeeds or the policy is exhausted.

        Only exceptions listed in ``retry_on`` are retried; anything else
        propagates immediately. When retries run out the last error is raised.
        """
        started = clock()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except retry_on as e:
                elapsed = clock() - started
                if attempt >= self.max_attempts:
                    logger.error(f"❌ {description} failed after {attempt} attempts: {e}")
                    raise
                delay = self.backoff_delay(attempt - 1, rng)
                if elapsed + delay > self.max_total_duration:
                    logger.error(
                        f"❌ {description} exceeded maximum retry time "
                        f"({self.max_total_duration:.0f}s) after {attempt} attempts: {e}"
                    )
                    raise
                logger.warning(
                    f"⚠️ {description} attempt {attempt}/{self.max_attempts} failed ({e}), "
                    f"retrying in {delay:.2f}s"
                )
                await sleep(delay)


# Overload retries around claim extraction.
EXTRACTION_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    base_delay=5.0,
    jitter_ratio=0.1,
    max_total_duration=60.0,
)

# Transient-failure retries around each fact verification chunk.
VERIFICATION_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    base_delay=1.0,
    max_delay=8.0,
    max_jitter=1.0,
    max_total_duration=60.0,
)


class RateLimitConfig(BaseModel):
    """Per-minute budgets of the inference service."""

    requests_per_minute: int = Field(default=50, description="Maximum requests per window")
    input_tokens_per_minute: int = Field(default=40000, description="Maximum input tokens per window")
    output_tokens_per_minute: int = Field(default=8000, description="Output tokens before warning")
    min_request_interval: float = Field(default=1.2, description="Minimum spacing between requests, seconds")
    window_seconds: float = Field(default=60.0, description="Length of the budget window, seconds")


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four UTF-8 bytes."""
    return math.ceil(len(text.encode("utf-8")) / 4)


class RateLimitedCallAdapter:
    """Wraps an inference provider with budget enforcement and retries.

    The window counters are shared by every caller holding this adapter.
    Submissions are processed one at a time by the job sequencer, so the
    counters need no locking of their own.
    """

    def __init__(
        self,
        provider: InferenceProvider,
        config: Optional[RateLimitConfig] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
        rng: Callable[[], float] = random.random,
    ):
        self._provider = provider
        self._config = config or RateLimitConfig()
        self._sleep = sleep
        self._clock = clock
        self._rng = rng
        self._window_start = clock()
        self._requests = 0
        self._input_tokens = 0
        self._output_tokens = 0
        self._last_request_at: Optional[float] = None

    @property
    def requests_this_window(self) -> int:
        return self._requests

    @property
    def input_tokens_this_window(self) -> int:
        return self._input_tokens

    @property
    def output_tokens_this_window(self) -> int:
        return self._output_tokens

    def _reset_window(self, now: float) -> None:
        self._window_start = now
        self._requests = 0
        self._input_tokens = 0
        self._output_tokens = 0
        logger.debug("Rate limit window reset")

    def _roll_window_if_needed(self) -> None:
        now = self._clock()
        if now - self._window_start >= self._config.window_seconds:
            self._reset_window(now)

    async def _wait_for_rollover(self, reason: str) -> None:
        remaining = self._config.window_seconds - (self._clock() - self._window_start)
        if remaining > 0:
            logger.warning(f"⏳ {reason}, waiting {remaining:.1f}s for the rate limit window")
            await self._sleep(remaining)
        self._reset_window(self._clock())

    async def _wait_for_budget(self, estimated_tokens: int) -> None:
        self._roll_window_if_needed()

        if self._requests >= self._config.requests_per_minute:
            await self._wait_for_rollover("Request budget exhausted")
        elif self._input_tokens + estimated_tokens > self._config.input_tokens_per_minute:
            await self._wait_for_rollover("Input token budget exhausted")

        if self._last_request_at is not None:
            since_last = self._clock() - self._last_request_at
            if since_last < self._config.min_request_interval:
                await self._sleep(self._config.min_request_interval - since_last)

    async def call(
        self,
        prompt: str,
        *,
        retry_policy: RetryPolicy = EXTRACTION_RETRY_POLICY,
        description: str = "Inference call",
        max_tokens: int = 4096,
        request_timeout: float = 20.0,
        read_timeout: float = 15.0,
    ) -> str:
        """Send ``prompt`` to the provider within the budgets, retrying transient failures."""
        estimated = estimate_tokens(prompt)

        async def attempt() -> str:
            await self._wait_for_budget(estimated)
            self._last_request_at = self._clock()
            self._requests += 1
            self._input_tokens += estimated
            logger.info(
                f"🤖 {description}: request {self._requests}/{self._config.requests_per_minute} "
                f"this window, ~{estimated} input tokens"
            )
            return await self._provider.complete(
                prompt,
                max_tokens=max_tokens,
                request_timeout=request_timeout,
                read_timeout=read_timeout,
            )

        text = await retry_policy.execute(
            attempt,
            description=description,
            sleep=self._sleep,
            clock=self._clock,
            rng=self._rng,
        )

        self._output_tokens += estimate_tokens(text)
        if self._output_tokens > self._config.output_tokens_per_minute:
            logger.warning(
                f"⚠️ Output token budget exceeded ({self._output_tokens}/"
                f"{self._config.output_tokens_per_minute}), later requests may be throttled"
            )
        return text
