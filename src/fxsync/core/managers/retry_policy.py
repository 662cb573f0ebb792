"""Backoff computation for retryable outcomes.

All durations are milliseconds. Jitter is drawn from an injectable
``random.Random`` so tests can pin it.
"""

from __future__ import annotations

import random
from typing import Optional

from fxsync.core.config import ExecutorConfig
from fxsync.core.models.outcome import (
    BackoffDecision,
    EdgeBlocked,
    NetworkFailure,
    RateLimited,
    ServerTransient,
)


class RetryPolicy:
    """Decides whether and how long to wait after a failed attempt.

    - network failures and 5xx: capped exponential, ``min(cap, base * 2^(n-1))``
    - 429: the server's Retry-After when given, else the capped exponential
    - edge blocks: linear in the attempt, ``min(edge_cap, step * n)``, with a
      wider jitter, since proxy-side blocks clear slowly
    """

    def __init__(self, config: ExecutorConfig, rng: Optional[random.Random] = None):
        self.config = config
        self._rng = rng or random.Random()

    def exponential_ms(self, attempt: int) -> float:
        return min(self.config.backoff_cap_ms, self.config.backoff_base_ms * 2 ** (attempt - 1))

    def edge_block_ms(self, attempt: int) -> float:
        return min(self.config.edge_block_cap_ms, self.config.edge_block_step_ms * attempt)

    def _jitter(self, ceiling: float) -> float:
        return self._rng.uniform(0, ceiling) if ceiling > 0 else 0.0

    def wait_ms(self, outcome, attempt: int) -> float:
        """Wait before the attempt following ``attempt``, jitter included."""
        if isinstance(outcome, EdgeBlocked):
            return self.edge_block_ms(attempt) + self._jitter(self.config.edge_block_jitter_ms)
        if isinstance(outcome, RateLimited) and outcome.retry_after_ms is not None:
            base = outcome.retry_after_ms
        elif isinstance(outcome, (RateLimited, ServerTransient, NetworkFailure)):
            base = self.exponential_ms(attempt)
        else:
            raise ValueError(f"no backoff for outcome kind={outcome.kind}")
        return base + self._jitter(self.config.jitter_ms)

    def decide(self, outcome, attempt: int) -> BackoffDecision:
        """Continue with a wait, or abort because the outcome is final or the
        budget is spent."""
        if not outcome.retryable or attempt >= self.config.max_attempts:
            return BackoffDecision(wait_ms=0.0, retry=False)
        return BackoffDecision(wait_ms=self.wait_ms(outcome, attempt), retry=True)
