"""In-memory performance history for outbound request strategies.

Each strategy (``"direct"`` or ``"proxy"``) keeps success/failure counters,
the time it was last attempted and a running mean of response latency.
Ranking combines success rate with a recency bonus:

    score = 0.7 * success_rate + 0.3 * max(0, 1 - hours_since_last_use / 24)

Strategies are created lazily on their first recorded outcome and never
removed. State lives for the process lifetime only.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Callable

SUCCESS_WEIGHT = 0.7
RECENCY_WEIGHT = 0.3
RECENCY_WINDOW_HOURS = 24.0


@dataclass
class StrategyStats:
    """Rolling statistics for a single named strategy."""

    name: str
    success_count: int = 0
    failure_count: int = 0
    last_used_at: float = 0.0  # epoch seconds
    average_response_time_ms: float = 0.0

    @property
    def attempts(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.success_count / self.attempts


class StrategyStore:
    """Records attempt outcomes per strategy and answers ranking queries.

    Args:
        clock: Returns the current wall-clock time in epoch seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._strategies: dict[str, StrategyStats] = {}

    def _get_or_create(self, name: str) -> StrategyStats:
        """Get existing stats for a strategy or create a zeroed entry."""
        if name not in self._strategies:
            self._strategies[name] = StrategyStats(name=name)
        return self._strategies[name]

    def record_outcome(self, name: str, success: bool, response_time_ms: float) -> None:
        """Record one attempt and fold its latency into the running mean."""
        stats = self._get_or_create(name)

        if success:
            stats.success_count += 1
        else:
            stats.failure_count += 1

        total = stats.attempts
        stats.average_response_time_ms = (
            stats.average_response_time_ms * (total - 1) + response_time_ms
        ) / total
        stats.last_used_at = self._clock()

    def score(self, name: str) -> float | None:
        """Return the ranking score for a strategy, or ``None`` if never attempted."""
        stats = self._strategies.get(name)
        if stats is None or stats.attempts == 0:
            return None

        hours_since = max(0.0, self._clock() - stats.last_used_at) / 3600
        recency_bonus = max(0.0, 1 - hours_since / RECENCY_WINDOW_HOURS)
        return SUCCESS_WEIGHT * stats.success_rate + RECENCY_WEIGHT * recency_bonus

    def best_strategy_name(self, default_name: str) -> str:
        """Return the highest-scoring attempted strategy, or *default_name*.

        Ties keep the strategy that was recorded first.
        """
        best_name: str | None = None
        best_score = -1.0

        for name in self._strategies:
            score = self.score(name)
            if score is None:
                continue
            if score > best_score:
                best_score = score
                best_name = name

        return best_name if best_name is not None else default_name

    def get(self, name: str) -> StrategyStats | None:
        return self._strategies.get(name)

    def snapshot(self) -> dict[str, dict]:
        """Return a copy of every strategy's statistics keyed by name."""
        return {
            name: {key: value for key, value in asdict(stats).items() if key != "name"}
            for name, stats in self._strategies.items()
        }
