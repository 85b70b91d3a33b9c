"""Unit tests for the strategy store."""

from __future__ import annotations

import pytest

from social_fetch.routing.strategy_store import StrategyStats, StrategyStore
from tests.conftest import FakeClock


class TestStrategyStats:
    """Test StrategyStats dataclass defaults."""

    def test_defaults(self):
        stats = StrategyStats(name="direct")
        assert stats.success_count == 0
        assert stats.failure_count == 0
        assert stats.last_used_at == 0.0
        assert stats.average_response_time_ms == 0.0
        assert stats.attempts == 0
        assert stats.success_rate == 0.0


class TestRecordOutcome:
    """Test StrategyStore.record_outcome()."""

    def test_creates_entry_lazily(self, store: StrategyStore):
        assert store.get("direct") is None
        store.record_outcome("direct", True, 120)
        stats = store.get("direct")
        assert stats is not None
        assert stats.success_count == 1
        assert stats.failure_count == 0

    def test_success_then_failure_average(self, store: StrategyStore):
        store.record_outcome("proxy", True, 300)
        store.record_outcome("proxy", False, 500)
        stats = store.get("proxy")
        assert stats.success_count == 1
        assert stats.failure_count == 1
        assert stats.average_response_time_ms == (300 + 500) / 2

    def test_average_includes_failures(self, store: StrategyStore):
        for elapsed in (100, 200, 600):
            store.record_outcome("direct", False, elapsed)
        assert store.get("direct").average_response_time_ms == pytest.approx(300)

    def test_sets_last_used_at(self, store: StrategyStore, clock: FakeClock):
        store.record_outcome("direct", True, 10)
        assert store.get("direct").last_used_at == clock.now
        clock.advance(60)
        store.record_outcome("direct", False, 10)
        assert store.get("direct").last_used_at == clock.now

    def test_counters_are_independent_per_strategy(self, store: StrategyStore):
        store.record_outcome("direct", True, 10)
        store.record_outcome("proxy", False, 10)
        assert store.get("direct").failure_count == 0
        assert store.get("proxy").success_count == 0


class TestBestStrategyName:
    """Test ranking by success rate and recency."""

    def test_returns_default_without_history(self, store: StrategyStore):
        assert store.best_strategy_name("direct") == "direct"
        assert store.best_strategy_name("proxy") == "proxy"

    def test_high_success_recent_beats_stale_mixed(
        self, store: StrategyStore, clock: FakeClock
    ):
        store.record_outcome("proxy", True, 100)
        store.record_outcome("proxy", False, 100)
        clock.advance(23 * 3600 - 60)
        for _ in range(9):
            store.record_outcome("direct", True, 100)
        store.record_outcome("direct", False, 100)
        clock.advance(60)

        # direct: 0.7 * 0.9 + 0.3 * ~1.0; proxy: 0.7 * 0.5 + 0.3 * ~0.04
        assert store.score("direct") > store.score("proxy")
        assert store.best_strategy_name("proxy") == "direct"

    def test_recency_bonus_decays_to_zero_after_a_day(
        self, store: StrategyStore, clock: FakeClock
    ):
        store.record_outcome("direct", True, 100)
        assert store.score("direct") == pytest.approx(1.0)
        clock.advance(12 * 3600)
        assert store.score("direct") == pytest.approx(0.85)
        clock.advance(24 * 3600)
        assert store.score("direct") == pytest.approx(0.7)

    def test_tie_keeps_first_seen(self, store: StrategyStore):
        store.record_outcome("direct", True, 100)
        store.record_outcome("proxy", True, 100)
        assert store.best_strategy_name("proxy") == "direct"

    def test_failing_strategy_loses(self, store: StrategyStore):
        store.record_outcome("direct", False, 100)
        store.record_outcome("proxy", True, 100)
        assert store.best_strategy_name("direct") == "proxy"

    def test_score_of_unknown_strategy_is_none(self, store: StrategyStore):
        assert store.score("proxy") is None


class TestSnapshot:
    """Test snapshot output."""

    def test_empty_snapshot(self, store: StrategyStore):
        assert store.snapshot() == {}

    def test_snapshot_structure(self, store: StrategyStore, clock: FakeClock):
        store.record_outcome("direct", True, 250)
        assert store.snapshot() == {
            "direct": {
                "success_count": 1,
                "failure_count": 0,
                "last_used_at": clock.now,
                "average_response_time_ms": 250,
            }
        }

    def test_snapshot_is_a_copy(self, store: StrategyStore):
        store.record_outcome("direct", True, 250)
        snap = store.snapshot()
        snap["direct"]["success_count"] = 99
        assert store.get("direct").success_count == 1

    def test_default_clock_is_wall_clock(self):
        import time

        before = time.time()
        live = StrategyStore()
        live.record_outcome("direct", True, 1)
        assert before <= live.get("direct").last_used_at <= time.time()
