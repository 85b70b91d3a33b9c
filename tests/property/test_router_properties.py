"""Property tests for adaptive routing.

For any mix of upstream behaviour per strategy, the router attempts
strategies in plan order, stops at the first valid response, records
exactly one outcome per attempt, and pauses 1-3 seconds only between
attempts.
"""

from __future__ import annotations

import asyncio
import random

import httpx
from hypothesis import given, settings, strategies as st

from social_fetch.config.settings import ProxyConfig
from social_fetch.middleware.error_handler import AllStrategiesFailedError
from social_fetch.routing.router import AdaptiveRequestRouter, RequestOptions
from social_fetch.routing.strategy_store import StrategyStore
from tests.conftest import (
    PROXY_ENDPOINT,
    FakeClock,
    FakeUpstream,
    RecordingSleep,
    blocked,
    connect_error,
    html_ok,
    outcome_sequences,
)


def _challenge(_request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="<html>Please verify</html>", headers={"content-type": "text/html"})


behaviours = st.sampled_from([html_ok, blocked, connect_error, _challenge])


def _build(
    upstream: FakeUpstream, store: StrategyStore, sleep: RecordingSleep, proxy: bool, seed: int
) -> AdaptiveRequestRouter:
    return AdaptiveRequestRouter(
        store,
        ProxyConfig(proxy_endpoint=PROXY_ENDPOINT if proxy else None),
        client_factory=upstream,
        sleep=sleep,
        rng=random.Random(seed),
    )


@settings(max_examples=100, deadline=None)
@given(
    direct=behaviours,
    proxy=behaviours,
    proxy_configured=st.booleans(),
    history=st.lists(st.tuples(st.sampled_from(["direct", "proxy"]), st.booleans(), st.just(100.0)), max_size=10),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
def test_attempts_stop_at_first_valid_response(
    direct, proxy, proxy_configured: bool, history, seed: int
) -> None:
    store = StrategyStore(clock=FakeClock())
    for name, success, elapsed in history:
        store.record_outcome(name, success, elapsed)
    before = {name: (s["success_count"], s["failure_count"]) for name, s in store.snapshot().items()}

    upstream = FakeUpstream({"direct": direct, "proxy": proxy})
    sleep = RecordingSleep()
    router = _build(upstream, store, sleep, proxy_configured, seed)
    plan = [p.name for p in router.plan(RequestOptions())]

    try:
        result = asyncio.run(router.make_request("https://example.com/page"))
    except AllStrategiesFailedError as exc:
        attempted = [o.strategy for o in exc.outcomes]
        assert attempted == plan
        assert all(not o.valid for o in exc.outcomes)
    else:
        attempted = upstream.strategies
        assert attempted[-1] == result.strategy
        assert attempted == plan[: len(attempted)]

    assert upstream.strategies == attempted
    assert len(sleep.calls) == len(attempted) - 1
    assert all(1.0 <= delay <= 3.0 for delay in sleep.calls)

    after = store.snapshot()
    for name in set(attempted):
        old_success, old_failure = before.get(name, (0, 0))
        delta = after[name]["success_count"] - old_success + after[name]["failure_count"] - old_failure
        assert delta == attempted.count(name)


@settings(max_examples=100)
@given(outcomes=outcome_sequences, prefer_proxy=st.booleans())
def test_plan_puts_best_strategy_first(outcomes, prefer_proxy: bool) -> None:
    store = StrategyStore(clock=FakeClock())
    for name, success, elapsed in outcomes:
        store.record_outcome(name, success, elapsed)
    config = ProxyConfig(proxy_endpoint=PROXY_ENDPOINT, prefer_proxy=prefer_proxy)
    router = AdaptiveRequestRouter(store, config, client_factory=FakeUpstream())

    plan = [p.name for p in router.plan(RequestOptions())]

    assert sorted(plan) == ["direct", "proxy"]
    assert plan[0] == store.best_strategy_name(config.default_strategy)


@settings(max_examples=100)
@given(
    override=st.booleans(),
    retry=st.booleans(),
    max_retries=st.one_of(st.none(), st.integers(min_value=1, max_value=5)),
)
def test_plan_never_exceeds_budget_or_includes_unconfigured_proxy(
    override: bool, retry: bool, max_retries: int | None
) -> None:
    router = AdaptiveRequestRouter(StrategyStore(clock=FakeClock()), ProxyConfig())
    options = RequestOptions(
        use_proxy_override=False if override else None,
        retry_across_strategies=retry,
        max_retries=max_retries,
    )
    plan = router.plan(options)
    assert [p.name for p in plan] == ["direct"]
