"""Adaptive outbound request router with strategy fallback.

A logical request is executed against an ordered plan of transport
strategies (``direct`` and, when a proxy endpoint is configured, ``proxy``).
The plan is ranked from :class:`StrategyStore` history unless the caller
forces a transport or disables cross-strategy retries. Each attempt:

1. builds fresh fingerprint headers (merged with caller headers and cookie),
2. sends the request on an independent client with redirects disabled,
3. validates the response and records the outcome in the store.

The first valid response is returned immediately. Failed strategies are
followed by a jittered 1-3s pause before the next one. When the plan is
exhausted :class:`AllStrategiesFailedError` is raised with the last failure.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx
from pydantic import BaseModel, Field

from social_fetch.config.settings import ProxyConfig
from social_fetch.middleware.error_handler import (
    AllStrategiesFailedError,
    ConfigurationError,
    InvalidResponseError,
    ScraperError,
    TransportError,
)
from social_fetch.routing.fingerprint import HeaderFingerprinter
from social_fetch.routing.strategy_store import StrategyStore
from social_fetch.routing.validation import is_valid_response, rejection_reason

logger = logging.getLogger(__name__)

DIRECT = "direct"
PROXY = "proxy"

ClientFactory = Callable[[str | None, float], httpx.AsyncClient]


def default_client_factory(proxy: str | None, timeout_seconds: float) -> httpx.AsyncClient:
    """Create a single-use client, routed through *proxy* when given."""
    return httpx.AsyncClient(
        proxy=proxy,
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=False,
    )


class RequestOptions(BaseModel):
    """Per-call options for :meth:`AdaptiveRequestRouter.make_request`."""

    method: str = "GET"
    params: dict[str, Any] | None = None
    json_body: Any = None
    use_proxy_override: bool | None = None  # Force a transport instead of ranking
    max_retries: int | None = Field(default=None, ge=1)  # Attempt budget for the whole plan
    retry_across_strategies: bool = True
    extra_headers: dict[str, str] = Field(default_factory=dict)
    cookie: str | None = None
    referer: str | None = None


@dataclass(frozen=True)
class PlannedStrategy:
    """One entry of a request plan."""

    name: str
    use_proxy: bool


DIRECT_STRATEGY = PlannedStrategy(name=DIRECT, use_proxy=False)
PROXY_STRATEGY = PlannedStrategy(name=PROXY, use_proxy=True)


@dataclass
class RequestOutcome:
    """Result of a single attempt."""

    strategy: str
    elapsed_ms: float
    valid: bool
    status_code: int | None = None
    data: Any = None
    error: ScraperError | None = None


@dataclass
class RequestResult:
    """The first valid response of a logical request."""

    data: Any
    strategy: str
    response_time_ms: float
    status_code: int = 200


class AdaptiveRequestRouter:
    """Executes outbound requests across ranked transport strategies.

    Args:
        store: Shared strategy statistics, read to rank and written after
            every attempt.
        proxy_config: Proxy availability resolved at startup.
        fingerprinter: Header generator; one set is drawn per attempt.
        timeout_seconds: Per-attempt timeout.
        max_retries: Default attempt budget for a plan.
        delay_base_ms: Fixed part of the pause between failed strategies.
        delay_jitter_ms: Upper bound of the random part of that pause.
        client_factory: Builds the client for one attempt from
            ``(proxy_url, timeout_seconds)``.
        sleep: Awaitable sleep taking seconds.
        rng: Source of randomness for the delay jitter.
    """

    def __init__(
        self,
        store: StrategyStore,
        proxy_config: ProxyConfig,
        *,
        fingerprinter: HeaderFingerprinter | None = None,
        timeout_seconds: float = 25.0,
        max_retries: int = 3,
        delay_base_ms: int = 1000,
        delay_jitter_ms: int = 2000,
        client_factory: ClientFactory | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._proxy_config = proxy_config
        self._fingerprinter = fingerprinter or HeaderFingerprinter()
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._delay_base_ms = delay_base_ms
        self._delay_jitter_ms = delay_jitter_ms
        self._client_factory = client_factory or default_client_factory
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def store(self) -> StrategyStore:
        return self._store

    @property
    def proxy_available(self) -> bool:
        return self._proxy_config.available

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self, options: RequestOptions) -> list[PlannedStrategy]:
        """Compute the ordered strategies for one call.

        Raises ``ConfigurationError`` when the proxy is forced but no proxy
        endpoint is configured.
        """
        if options.use_proxy_override is not None:
            if options.use_proxy_override and not self.proxy_available:
                raise ConfigurationError(
                    "Proxy strategy forced but no proxy endpoint is configured"
                )
            return [PROXY_STRATEGY if options.use_proxy_override else DIRECT_STRATEGY]

        default_name = self._proxy_config.default_strategy

        if not options.retry_across_strategies:
            return [PROXY_STRATEGY if default_name == PROXY else DIRECT_STRATEGY]

        if not self.proxy_available:
            plan = [DIRECT_STRATEGY]
        elif self._store.best_strategy_name(default_name) == PROXY:
            plan = [PROXY_STRATEGY, DIRECT_STRATEGY]
        else:
            plan = [DIRECT_STRATEGY, PROXY_STRATEGY]

        budget = options.max_retries or self._max_retries
        return plan[:budget]

    def inter_strategy_delay(self) -> float:
        """Return the pause in seconds before trying the next strategy."""
        jitter = self._rng.uniform(0, self._delay_jitter_ms)
        return (self._delay_base_ms + jitter) / 1000

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def make_request(
        self, url: str, options: RequestOptions | None = None
    ) -> RequestResult:
        """Return the first valid response for *url* across the planned strategies."""
        options = options or RequestOptions()
        plan = self.plan(options)
        outcomes: list[RequestOutcome] = []

        for index, planned in enumerate(plan):
            outcome = await self._attempt(url, planned, options)
            outcomes.append(outcome)
            self._store.record_outcome(planned.name, outcome.valid, outcome.elapsed_ms)

            if outcome.valid:
                logger.info(
                    "Request succeeded with %s strategy (%.0fms)",
                    planned.name,
                    outcome.elapsed_ms,
                    extra={
                        "strategy": planned.name,
                        "target_url": url,
                        "duration_ms": round(outcome.elapsed_ms),
                        "status_code": outcome.status_code,
                    },
                )
                return RequestResult(
                    data=outcome.data,
                    strategy=planned.name,
                    response_time_ms=outcome.elapsed_ms,
                    status_code=outcome.status_code or 200,
                )

            logger.warning(
                "Strategy %s failed, %d remaining",
                planned.name,
                len(plan) - index - 1,
                extra={
                    "strategy": planned.name,
                    "target_url": url,
                    "duration_ms": round(outcome.elapsed_ms),
                    "status_code": outcome.status_code,
                    "error_reason": outcome.error.message if outcome.error else None,
                    "attempt": index + 1,
                },
            )

            if index < len(plan) - 1:
                await self._sleep(self.inter_strategy_delay())

        last_error = outcomes[-1].error if outcomes else None
        logger.error(
            "All %d strategies failed",
            len(outcomes),
            extra={"target_url": url},
        )
        raise AllStrategiesFailedError(last_error, outcomes) from last_error

    async def _attempt(
        self, url: str, planned: PlannedStrategy, options: RequestOptions
    ) -> RequestOutcome:
        """Send one request with *planned* and classify the response."""
        proxy = self._proxy_config.proxy_endpoint if planned.use_proxy else None
        headers = self._build_headers(options)

        logger.debug(
            "Attempting request with %s strategy",
            planned.name,
            extra={"strategy": planned.name, "target_url": url},
        )

        start = time.perf_counter()
        try:
            async with self._client_factory(proxy, self._timeout_seconds) as client:
                response = await client.request(
                    options.method,
                    url,
                    params=options.params,
                    json=options.json_body,
                    headers=headers,
                )
                data = self._decode(response)
        except httpx.HTTPError as exc:
            elapsed_ms = (time.perf_counter() - start) * 1000
            error = TransportError(
                f"{planned.name} strategy: {exc.__class__.__name__}: {exc}",
                strategy=planned.name,
            )
            error.__cause__ = exc
            if planned.use_proxy and isinstance(exc, httpx.ProxyError):
                logger.warning(
                    "Proxy connection issue; check that the proxy zone accepts HTTP proxying",
                    extra={"strategy": planned.name},
                )
            return RequestOutcome(
                strategy=planned.name,
                elapsed_ms=elapsed_ms,
                valid=False,
                error=error,
            )

        elapsed_ms = (time.perf_counter() - start) * 1000
        status_code = response.status_code

        if is_valid_response(data, status_code):
            return RequestOutcome(
                strategy=planned.name,
                elapsed_ms=elapsed_ms,
                valid=True,
                status_code=status_code,
                data=data,
            )

        return RequestOutcome(
            strategy=planned.name,
            elapsed_ms=elapsed_ms,
            valid=False,
            status_code=status_code,
            data=data,
            error=InvalidResponseError(
                f"{planned.name} strategy: {rejection_reason(data, status_code)}",
                strategy=planned.name,
                status_code=status_code,
            ),
        )

    def _build_headers(self, options: RequestOptions) -> httpx.Headers:
        """Fresh fingerprint headers, overridden by caller headers and cookie."""
        headers = httpx.Headers(self._fingerprinter.generate(options.referer))
        headers.update(options.extra_headers)
        if options.cookie:
            headers["Cookie"] = options.cookie
        return headers

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode JSON payloads; return everything else as text."""
        content_type = response.headers.get("content-type", "").lower()
        if "application/json" in content_type or "+json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text
