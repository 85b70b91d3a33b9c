"""Outbound request routing: strategy statistics, fingerprinting, adaptive routing."""

from social_fetch.routing.fingerprint import CURATED_USER_AGENTS, HeaderFingerprinter
from social_fetch.routing.router import (
    DIRECT,
    PROXY,
    AdaptiveRequestRouter,
    PlannedStrategy,
    RequestOptions,
    RequestOutcome,
    RequestResult,
)
from social_fetch.routing.strategy_store import StrategyStats, StrategyStore
from social_fetch.routing.validation import is_valid_response

__all__ = [
    "CURATED_USER_AGENTS",
    "DIRECT",
    "PROXY",
    "AdaptiveRequestRouter",
    "HeaderFingerprinter",
    "PlannedStrategy",
    "RequestOptions",
    "RequestOutcome",
    "RequestResult",
    "StrategyStats",
    "StrategyStore",
    "is_valid_response",
]
