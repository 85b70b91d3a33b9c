"""Health and strategy statistics endpoints.

- GET /health: service status, proxy availability, configured platforms
- GET /api/v1/strategies: per-strategy request statistics
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from social_fetch.models.responses import ApiResponse

if TYPE_CHECKING:
    from social_fetch.config.settings import ProxyConfig
    from social_fetch.platforms.registry import FetcherRegistry
    from social_fetch.routing.strategy_store import StrategyStore


def create_health_router(
    *,
    proxy_config: ProxyConfig,
    strategy_store: StrategyStore,
    registry: FetcherRegistry | None = None,
) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        """Service health check with proxy and platform configuration."""
        platforms = {}
        if registry is not None:
            platforms = {
                platform.value: registry.get(platform).available_tiers()
                for platform in registry.list_platforms()
            }

        return ApiResponse.ok(
            {
                "status": "healthy",
                "proxy_available": proxy_config.available,
                "default_strategy": proxy_config.default_strategy,
                "platforms": platforms,
            }
        ).model_dump()

    @health_router.get("/api/v1/strategies")
    async def strategies() -> dict:
        """Snapshot of request strategy performance."""
        return ApiResponse.ok(
            {
                "strategies": strategy_store.snapshot(),
                "best": strategy_store.best_strategy_name(proxy_config.default_strategy),
            }
        ).model_dump()

    return health_router
