"""FastAPI application entry point.

Settings are resolved once in ``create_app``: the proxy configuration, the
shared strategy store, the adaptive router and the platform fetchers are
built there and injected into the routers. Nothing reads the environment
per request.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from social_fetch.config.settings import FetchSettings, ProxyConfig
from social_fetch.logging_config import configure_logging
from social_fetch.middleware.error_handler import register_error_handlers
from social_fetch.platforms.registry import build_registry
from social_fetch.routers.health import create_health_router
from social_fetch.routers.scrape import create_scrape_router
from social_fetch.routing.router import AdaptiveRequestRouter, ClientFactory
from social_fetch.routing.strategy_store import StrategyStore

logger = logging.getLogger(__name__)


def build_router(
    settings: FetchSettings,
    store: StrategyStore,
    proxy_config: ProxyConfig,
    client_factory: ClientFactory | None = None,
) -> AdaptiveRequestRouter:
    """Create the adaptive router from settings."""
    return AdaptiveRequestRouter(
        store,
        proxy_config,
        timeout_seconds=settings.request_timeout_seconds,
        max_retries=settings.max_retries,
        delay_base_ms=settings.strategy_delay_base_ms,
        delay_jitter_ms=settings.strategy_delay_jitter_ms,
        client_factory=client_factory,
    )


def create_app(
    settings: FetchSettings | None = None,
    *,
    client_factory: ClientFactory | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or FetchSettings()

    if configure_logs:
        configure_logging(settings.log_level, json_output=settings.json_logs)

    proxy_config = ProxyConfig.from_settings(settings)
    store = StrategyStore()
    router = build_router(settings, store, proxy_config, client_factory)
    registry = build_registry(settings, router)

    logger.info(
        "Request router initialized: proxy %s, default strategy %s",
        "available" if proxy_config.available else "not available",
        proxy_config.default_strategy,
    )

    app = FastAPI(
        title="Social Fetch Service",
        version="1.0.0",
    )

    register_error_handlers(app)

    app.include_router(
        create_health_router(
            proxy_config=proxy_config,
            strategy_store=store,
            registry=registry,
        )
    )
    app.include_router(create_scrape_router(registry=registry))

    app.state.strategy_store = store
    app.state.request_router = router
    app.state.registry = registry

    return app
