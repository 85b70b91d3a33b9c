"""Scrape endpoint.

- POST /api/v1/scrape/{platform}: fetch recent posts for an account
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter

from social_fetch.models.requests import ScrapeRequest
from social_fetch.models.responses import ApiResponse

if TYPE_CHECKING:
    from social_fetch.platforms.registry import FetcherRegistry

logger = logging.getLogger(__name__)


def create_scrape_router(*, registry: FetcherRegistry) -> APIRouter:
    """Factory that creates the scrape router with injected dependencies."""
    scrape_router = APIRouter(prefix="/api/v1/scrape", tags=["scrape"])

    @scrape_router.post("/{platform}")
    async def scrape(platform: str, body: ScrapeRequest) -> dict:
        """Fetch posts through the platform's tiers; errors map to the envelope."""
        fetcher = registry.get(platform)
        feed = await fetcher.fetch(body.username)

        return ApiResponse.ok(
            feed.model_dump(mode="json"),
            fetch_method=feed.fetch_method,
            strategy=feed.strategy,
            total_posts=feed.total_posts,
        ).model_dump()

    return scrape_router
