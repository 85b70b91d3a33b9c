"""Platform fetcher registry.

Maps ``Platform`` → ``PlatformFetcher``. Adding a platform only requires a
source class exposing ``fetcher()`` and a ``register()`` call in
:func:`build_registry`.
"""

from __future__ import annotations

import logging

from social_fetch.config.settings import FetchSettings
from social_fetch.middleware.error_handler import UnsupportedPlatformError
from social_fetch.models.posts import Platform
from social_fetch.platforms.base import PlatformFetcher
from social_fetch.platforms.instagram import InstagramSource
from social_fetch.platforms.tiktok import TikTokSource
from social_fetch.platforms.twitter import TwitterSource
from social_fetch.platforms.youtube import YouTubeSource
from social_fetch.routing.router import AdaptiveRequestRouter

logger = logging.getLogger(__name__)


class FetcherRegistry:
    """Registry that maps platforms to their fetchers."""

    def __init__(self) -> None:
        self._fetchers: dict[Platform, PlatformFetcher] = {}

    def register(self, fetcher: PlatformFetcher) -> None:
        """Register a fetcher for its platform.

        Raises
        ------
        ValueError
            If a fetcher for the same platform is already registered.
        """
        platform = fetcher.platform
        if platform in self._fetchers:
            raise ValueError(f"Fetcher for platform '{platform.value}' is already registered")
        self._fetchers[platform] = fetcher
        logger.info(
            "Registered %s fetcher (configured tiers: %s)",
            platform.value,
            ", ".join(fetcher.available_tiers()) or "none",
        )

    def get(self, platform: Platform | str) -> PlatformFetcher:
        """Return the fetcher for *platform*.

        Raises
        ------
        UnsupportedPlatformError
            If the platform is unknown or has no registered fetcher.
        """
        try:
            return self._fetchers[Platform(platform)]
        except (KeyError, ValueError):
            raise UnsupportedPlatformError(
                f"Unsupported platform '{platform}'",
                supported=[p.value for p in self._fetchers],
            ) from None

    def list_platforms(self) -> list[Platform]:
        return list(self._fetchers.keys())


def build_registry(settings: FetchSettings, router: AdaptiveRequestRouter) -> FetcherRegistry:
    """Create fetchers for every supported platform sharing one router."""
    registry = FetcherRegistry()
    for source in (
        YouTubeSource(settings, router),
        TwitterSource(settings, router),
        InstagramSource(settings, router),
        TikTokSource(settings, router),
    ):
        registry.register(source.fetcher())
    return registry
