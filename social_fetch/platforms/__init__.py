"""Per-platform tiered fetchers built on the adaptive request router."""

from social_fetch.platforms.base import FetchTier, PlatformFetcher, normalize_handle
from social_fetch.platforms.registry import FetcherRegistry, build_registry

__all__ = [
    "FetchTier",
    "FetcherRegistry",
    "PlatformFetcher",
    "build_registry",
    "normalize_handle",
]
