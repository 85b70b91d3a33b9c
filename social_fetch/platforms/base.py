"""Tiered platform fetching.

A platform is served by an ordered list of :class:`FetchTier` descriptors,
typically official API, then authenticated internal API, then a basic page
scrape. :class:`PlatformFetcher` walks the list in priority order, skips
tiers whose credentials are not configured, and falls through to the next
tier on any fetch failure. Only when every tier has failed does it raise
:class:`PlatformFetchError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from social_fetch.middleware.error_handler import (
    InvalidHandleError,
    PlatformFetchError,
    PlatformResponseError,
    ScraperError,
)
from social_fetch.models.posts import Platform, ProfileFeed

logger = logging.getLogger(__name__)

# Maximum posts returned per feed
MAX_POSTS = 15


@dataclass(frozen=True)
class FetchTier:
    """One fetch method for a platform.

    ``is_available`` gates the tier on configuration (API key, cookies);
    ``attempt`` receives the normalised handle and returns a feed or raises.
    """

    name: str
    is_available: Callable[[], bool]
    attempt: Callable[[str], Awaitable[ProfileFeed]]


def normalize_handle(username: str) -> str:
    """Strip whitespace and leading ``@`` characters from an account handle."""
    handle = username.strip().lstrip("@").strip()
    if not handle:
        raise InvalidHandleError(f"Invalid account handle: {username!r}")
    return handle


class PlatformFetcher:
    """Runs a platform's fetch tiers in priority order with fallthrough."""

    def __init__(self, platform: Platform, tiers: list[FetchTier]) -> None:
        self.platform = platform
        self._tiers = list(tiers)

    @property
    def tier_names(self) -> list[str]:
        return [tier.name for tier in self._tiers]

    def available_tiers(self) -> list[str]:
        return [tier.name for tier in self._tiers if tier.is_available()]

    async def fetch(self, username: str) -> ProfileFeed:
        """Return the first feed produced by an available tier.

        Raises
        ------
        InvalidHandleError
            If *username* is empty after normalisation.
        PlatformFetchError
            If no tier is available or every available tier failed.
        """
        handle = normalize_handle(username)
        errors: dict[str, str] = {}

        for tier in self._tiers:
            if not tier.is_available():
                logger.debug(
                    "Skipping %s: not configured",
                    tier.name,
                    extra={"platform": self.platform.value, "tier": tier.name},
                )
                continue

            try:
                feed = await tier.attempt(handle)
            except Exception as exc:
                errors[tier.name] = str(exc) or exc.__class__.__name__
                logger.warning(
                    "Fetch method %s failed, falling back",
                    tier.name,
                    exc_info=not isinstance(exc, ScraperError),
                    extra={
                        "platform": self.platform.value,
                        "tier": tier.name,
                        "error_reason": errors[tier.name],
                    },
                )
                continue

            logger.info(
                "Fetched %d posts for @%s via %s",
                feed.total_posts,
                handle,
                tier.name,
                extra={"platform": self.platform.value, "tier": tier.name},
            )
            return feed

        if not errors:
            raise PlatformFetchError(
                f"No {self.platform.value} fetch method is configured",
                platform=self.platform.value,
                tiers=self.tier_names,
            )

        raise PlatformFetchError(
            f"All {self.platform.value} fetch methods failed for @{handle}",
            platform=self.platform.value,
            errors=errors,
        )


# ---------------------------------------------------------------------------
# Payload helpers shared by the platform modules
# ---------------------------------------------------------------------------


def as_json(data: Any, context: str) -> Any:
    """Return *data* decoded as JSON when the router handed back text."""
    if not isinstance(data, str):
        return data
    try:
        return json.loads(data)
    except ValueError:
        raise PlatformResponseError(f"Failed to parse {context} response") from None


def dig(data: Any, *path: str | int) -> Any:
    """Follow *path* through nested dicts/lists, returning ``None`` on any miss."""
    current = data
    for key in path:
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and isinstance(key, int) and -len(current) <= key < len(current):
            current = current[key]
        else:
            return None
    return current


def to_int(value: Any) -> int | None:
    """Coerce counters that arrive as ints or numeric strings."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
