"""Instagram fetch tiers.

1. ``instagram_web_api``: the web client's ``web_profile_info`` endpoint,
   authenticated with the session cookie.
2. ``instagram_html_scrape``: post links from the profile page.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from social_fetch.config.settings import FetchSettings
from social_fetch.middleware.error_handler import PlatformResponseError
from social_fetch.models.posts import Platform, Post, ProfileFeed
from social_fetch.platforms.base import (
    MAX_POSTS,
    FetchTier,
    PlatformFetcher,
    as_json,
    dig,
    to_int,
)
from social_fetch.routing.router import AdaptiveRequestRouter, RequestOptions

logger = logging.getLogger(__name__)

WEB_PROFILE_INFO = "https://i.instagram.com/api/v1/users/web_profile_info/"
WEB_APP_ID = "936619743392459"


def post_url(shortcode: str) -> str:
    return f"https://www.instagram.com/p/{shortcode}/"


class InstagramSource:
    """Fetch tiers for Instagram accounts."""

    platform = Platform.INSTAGRAM

    def __init__(self, settings: FetchSettings, router: AdaptiveRequestRouter) -> None:
        self._settings = settings
        self._router = router

    @property
    def cookie(self) -> str | None:
        s = self._settings
        if not (s.instagram_cookie and s.instagram_session_id):
            return None
        return f"sessionid={s.instagram_session_id}; {s.instagram_cookie}"

    def fetcher(self) -> PlatformFetcher:
        return PlatformFetcher(
            self.platform,
            [
                FetchTier("instagram_web_api", lambda: self.cookie is not None, self.fetch_web_api),
                FetchTier("instagram_html_scrape", lambda: self.cookie is not None, self.fetch_html),
            ],
        )

    async def fetch_web_api(self, handle: str) -> ProfileFeed:
        result = await self._router.make_request(
            WEB_PROFILE_INFO,
            RequestOptions(
                params={"username": handle},
                extra_headers={"Accept": "application/json", "X-IG-App-ID": WEB_APP_ID},
                cookie=self.cookie,
                referer=f"https://www.instagram.com/{handle}/",
            ),
        )
        payload = as_json(result.data, "profile info")
        edges = dig(payload, "data", "user", "edge_owner_to_timeline_media", "edges") or []

        posts = []
        for edge in edges[:MAX_POSTS]:
            node = dig(edge, "node")
            if not isinstance(node, dict):
                continue
            shortcode = node.get("shortcode")
            if not isinstance(shortcode, str) or not shortcode:
                continue
            posts.append(
                Post(
                    id=shortcode,
                    url=post_url(shortcode),
                    description=dig(node, "edge_media_to_caption", "edges", 0, "node", "text"),
                    views=to_int(node.get("video_view_count")),
                    likes=to_int(dig(node, "edge_liked_by", "count")),
                    comments=to_int(dig(node, "edge_media_to_comment", "count")),
                    author_name=handle,
                    created_at=str(node["taken_at_timestamp"]) if node.get("taken_at_timestamp") else None,
                    thumbnail_url=node.get("thumbnail_src") or node.get("display_url"),
                )
            )

        if not posts:
            raise PlatformResponseError(
                f"No posts found for @{handle} - profile may be private or cookies invalid"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="instagram_web_api",
            strategy=result.strategy,
            posts=posts,
        )

    async def fetch_html(self, handle: str) -> ProfileFeed:
        result = await self._router.make_request(
            f"https://www.instagram.com/{handle}/",
            RequestOptions(cookie=self.cookie),
        )
        if not isinstance(result.data, str):
            raise PlatformResponseError("Expected an HTML profile page")

        soup = BeautifulSoup(result.data, "html.parser")
        shortcodes: list[str] = []
        for anchor in soup.select('a[href*="/p/"]'):
            shortcode = anchor["href"].split("/p/", 1)[1].split("/")[0].split("?")[0]
            if len(shortcode) > 5 and shortcode not in shortcodes:
                shortcodes.append(shortcode)

        if not shortcodes:
            raise PlatformResponseError(
                f"No posts found for @{handle} - profile may be private, deleted, or cookies invalid"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="instagram_html_scrape",
            strategy=result.strategy,
            posts=[
                Post(id=code, url=post_url(code), author_name=handle)
                for code in shortcodes[:MAX_POSTS]
            ],
        )
