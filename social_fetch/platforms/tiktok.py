"""TikTok fetch tiers.

TikTok is the most aggressive bot detector of the supported platforms, so
both tiers go through the adaptive router with the profile page as referer:

1. ``tiktok_internal_api``: ``api/user/detail`` resolves the ``secUid``,
   then ``api/post/item_list`` returns the videos. Needs session cookies.
2. ``tiktok_html_scrape``: video links from the profile page.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

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
from social_fetch.platforms.cookies import cookie_header_from_config
from social_fetch.routing.router import AdaptiveRequestRouter, RequestOptions

logger = logging.getLogger(__name__)

BASE_URL = "https://www.tiktok.com"
ACCEPT_JSON = "application/json, text/plain, */*"


def profile_url(handle: str) -> str:
    return f"{BASE_URL}/@{handle}"


def video_url(handle: str, video_id: str) -> str:
    return f"{BASE_URL}/@{handle}/video/{video_id}"


class TikTokSource:
    """Fetch tiers for TikTok accounts."""

    platform = Platform.TIKTOK

    def __init__(self, settings: FetchSettings, router: AdaptiveRequestRouter) -> None:
        self._router = router
        self._cookie = cookie_header_from_config(settings.tiktok_cookies)

    def fetcher(self) -> PlatformFetcher:
        return PlatformFetcher(
            self.platform,
            [
                FetchTier(
                    "tiktok_internal_api",
                    lambda: self._cookie is not None,
                    self.fetch_internal_api,
                ),
                FetchTier("tiktok_html_scrape", lambda: True, self.fetch_html),
            ],
        )

    def _api_options(self, handle: str, params: dict[str, Any]) -> RequestOptions:
        return RequestOptions(
            params=params,
            extra_headers={"Accept": ACCEPT_JSON},
            cookie=self._cookie,
            referer=profile_url(handle),
        )

    async def fetch_internal_api(self, handle: str) -> ProfileFeed:
        user = await self._router.make_request(
            f"{BASE_URL}/api/user/detail/",
            self._api_options(handle, {"uniqueId": handle}),
        )
        sec_uid = dig(as_json(user.data, "user info"), "userInfo", "user", "secUid")
        if not sec_uid:
            raise PlatformResponseError(
                f"Could not find secUid for @{handle} - user may not exist or cookies may be invalid"
            )

        videos = await self._router.make_request(
            f"{BASE_URL}/api/post/item_list/",
            self._api_options(handle, {"secUid": sec_uid, "count": 30, "cursor": 0}),
        )
        items = dig(as_json(videos.data, "videos"), "itemList") or []
        if not items:
            raise PlatformResponseError(
                f"No videos found for @{handle} - profile may be private, have no videos, or cookies may be expired"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="tiktok_internal_api",
            strategy=videos.strategy,
            posts=[parse_item(item, handle) for item in items[:MAX_POSTS] if dig(item, "id")],
        )

    async def fetch_html(self, handle: str) -> ProfileFeed:
        result = await self._router.make_request(
            profile_url(handle),
            RequestOptions(cookie=self._cookie, referer=BASE_URL + "/"),
        )
        if not isinstance(result.data, str):
            raise PlatformResponseError("Expected an HTML profile page")

        posts = parse_profile_links(result.data, handle)
        if not posts:
            raise PlatformResponseError(
                f"No videos found for @{handle} - profile may be private, deleted, or cookies invalid/expired"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="tiktok_html_scrape",
            strategy=result.strategy,
            posts=posts,
        )


def parse_item(item: dict, handle: str) -> Post:
    """Map one ``itemList`` entry to a post."""
    video_id = str(item["id"])
    created = to_int(item.get("createTime"))
    author = item.get("author")
    return Post(
        id=video_id,
        url=video_url(handle, video_id),
        description=item.get("desc") or item.get("title"),
        views=to_int(dig(item, "stats", "playCount")),
        likes=to_int(dig(item, "stats", "diggCount")),
        comments=to_int(dig(item, "stats", "commentCount")),
        shares=to_int(dig(item, "stats", "shareCount")),
        duration=to_int(dig(item, "video", "duration")),
        author_name=author if isinstance(author, str) else dig(author, "uniqueId") or handle,
        created_at=(
            datetime.fromtimestamp(created, tz=timezone.utc).isoformat() if created else None
        ),
        thumbnail_url=dig(item, "video", "cover") or dig(item, "video", "originCover"),
    )


def parse_profile_links(html: str, handle: str) -> list[Post]:
    """Collect unique video ids linked from a profile page."""
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    posts: list[Post] = []

    for anchor in soup.select('a[href*="/video/"]'):
        video_id = anchor["href"].split("/video/", 1)[1].split("?")[0].split("#")[0]
        if not video_id.isdigit() or video_id in seen:
            continue
        seen.add(video_id)
        posts.append(Post(id=video_id, url=video_url(handle, video_id), author_name=handle))
        if len(posts) >= MAX_POSTS:
            break

    return posts
