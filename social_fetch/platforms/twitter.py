"""Twitter / X fetch tiers.

Priority order:
1. ``twitter_api_v2``: official API v2 with an app bearer token.
2. ``twitter_graphql``: internal GraphQL timeline with the web bearer token
   and a logged-in cookie (``ct0`` doubles as the CSRF token).
3. ``twitter_html_scrape``: status links from the profile page, cookie only.
"""

from __future__ import annotations

import json
import logging
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
from social_fetch.platforms.cookies import extract_cookie_value
from social_fetch.routing.router import AdaptiveRequestRouter, RequestOptions

logger = logging.getLogger(__name__)

API_V2_BASE = "https://api.twitter.com/2"
GRAPHQL_USER_TWEETS = "https://twitter.com/i/api/graphql/V7H0Ap3_Hh2FyS75OCDO3Q/UserTweets"
PROFILE_URL = "https://twitter.com/{handle}"

_GRAPHQL_FEATURES = {
    "responsive_web_graphql_exclude_directive_enabled": True,
    "verified_phone_label_enabled": False,
    "creator_subscriptions_tweet_preview_api_enabled": True,
    "responsive_web_graphql_timeline_navigation_enabled": True,
    "responsive_web_graphql_skip_user_profile_image_extensions_enabled": False,
    "tweetypie_unmention_optimization_enabled": True,
    "responsive_web_edit_tweet_api_enabled": True,
    "graphql_is_translatable_rweb_tweet_is_translatable_enabled": True,
    "view_counts_everywhere_api_enabled": True,
    "longform_notetweets_consumption_enabled": True,
    "freedom_of_speech_not_reach_fetch_enabled": True,
    "standardized_nudges_misinfo": True,
    "longform_notetweets_rich_text_read_enabled": True,
    "longform_notetweets_inline_media_enabled": True,
    "responsive_web_enhance_cards_enabled": False,
}


def status_url(handle: str, tweet_id: str) -> str:
    return f"https://twitter.com/{handle}/status/{tweet_id}"


class TwitterSource:
    """Fetch tiers for Twitter / X accounts."""

    platform = Platform.TWITTER

    def __init__(self, settings: FetchSettings, router: AdaptiveRequestRouter) -> None:
        self._settings = settings
        self._router = router

    def fetcher(self) -> PlatformFetcher:
        s = self._settings
        return PlatformFetcher(
            self.platform,
            [
                FetchTier(
                    "twitter_api_v2",
                    lambda: bool(s.twitter_api_v2_bearer_token),
                    self.fetch_api_v2,
                ),
                FetchTier(
                    "twitter_graphql",
                    lambda: bool(s.twitter_bearer_token and s.twitter_cookie),
                    self.fetch_graphql,
                ),
                FetchTier(
                    "twitter_html_scrape",
                    lambda: bool(s.twitter_cookie),
                    self.fetch_html,
                ),
            ],
        )

    # ------------------------------------------------------------------
    # Official API v2
    # ------------------------------------------------------------------

    async def fetch_api_v2(self, handle: str) -> ProfileFeed:
        headers = {
            "Authorization": f"Bearer {self._settings.twitter_api_v2_bearer_token}",
            "Accept": "application/json",
        }

        user = await self._router.make_request(
            f"{API_V2_BASE}/users/by/username/{handle}",
            RequestOptions(extra_headers=headers, retry_across_strategies=False),
        )
        user_id = dig(as_json(user.data, "user lookup"), "data", "id")
        if not user_id:
            raise PlatformResponseError(f"User not found: {handle}")

        timeline = await self._router.make_request(
            f"{API_V2_BASE}/users/{user_id}/tweets",
            RequestOptions(
                params={
                    "max_results": 20,
                    "tweet.fields": "created_at,public_metrics",
                },
                extra_headers=headers,
                retry_across_strategies=False,
            ),
        )
        tweets = dig(as_json(timeline.data, "tweets"), "data") or []

        posts = [
            Post(
                id=str(tweet["id"]),
                url=status_url(handle, str(tweet["id"])),
                description=tweet.get("text"),
                likes=to_int(dig(tweet, "public_metrics", "like_count")),
                comments=to_int(dig(tweet, "public_metrics", "reply_count")),
                shares=to_int(dig(tweet, "public_metrics", "retweet_count")),
                views=to_int(dig(tweet, "public_metrics", "impression_count")),
                author_name=handle,
                created_at=tweet.get("created_at"),
            )
            for tweet in tweets[:MAX_POSTS]
            if isinstance(tweet, dict) and tweet.get("id")
        ]
        if not posts:
            raise PlatformResponseError(f"No tweets found for @{handle}")

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="twitter_api_v2",
            strategy=timeline.strategy,
            posts=posts,
        )

    # ------------------------------------------------------------------
    # Internal GraphQL API
    # ------------------------------------------------------------------

    async def fetch_graphql(self, handle: str) -> ProfileFeed:
        cookie = self._settings.twitter_cookie or ""
        bearer = (self._settings.twitter_bearer_token or "").removeprefix("Bearer ")
        headers = {
            "Authorization": f"Bearer {bearer}",
            "Accept": "application/json",
            "x-twitter-active-user": "yes",
            "x-twitter-client-language": "en",
        }
        csrf = extract_cookie_value(cookie, "ct0")
        if csrf:
            headers["x-csrf-token"] = csrf

        variables = {
            "screen_name": handle,
            "count": 20,
            "includePromotedContent": False,
            "withVoice": True,
            "withV2Timeline": True,
        }
        result = await self._router.make_request(
            GRAPHQL_USER_TWEETS,
            RequestOptions(
                params={
                    "variables": json.dumps(variables),
                    "features": json.dumps(_GRAPHQL_FEATURES),
                },
                extra_headers=headers,
                cookie=cookie,
                referer=PROFILE_URL.format(handle=handle),
            ),
        )

        posts = parse_graphql_timeline(as_json(result.data, "GraphQL timeline"), handle)
        if not posts:
            raise PlatformResponseError(
                "No tweets found - profile may be private or cookies invalid"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="twitter_graphql",
            strategy=result.strategy,
            posts=posts[:MAX_POSTS],
        )

    # ------------------------------------------------------------------
    # Profile page scrape
    # ------------------------------------------------------------------

    async def fetch_html(self, handle: str) -> ProfileFeed:
        result = await self._router.make_request(
            PROFILE_URL.format(handle=handle),
            RequestOptions(cookie=self._settings.twitter_cookie),
        )
        if not isinstance(result.data, str):
            raise PlatformResponseError("Expected an HTML profile page")

        posts = parse_profile_links(result.data, handle)
        if not posts:
            raise PlatformResponseError(
                f"No tweets found for @{handle} - profile may be private, deleted, or cookies invalid"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="twitter_html_scrape",
            strategy=result.strategy,
            posts=posts,
        )


def parse_graphql_timeline(payload: Any, handle: str) -> list[Post]:
    """Map ``TimelineAddEntries`` tweet entries to posts."""
    instructions = (
        dig(payload, "data", "user", "result", "timeline_v2", "timeline", "instructions")
        or dig(payload, "data", "user", "result", "timeline", "timeline", "instructions")
        or []
    )

    posts: list[Post] = []
    for instruction in instructions:
        if dig(instruction, "type") != "TimelineAddEntries":
            continue
        for entry in dig(instruction, "entries") or []:
            if not str(dig(entry, "entryId") or "").startswith("tweet-"):
                continue
            content = dig(entry, "content", "itemContent", "tweet_results", "result")
            tweet = dig(content, "legacy") or dig(content, "tweet", "legacy")
            tweet_id = dig(tweet, "id_str")
            if not tweet_id:
                continue
            posts.append(
                Post(
                    id=tweet_id,
                    url=status_url(handle, tweet_id),
                    description=tweet.get("full_text") or tweet.get("text"),
                    likes=to_int(tweet.get("favorite_count")),
                    comments=to_int(tweet.get("reply_count")),
                    shares=to_int(tweet.get("retweet_count")),
                    views=to_int(dig(content, "views", "count")),
                    author_name=handle,
                    created_at=tweet.get("created_at"),
                )
            )
    return posts


def parse_profile_links(html: str, handle: str) -> list[Post]:
    """Collect unique numeric status ids linked from a profile page."""
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    posts: list[Post] = []

    for anchor in soup.select('a[href*="/status/"]'):
        tweet_id = anchor["href"].split("/status/", 1)[1].split("?")[0].split("#")[0].split("/")[0]
        if not tweet_id.isdigit() or tweet_id in seen:
            continue
        seen.add(tweet_id)
        posts.append(Post(id=tweet_id, url=status_url(handle, tweet_id), author_name=handle))
        if len(posts) >= MAX_POSTS:
            break

    return posts
