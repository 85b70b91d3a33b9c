"""YouTube fetch tiers.

1. ``youtube_data_api``: Data API v3 with an API key, resolving the channel by handle,
   its uploads playlist, then video statistics.
2. ``youtube_innertube_api``: the ``ytInitialData`` blob embedded in the channel
   ``/videos`` page, sent with a browser cookie. Yields titles, snippets, view
   counts and durations; likes and comments are not in the grid.
3. ``youtube_html_scrape``: bare video ids from the same page when the data
   blob is missing or unparseable.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

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
from social_fetch.routing.router import AdaptiveRequestRouter, RequestOptions, RequestResult

logger = logging.getLogger(__name__)

DATA_API_BASE = "https://www.googleapis.com/youtube/v3"

_VIDEO_ID = re.compile(r'"videoId":"([A-Za-z0-9_-]{11})"')
_ISO_DURATION = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")
_INITIAL_DATA = re.compile(r"var ytInitialData = (\{.*?\});\s*</script>", re.DOTALL)
_VIEW_COUNT = re.compile(r"(\d[\d,.]*)\s*([KMB])?", re.IGNORECASE)

_COUNT_SUFFIXES = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def parse_duration(duration: str | None) -> int | None:
    """Convert an ISO-8601 ``PT#H#M#S`` duration to seconds."""
    if not duration:
        return None
    match = _ISO_DURATION.match(duration)
    if match is None:
        return None
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def parse_duration_text(text: str | None) -> int | None:
    """Convert a clock-style ``lengthText`` such as ``"1:02:03"`` to seconds."""
    if not text:
        return None
    parts = text.strip().split(":")
    if not all(part.isdigit() for part in parts):
        return None
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds


def parse_view_count(text: str | None) -> int | None:
    """Parse ``"1,234 views"`` or abbreviated ``"1.2M views"`` into an integer."""
    if not text:
        return None
    match = _VIEW_COUNT.search(text)
    if match is None:
        return None
    number, suffix = match.groups()
    if suffix:
        return round(float(number.replace(",", "")) * _COUNT_SUFFIXES[suffix.lower()])
    return int(re.sub(r"[,.]", "", number))


def _text(node: Any) -> str | None:
    """Read a renderer text node, either ``simpleText`` or joined ``runs``."""
    if not isinstance(node, dict):
        return None
    if node.get("simpleText"):
        return node["simpleText"]
    runs = node.get("runs")
    if isinstance(runs, list):
        joined = "".join(run.get("text", "") for run in runs if isinstance(run, dict))
        return joined or None
    return None


def extract_initial_data(page: str) -> dict:
    """Pull the ``ytInitialData`` object out of a channel page."""
    match = _INITIAL_DATA.search(page)
    if match is None:
        raise PlatformResponseError("Could not extract initial data")
    try:
        data = json.loads(match.group(1))
    except ValueError:
        raise PlatformResponseError("Failed to parse initial data") from None
    if not isinstance(data, dict):
        raise PlatformResponseError("Unexpected initial data payload")
    return data


def parse_video_grid(data: dict, handle: str) -> list[Post]:
    """Map the videos tab ``richGridRenderer`` of ``ytInitialData`` to posts."""
    contents: list = []
    for tab in dig(data, "contents", "twoColumnBrowseResultsRenderer", "tabs") or []:
        grid = dig(tab, "tabRenderer", "content", "richGridRenderer", "contents")
        if isinstance(grid, list):
            contents = grid
            break

    posts = []
    for item in contents:
        video = dig(item, "richItemRenderer", "content", "videoRenderer")
        if not isinstance(video, dict) or not isinstance(video.get("videoId"), str):
            continue
        video_id = video["videoId"]
        thumbnails = dig(video, "thumbnail", "thumbnails")
        posts.append(
            Post(
                id=video_id,
                url=watch_url(video_id),
                title=_text(video.get("title")),
                description=_text(video.get("descriptionSnippet")),
                views=parse_view_count(_text(video.get("viewCountText"))),
                duration=parse_duration_text(_text(video.get("lengthText"))),
                author_name=handle,
                created_at=_text(video.get("publishedTimeText")),
                thumbnail_url=dig(thumbnails, -1, "url"),
            )
        )
        if len(posts) >= MAX_POSTS:
            break
    return posts


class YouTubeSource:
    """Fetch tiers for YouTube channels."""

    platform = Platform.YOUTUBE

    def __init__(self, settings: FetchSettings, router: AdaptiveRequestRouter) -> None:
        self._settings = settings
        self._router = router

    def fetcher(self) -> PlatformFetcher:
        s = self._settings
        return PlatformFetcher(
            self.platform,
            [
                FetchTier("youtube_data_api", lambda: bool(s.youtube_api_key), self.fetch_data_api),
                FetchTier(
                    "youtube_innertube_api", lambda: bool(s.youtube_cookie), self.fetch_innertube
                ),
                FetchTier("youtube_html_scrape", lambda: bool(s.youtube_cookie), self.fetch_html),
            ],
        )

    async def _api_get(self, resource: str, params: dict) -> dict:
        result = await self._router.make_request(
            f"{DATA_API_BASE}/{resource}",
            RequestOptions(
                params={**params, "key": self._settings.youtube_api_key},
                extra_headers={"Accept": "application/json"},
                retry_across_strategies=False,
            ),
        )
        payload = as_json(result.data, resource)
        if not isinstance(payload, dict):
            raise PlatformResponseError(f"Unexpected {resource} payload")
        return payload

    async def fetch_data_api(self, handle: str) -> ProfileFeed:
        channels = await self._api_get(
            "channels", {"part": "contentDetails", "forHandle": f"@{handle}"}
        )
        uploads = dig(channels, "items", 0, "contentDetails", "relatedPlaylists", "uploads")
        if not uploads:
            raise PlatformResponseError("Could not find uploads playlist")

        playlist = await self._api_get(
            "playlistItems",
            {"part": "contentDetails", "playlistId": uploads, "maxResults": MAX_POSTS},
        )
        video_ids = [
            dig(item, "contentDetails", "videoId")
            for item in playlist.get("items") or []
            if dig(item, "contentDetails", "videoId")
        ]
        if not video_ids:
            raise PlatformResponseError(f"No videos found for @{handle}")

        videos = await self._api_get(
            "videos",
            {"part": "snippet,contentDetails,statistics", "id": ",".join(video_ids)},
        )

        posts = [
            Post(
                id=item["id"],
                url=watch_url(item["id"]),
                title=dig(item, "snippet", "title"),
                description=dig(item, "snippet", "description"),
                views=to_int(dig(item, "statistics", "viewCount")),
                likes=to_int(dig(item, "statistics", "likeCount")),
                comments=to_int(dig(item, "statistics", "commentCount")),
                duration=parse_duration(dig(item, "contentDetails", "duration")),
                author_name=dig(item, "snippet", "channelTitle") or handle,
                created_at=dig(item, "snippet", "publishedAt"),
                thumbnail_url=dig(item, "snippet", "thumbnails", "high", "url"),
            )
            for item in videos.get("items") or []
            if isinstance(item, dict) and item.get("id")
        ]
        if not posts:
            raise PlatformResponseError(f"No video details returned for @{handle}")

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="youtube_data_api",
            posts=posts,
        )

    async def _channel_page(self, handle: str) -> RequestResult:
        result = await self._router.make_request(
            f"https://www.youtube.com/@{handle}/videos",
            RequestOptions(cookie=self._settings.youtube_cookie),
        )
        if not isinstance(result.data, str):
            raise PlatformResponseError("Expected an HTML channel page")
        return result

    async def fetch_innertube(self, handle: str) -> ProfileFeed:
        result = await self._channel_page(handle)
        posts = parse_video_grid(extract_initial_data(result.data), handle)
        if not posts:
            raise PlatformResponseError("No videos found in channel")

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="youtube_innertube_api",
            strategy=result.strategy,
            posts=posts,
        )

    async def fetch_html(self, handle: str) -> ProfileFeed:
        result = await self._channel_page(handle)

        video_ids = list(dict.fromkeys(_VIDEO_ID.findall(result.data)))[:MAX_POSTS]
        if not video_ids:
            raise PlatformResponseError(
                f"No videos found for @{handle} - channel may not exist or be private"
            )

        return ProfileFeed(
            platform=self.platform,
            username=handle,
            fetch_method="youtube_html_scrape",
            strategy=result.strategy,
            posts=[
                Post(
                    id=video_id,
                    url=watch_url(video_id),
                    author_name=handle,
                    thumbnail_url=f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg",
                )
                for video_id in video_ids
            ],
        )
