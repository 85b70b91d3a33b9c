"""Output schemas for fetched social-media posts.

All post fields except the id and url are optional so that tiers with
partial metadata (HTML scrapes) still produce valid records; missing values
are ``None`` rather than invented.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Supported platforms."""

    YOUTUBE = "youtube"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"


class Post(BaseModel):
    """A single post, tweet or video."""

    id: str
    url: str
    title: str | None = None  # Videos only
    description: str | None = None
    views: int | None = None
    likes: int | None = None
    comments: int | None = None
    shares: int | None = None
    duration: int | None = None  # seconds
    author_name: str | None = None
    created_at: str | None = None  # ISO-8601 or platform-native timestamp
    thumbnail_url: str | None = None


class ProfileFeed(BaseModel):
    """Recent posts of one account, with the fetch method that produced them."""

    platform: Platform
    username: str
    fetch_method: str
    strategy: str | None = None  # Transport strategy of the final request, when routed
    posts: list[Post] = Field(default_factory=list)

    @property
    def total_posts(self) -> int:
        return len(self.posts)
