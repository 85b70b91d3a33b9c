"""Public models for the social fetch service."""

from social_fetch.models.posts import Platform, Post, ProfileFeed
from social_fetch.models.requests import ScrapeRequest
from social_fetch.models.responses import ApiResponse

__all__ = [
    "ApiResponse",
    "Platform",
    "Post",
    "ProfileFeed",
    "ScrapeRequest",
]
