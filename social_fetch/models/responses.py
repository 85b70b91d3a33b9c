"""Response envelope shared by every social-fetch endpoint.

Successful scrapes carry the ``ProfileFeed`` in ``data`` and the fetch method,
transport strategy and post count in ``meta``. Failures leave ``data`` empty,
put the ``ScraperError`` message in ``error`` and its details in ``meta``.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """``{ success, data, error, meta }`` envelope."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None

    @classmethod
    def ok(cls, data: Any, **meta: Any) -> ApiResponse:
        return cls(success=True, data=data, meta=meta or None)

    @classmethod
    def failure(cls, error: str, meta: dict | None = None) -> ApiResponse:
        return cls(success=False, error=error, meta=meta or None)
