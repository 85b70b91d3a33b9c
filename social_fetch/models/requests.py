"""Pydantic request models for the scrape endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ScrapeRequest(BaseModel):
    """Request body for ``POST /api/v1/scrape/{platform}``."""

    username: str = Field(..., min_length=1, max_length=100)
