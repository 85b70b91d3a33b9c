"""Global error hierarchy and FastAPI exception handlers.

All service errors extend ScraperError. Per-attempt failures inside the
request router (TransportError, InvalidResponseError) are absorbed there;
only AllStrategiesFailedError and ConfigurationError leave the router. The
FastAPI exception handlers catch these errors (plus Pydantic's
RequestValidationError and unhandled exceptions) and return a consistent JSON
envelope: { success, data, error, meta }.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from social_fetch.models.responses import ApiResponse

if TYPE_CHECKING:
    from social_fetch.routing.router import RequestOutcome

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class ScraperError(Exception):
    """Base error for all service-specific errors."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(ScraperError):
    """Required configuration for the chosen strategy or tier is missing."""

    status_code = 500
    message = "Required configuration is missing"


class TransportError(ScraperError):
    """Network-level failure (DNS, connection reset, timeout) for one attempt."""

    status_code = 502
    message = "Upstream transport failure"


class InvalidResponseError(ScraperError):
    """A response that failed content validation (block page, challenge, bad status)."""

    status_code = 502
    message = "Upstream returned an invalid response"


class AllStrategiesFailedError(ScraperError):
    """Every strategy in the request plan was attempted and none validated."""

    status_code = 502
    message = "All request strategies failed"

    def __init__(
        self,
        last_error: ScraperError | None = None,
        outcomes: list[RequestOutcome] | None = None,
    ) -> None:
        self.last_error = last_error
        self.outcomes = list(outcomes or [])
        message = self.__class__.message
        if last_error is not None:
            message = f"{message}: {last_error.message}"
        super().__init__(message, attempts=len(self.outcomes))


class PlatformResponseError(ScraperError):
    """A platform tier received a payload it could not map to posts."""

    status_code = 502
    message = "Unexpected platform response"


class PlatformFetchError(ScraperError):
    """Every available fetch tier for a platform failed."""

    status_code = 502
    message = "All fetch methods failed"


class InvalidHandleError(ScraperError):
    """The account handle is empty or malformed."""

    status_code = 422
    message = "Invalid account handle"


class UnsupportedPlatformError(ScraperError):
    """No fetcher is registered for the requested platform."""

    status_code = 404
    message = "Unsupported platform"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(
    status_code: int,
    error: str,
    meta: dict | None = None,
) -> JSONResponse:
    """Build a JSON envelope error response."""
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.failure(error, meta).model_dump(),
    )


async def _scraper_error_handler(_request: Request, exc: ScraperError) -> JSONResponse:
    """Handle ScraperError subclasses."""
    return _envelope(exc.status_code, exc.message, meta=exc.details)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI / Pydantic RequestValidationError (422)."""
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(
        status_code=422,
        error="Validation error",
        meta={"fields": field_errors},
    )


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: log traceback, return generic 500."""
    logger.error(
        "Unhandled exception: %s\n%s",
        exc,
        traceback.format_exc(),
    )
    return _envelope(status_code=500, error="Internal server error")


# ---------------------------------------------------------------------------
# Registration helper
# ---------------------------------------------------------------------------


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(ScraperError, _scraper_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]
