"""Error hierarchy and FastAPI exception handlers."""

from social_fetch.middleware.error_handler import (
    AllStrategiesFailedError,
    ConfigurationError,
    InvalidHandleError,
    InvalidResponseError,
    PlatformFetchError,
    PlatformResponseError,
    ScraperError,
    TransportError,
    UnsupportedPlatformError,
    register_error_handlers,
)

__all__ = [
    "AllStrategiesFailedError",
    "ConfigurationError",
    "InvalidHandleError",
    "InvalidResponseError",
    "PlatformFetchError",
    "PlatformResponseError",
    "ScraperError",
    "TransportError",
    "UnsupportedPlatformError",
    "register_error_handlers",
]
