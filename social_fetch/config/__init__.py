"""Configuration module: settings and resolved proxy configuration."""

from social_fetch.config.settings import FetchSettings, ProxyConfig, browser_url_to_proxy_url

__all__ = [
    "FetchSettings",
    "ProxyConfig",
    "browser_url_to_proxy_url",
]
