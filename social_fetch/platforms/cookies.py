"""Cookie header helpers for authenticated platform tiers."""

from __future__ import annotations

import json


def extract_cookie_value(cookie_header: str, key: str) -> str | None:
    """Return the value of *key* from a ``name=value; name2=value2`` header."""
    for segment in cookie_header.split(";"):
        name, sep, value = segment.strip().partition("=")
        if sep and name == key:
            return value or None
    return None


def cookie_header_from_config(raw: str | None) -> str | None:
    """Normalise a configured cookie value into a Cookie header.

    Accepts either a JSON object of cookie pairs or an already formatted
    header string. Returns ``None`` when nothing usable is configured.
    """
    if not raw or not raw.strip():
        return None

    text = raw.strip()
    if text.startswith("{"):
        try:
            pairs = json.loads(text)
        except ValueError:
            return None
        if not isinstance(pairs, dict):
            return None
        header = "; ".join(f"{name}={value}" for name, value in pairs.items())
        return header or None

    return text
