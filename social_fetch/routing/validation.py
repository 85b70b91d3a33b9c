"""Classification of upstream responses as genuine content or block pages."""

from __future__ import annotations

from typing import Any

MIN_HTML_LENGTH = 1000

# Lower-cased substrings that mark a verification / CAPTCHA interstitial
CHALLENGE_MARKERS: tuple[str, ...] = (
    "please verify",
    "captcha",
    "verify you are human",
)


def is_valid_response(data: Any, status_code: int) -> bool:
    """Return True when a response looks like the real payload.

    Only HTTP 200 is accepted. Decoded (non-string) bodies are trusted.
    Text bodies are rejected when they are short, carry a challenge marker,
    or are an HTML document without any ``<script`` tag.
    """
    if status_code != 200:
        return False

    if not isinstance(data, str):
        return True

    if len(data) < MIN_HTML_LENGTH:
        return False

    lowered = data.lower()
    if any(marker in lowered for marker in CHALLENGE_MARKERS):
        return False

    if "<html" in lowered and "<script" not in lowered:
        return False

    return True


def rejection_reason(data: Any, status_code: int) -> str:
    """Describe why :func:`is_valid_response` rejected a response."""
    if status_code != 200:
        return f"unexpected status {status_code}"
    if isinstance(data, str):
        lowered = data.lower()
        if len(data) < MIN_HTML_LENGTH:
            return f"body too short ({len(data)} chars)"
        if any(marker in lowered for marker in CHALLENGE_MARKERS):
            return "verification challenge page"
        if "<html" in lowered and "<script" not in lowered:
            return "HTML without scripts"
    return "rejected"
