"""Browser-like request header generation for anti-detection.

Every outbound attempt gets a freshly generated header set: a random desktop
Chrome user agent, client hints consistent with that user agent, and the
Accept / cache / Sec-Fetch headers a browser sends for a top-level
navigation. When a referer is supplied the navigation is presented as
same-origin.
"""

from __future__ import annotations

import random
import re

# ---------------------------------------------------------------------------
# Real desktop Chrome UA strings, recent versions
# ---------------------------------------------------------------------------

CURATED_USER_AGENTS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

ACCEPT_HTML = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
ACCEPT_ENCODING = "gzip, deflate, br"

_CHROME_VERSION = re.compile(r"Chrome/(\d+)")

_PLATFORMS = (
    ("Windows", '"Windows"'),
    ("Macintosh", '"macOS"'),
    ("Linux", '"Linux"'),
)


def client_hints(user_agent: str) -> dict[str, str]:
    """Return ``Sec-Ch-Ua*`` headers matching the Chrome version and OS of *user_agent*."""
    match = _CHROME_VERSION.search(user_agent)
    version = match.group(1) if match else "120"
    platform = next(
        (value for marker, value in _PLATFORMS if marker in user_agent),
        '"Windows"',
    )
    return {
        "Sec-Ch-Ua": (
            f'"Not_A Brand";v="8", "Chromium";v="{version}", '
            f'"Google Chrome";v="{version}"'
        ),
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": platform,
    }


class HeaderFingerprinter:
    """Generates randomized browser header sets.

    Each call to ``generate()`` draws a new user agent, so repeated attempts
    never rely on one fixed fingerprint.
    """

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def user_agent(self) -> str:
        return self._rng.choice(CURATED_USER_AGENTS)

    def generate(self, referer: str | None = None) -> dict[str, str]:
        """Return a fresh header mapping for a top-level navigation.

        Parameters
        ----------
        referer:
            Page the request claims to come from. Switches
            ``Sec-Fetch-Site`` from ``none`` to ``same-origin``.
        """
        user_agent = self.user_agent()

        headers = {
            "User-Agent": user_agent,
            "Accept": ACCEPT_HTML,
            "Accept-Language": ACCEPT_LANGUAGE,
            "Accept-Encoding": ACCEPT_ENCODING,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            **client_hints(user_agent),
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
            "Upgrade-Insecure-Requests": "1",
        }

        if referer:
            headers["Referer"] = referer
            headers["Sec-Fetch-Site"] = "same-origin"

        return headers
