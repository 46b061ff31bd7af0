"""
Spotify bearer credential handling.

Token acquisition and refresh happen outside this package; the session hands
the API client a token supplier and an optional refresh callback.
"""

import re
from typing import Callable, Optional

from loguru import logger

TokenSupplier = Callable[[], Optional[str]]
RefreshCallback = Callable[[], bool]

_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


def sanitize_token(raw: Optional[str]) -> str:
    """Clean a pasted access token (whitespace, one pair of stray quotes)."""
    return _SURROUNDING_QUOTES.sub("", str(raw or "").strip())


class StaticTokenSupplier:
    """Token supplier holding a single pasted token.

    set_token() lets the auth collaborator swap in a refreshed token.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = sanitize_token(token)

    def __call__(self) -> Optional[str]:
        return self._token or None

    def set_token(self, token: Optional[str]) -> None:
        self._token = sanitize_token(token)
        logger.debug("Spotify access token updated")

    def clear(self) -> None:
        self._token = ""
