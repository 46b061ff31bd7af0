"""
Spotify provider - recommendation queries and bearer credential handling.
"""

from .api import RemoteRecommendationSource, tempo_window_from_hr
from .auth import StaticTokenSupplier, sanitize_token

__all__ = [
    "RemoteRecommendationSource",
    "tempo_window_from_hr",
    "StaticTokenSupplier",
    "sanitize_token",
]
