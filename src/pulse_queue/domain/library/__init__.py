"""Library domain - tracks, workouts, the catalog and track sources.

This domain handles:
- Track values and their BPM distance annotation
- The fixed workout profiles
- The static catalog (built-in or TOML)
- Track sources: local catalog matching and Spotify recommendations
"""

from .catalog import BUILTIN_CATALOG, load_catalog, tracks_for_workout
from .exceptions import (
    AuthExpired,
    RateLimited,
    SourceUnavailable,
    StaleResult,
    TrackSourceError,
)
from .models import DEFAULT_DURATION_MS, Track, format_time, same_track
from .provider import TrackSource, dedupe_by_id, find_track, rank_by_distance
from .providers import LocalCatalogSource, RemoteRecommendationSource
from .workouts import WORKOUTS, WorkoutProfile, get_workout, heart_rate_zone

__all__ = [
    # Catalog
    "BUILTIN_CATALOG",
    "load_catalog",
    "tracks_for_workout",
    # Exceptions
    "AuthExpired",
    "RateLimited",
    "SourceUnavailable",
    "StaleResult",
    "TrackSourceError",
    # Models
    "DEFAULT_DURATION_MS",
    "Track",
    "format_time",
    "same_track",
    # Sources
    "TrackSource",
    "dedupe_by_id",
    "find_track",
    "rank_by_distance",
    "LocalCatalogSource",
    "RemoteRecommendationSource",
    # Workouts
    "WORKOUTS",
    "WorkoutProfile",
    "get_workout",
    "heart_rate_zone",
]
