"""
Track source interface.

Defines the protocol for candidate track sources (local catalog, Spotify
recommendations) plus the ranking helpers shared by sources and the queue
engine. The queue engine only sees the protocol, never the concrete source.
"""

from typing import Iterable, List, Optional, Protocol, runtime_checkable

from .models import Track
from .workouts import WorkoutProfile

# Type aliases for convenience
TrackList = List[Track]


@runtime_checkable
class TrackSource(Protocol):
    """Protocol defining the interface for candidate track sources.

    Implementations return fresh Track values on every call. Remote sources
    may block on the network; callers that must not block run them in a
    worker thread (see QueueEngine.reevaluate_async).
    """

    name: str

    def fetch_candidates(self, heart_rate_bpm: float, workout: WorkoutProfile) -> TrackList:
        """Return candidate tracks for a heart rate and workout.

        Args:
            heart_rate_bpm: Current heart rate
            workout: Selected workout profile

        Returns:
            Candidate tracks; an empty list means "no matches" and is not an error

        Raises:
            AuthExpired: Credential missing, invalid or expired
            RateLimited: Remote service asked us to back off
            SourceUnavailable: Transport or service failure
        """
        ...


# Helper functions for working with candidate lists


def dedupe_by_id(tracks: Iterable[Track]) -> TrackList:
    """Drop repeated ids, keeping the first occurrence and the original order."""
    seen = set()
    unique = []
    for track in tracks:
        if track.id in seen:
            continue
        seen.add(track.id)
        unique.append(track)
    return unique


def rank_by_distance(tracks: Iterable[Track], heart_rate_bpm: float) -> TrackList:
    """Annotate bpm_distance and sort ascending by it.

    The sort is stable, so ties keep their input order. Tracks without a
    tempo sort after every track with one.
    """
    annotated = [track.with_bpm_distance(heart_rate_bpm) for track in tracks]
    return sorted(
        annotated,
        key=lambda t: (t.bpm_distance is None, t.bpm_distance or 0.0),
    )


def within_tolerance(tracks: Iterable[Track], tolerance_bpm: float) -> TrackList:
    """Keep annotated tracks whose bpm_distance is known and <= tolerance_bpm."""
    return [
        track
        for track in tracks
        if track.bpm_distance is not None and track.bpm_distance <= tolerance_bpm
    ]


def find_track(tracks: Iterable[Track], track_id: Optional[str]) -> Optional[Track]:
    """Return the first track with track_id, or None."""
    if track_id is None:
        return None
    for track in tracks:
        if track.id == track_id:
            return track
    return None
