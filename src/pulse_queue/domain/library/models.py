"""
Music library domain models.

Contains data structures for representing candidate tracks.
"""

from typing import NamedTuple, Optional

# Substituted for missing durations in progress math (3:30)
DEFAULT_DURATION_MS = 210000


class Track(NamedTuple):
    """Represents a candidate track with the metadata used for matching.

    Tracks are value objects created fresh by a track source on every fetch.
    The only field added after construction is bpm_distance, a ranking
    annotation relative to the heart rate of the pass that produced it.
    Identity is the id alone; compare tracks with same_track(), not ==.
    """

    id: str
    name: str
    artist: str  # Joined display string ("Kygo, Whitney Houston")
    bpm: Optional[float] = None  # Tempo, None when the source does not know it
    duration_ms: Optional[int] = None  # True length when known
    workout: Optional[str] = None  # Workout tag, None for untagged remote tracks
    bpm_distance: Optional[float] = None  # |bpm - heart rate| for the last ranking

    def with_bpm_distance(self, heart_rate_bpm: float) -> "Track":
        """Return a copy annotated with its distance to heart_rate_bpm.

        Tracks without a tempo are returned with bpm_distance=None.
        """
        if self.bpm is None:
            return self._replace(bpm_distance=None)
        return self._replace(bpm_distance=abs(self.bpm - heart_rate_bpm))

    def effective_duration_ms(self, default_ms: int = DEFAULT_DURATION_MS) -> int:
        """Duration for progress math, substituting default_ms when unknown."""
        if self.duration_ms is None or self.duration_ms <= 0:
            return default_ms
        return self.duration_ms


def same_track(a: Optional[Track], b: Optional[Track]) -> bool:
    """True when both tracks are present and share an id."""
    return a is not None and b is not None and a.id == b.id


def format_time(ms: Optional[float]) -> str:
    """Format milliseconds as m:ss ("0:00" for missing or negative input)."""
    if ms is None or ms != ms or ms < 0:
        return "0:00"

    total_seconds = int(ms // 1000)
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    return f"{minutes}:{seconds:02d}"
