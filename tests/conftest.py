"""Shared fixtures and fakes for Pulse Queue tests."""

from typing import Callable, Dict, List, Optional

import pytest

from pulse_queue.core.config import Config
from pulse_queue.domain.library.models import Track
from pulse_queue.domain.library.workouts import WorkoutProfile


def make_track(
    track_id: str,
    bpm: Optional[float] = 120,
    duration_ms: Optional[int] = 200000,
    workout: Optional[str] = "cardio",
    name: Optional[str] = None,
) -> Track:
    """Build a Track with readable defaults."""
    return Track(
        id=track_id,
        name=name or f"Track {track_id}",
        artist=f"Artist {track_id}",
        bpm=bpm,
        duration_ms=duration_ms,
        workout=workout,
    )


class FixedRandom:
    """Random stand-in whose uniform() always returns the same value."""

    def __init__(self, value: float):
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


class FakeSource:
    """Track source returning canned candidates or raising a canned error.

    responses maps a heart rate to a list of tracks; default is used for any
    other heart rate. errors are raised in order before any response is served.
    """

    def __init__(
        self,
        default: Optional[List[Track]] = None,
        responses: Optional[Dict[float, List[Track]]] = None,
        errors: Optional[List[Exception]] = None,
        name: str = "fake",
        hook: Optional[Callable[[float], None]] = None,
    ):
        self.default = default or []
        self.responses = responses or {}
        self.errors = list(errors or [])
        self.name = name
        self.hook = hook
        self.calls: List[tuple] = []

    def fetch_candidates(self, heart_rate_bpm: float, workout: WorkoutProfile) -> List[Track]:
        self.calls.append((heart_rate_bpm, workout.id))
        if self.hook is not None:
            self.hook(heart_rate_bpm)
        if self.errors:
            raise self.errors.pop(0)
        return list(self.responses.get(heart_rate_bpm, self.default))


@pytest.fixture
def config() -> Config:
    """Default configuration with the yoga workout (matches at 72 BPM)."""
    config = Config()
    config.queue.default_workout = "yoga"
    return config
