"""
Workout profiles.

Fixed set of workout categories, each with the tempo band used for display
and for biasing remote recommendation queries. Loaded once, never mutated.
"""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class WorkoutProfile:
    """A workout category and its target tempo band."""

    id: str
    name: str
    icon: str
    min_bpm: int
    target_bpm: int
    max_bpm: int
    genres: Tuple[str, ...]  # Seed genres for remote recommendations

    @property
    def range_label(self) -> str:
        """Display string for the band, e.g. '120-160 BPM'."""
        return f"{self.min_bpm}-{self.max_bpm} BPM"


WORKOUTS: Dict[str, WorkoutProfile] = {
    "cardio": WorkoutProfile("cardio", "Cardio", "🏃", 120, 140, 160, ("pop", "dance")),
    "strength": WorkoutProfile("strength", "Strength Training", "💪", 90, 105, 120, ("rock",)),
    "yoga": WorkoutProfile("yoga", "Yoga/Stretching", "🧘", 60, 75, 90, ("ambient",)),
    "hiit": WorkoutProfile("hiit", "HIIT", "🔥", 140, 160, 180, ("edm",)),
    "warmup": WorkoutProfile("warmup", "Warm Up", "🌅", 80, 90, 100, ("dance",)),
    "cooldown": WorkoutProfile("cooldown", "Cool Down", "❄️", 60, 70, 80, ("chill",)),
}

# Seed genre used when a workout has no mapping
FALLBACK_GENRE = "workout"


def get_workout(workout_id: str) -> WorkoutProfile:
    """Look up a workout profile by id.

    Raises:
        ValueError: If workout_id is not one of the six known categories
    """
    try:
        return WORKOUTS[workout_id]
    except KeyError:
        raise ValueError(
            f"Unknown workout: {workout_id!r}. Valid workouts are: {', '.join(WORKOUTS)}"
        ) from None


def genres_for(workout: WorkoutProfile) -> Tuple[str, ...]:
    """Seed genres for a workout, falling back to a generic workout genre."""
    return workout.genres or (FALLBACK_GENRE,)


def heart_rate_zone(bpm: float) -> Tuple[str, str]:
    """Classify a heart rate for display.

    Returns:
        (zone name, Rich color)
    """
    if bpm < 100:
        return "resting", "green"
    if bpm < 140:
        return "moderate", "yellow"
    if bpm < 170:
        return "vigorous", "dark_orange"
    return "peak", "red"
