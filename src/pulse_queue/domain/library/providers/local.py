"""
Local catalog provider.

Matches the static catalog against the heart rate: same workout tag, within
the BPM tolerance, closest tempo first, top N. Never fails.
"""

from typing import Iterable, List, Optional

from loguru import logger

from ..catalog import BUILTIN_CATALOG, tracks_for_workout
from ..models import Track
from ..provider import dedupe_by_id, rank_by_distance, within_tolerance
from ..workouts import WorkoutProfile

DEFAULT_TOLERANCE_BPM = 20
DEFAULT_MAX_RESULTS = 8


class LocalCatalogSource:
    """Track source backed by an in-memory catalog."""

    name = "local"

    def __init__(
        self,
        catalog: Optional[Iterable[Track]] = None,
        tolerance_bpm: float = DEFAULT_TOLERANCE_BPM,
        max_results: int = DEFAULT_MAX_RESULTS,
    ):
        self.catalog: List[Track] = dedupe_by_id(
            BUILTIN_CATALOG if catalog is None else catalog
        )
        self.tolerance_bpm = tolerance_bpm
        self.max_results = max_results

    def fetch_candidates(self, heart_rate_bpm: float, workout: WorkoutProfile) -> List[Track]:
        """Ranked catalog matches for the heart rate and workout.

        Returns an empty list when nothing falls within tolerance.
        """
        pool = tracks_for_workout(self.catalog, workout.id)
        ranked = within_tolerance(rank_by_distance(pool, heart_rate_bpm), self.tolerance_bpm)
        matches = ranked[: self.max_results]

        logger.debug(
            f"Local match: {len(matches)}/{len(pool)} {workout.id} tracks "
            f"within ±{self.tolerance_bpm} of {heart_rate_bpm} BPM"
        )
        return matches

    def starter_tracks(self, workout: WorkoutProfile, count: int) -> List[Track]:
        """Workout tracks closest to the workout's target tempo.

        Used to top up the queue when a session connects. Ranked against the
        workout target, not the heart rate, and not limited by tolerance.
        """
        if count <= 0:
            return []
        pool = tracks_for_workout(self.catalog, workout.id)
        return rank_by_distance(pool, workout.target_bpm)[:count]
