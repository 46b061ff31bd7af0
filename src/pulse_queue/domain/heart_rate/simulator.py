"""
Simulated heart-rate signal.

A bounded random walk: each tick moves the previous value by a uniform step
in [-max_step, +max_step], clamps it to [min_bpm, max_bpm] and rounds to the
nearest integer. The current value is owned by the caller.
"""

import math
import random
from typing import Optional

MIN_BPM = 50
MAX_BPM = 200
MAX_STEP = 5.0


def next_heart_rate(
    previous_bpm: float,
    rng: Optional[random.Random] = None,
    min_bpm: int = MIN_BPM,
    max_bpm: int = MAX_BPM,
    max_step: float = MAX_STEP,
) -> int:
    """Advance the random walk by one tick."""
    rng = rng or random
    change = rng.uniform(-max_step, max_step)
    clamped = max(min_bpm, min(max_bpm, previous_bpm + change))
    # Round half up
    return int(math.floor(clamped + 0.5))


class HeartRateSimulator:
    """Random-walk heart-rate source with fixed bounds.

    Holds only its configuration and random source; tick() is a pure
    function of the previous value.
    """

    def __init__(
        self,
        min_bpm: int = MIN_BPM,
        max_bpm: int = MAX_BPM,
        max_step: float = MAX_STEP,
        interval_seconds: float = 2.0,
        rng: Optional[random.Random] = None,
    ):
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm
        self.max_step = max_step
        self.interval_seconds = interval_seconds
        self.rng = rng or random.Random()

    @classmethod
    def from_config(cls, config, rng: Optional[random.Random] = None) -> "HeartRateSimulator":
        """Build from a HeartRateConfig."""
        return cls(
            min_bpm=config.min_bpm,
            max_bpm=config.max_bpm,
            max_step=config.max_step,
            interval_seconds=config.interval_seconds,
            rng=rng,
        )

    def tick(self, previous_bpm: float) -> int:
        return next_heart_rate(
            previous_bpm,
            rng=self.rng,
            min_bpm=self.min_bpm,
            max_bpm=self.max_bpm,
            max_step=self.max_step,
        )
