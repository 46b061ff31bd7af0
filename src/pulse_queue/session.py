"""Session object for explicit state passing.

A Session owns everything that lives between connect and disconnect: the
simulated heart rate, the selected workout, the queue engine and the
playback clock. Nothing here is module-level; the UI holds one Session per
signed-in user and calls the methods below.

Re-evaluation is explicit: connect(), set_workout() and
on_heart_rate_tick() each call the engine directly. Playback ticks never
trigger it.
"""

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from pulse_queue.core.config import Config
from pulse_queue.core.output import log
from pulse_queue.domain.heart_rate.simulator import HeartRateSimulator
from pulse_queue.domain.library.catalog import BUILTIN_CATALOG, load_catalog
from pulse_queue.domain.library.models import Track
from pulse_queue.domain.library.provider import TrackSource
from pulse_queue.domain.library.providers.local import LocalCatalogSource
from pulse_queue.domain.library.providers.spotify.api import RemoteRecommendationSource
from pulse_queue.domain.library.providers.spotify.auth import (
    RefreshCallback,
    StaticTokenSupplier,
    TokenSupplier,
)
from pulse_queue.domain.library.workouts import WorkoutProfile, get_workout
from pulse_queue.domain.playback.clock import PlaybackClock
from pulse_queue.domain.queue.engine import Diagnostic, QueueEngine, QueueResult, Trigger


def _announce(track: Optional[Track]) -> None:
    if track is None:
        log("⏹ Nothing playing", level="info")
    else:
        log(f"▶ Now playing: {track.name} - {track.artist}", level="info")


def build_local_source(config: Config) -> LocalCatalogSource:
    """Local catalog source from [catalog] and [queue] settings.

    An unreadable catalog file is reported and replaced by the built-in catalog.
    """
    try:
        catalog = load_catalog(config.catalog.path)
    except (OSError, ValueError) as e:
        log(f"❌ Could not load catalog {config.catalog.path}: {e}", level="error")
        log("Using the built-in catalog.", level="info")
        catalog = list(BUILTIN_CATALOG)

    return LocalCatalogSource(
        catalog,
        tolerance_bpm=config.queue.tolerance_bpm,
        max_results=config.queue.max_length,
    )


@dataclass
class Session:
    """Session-scoped state and the operations the UI calls.

    Attributes:
        config: Application configuration
        engine: Queue engine (owns the queue)
        clock: Playback clock (owns the active track and progress)
        simulator: Heart-rate random walk
        workout: Selected workout profile
        heart_rate: Current heart rate (owned here, fed to simulator.tick)
        connected: True between connect() and disconnect()
    """

    config: Config
    engine: QueueEngine
    simulator: HeartRateSimulator
    workout: WorkoutProfile
    heart_rate: int = 72
    connected: bool = False
    history: List[str] = field(default_factory=list)  # Track ids in play order
    clock: PlaybackClock = field(init=False)

    def __post_init__(self) -> None:
        self.clock = PlaybackClock(
            queue_supplier=lambda: self.engine.queue,
            tick_ms=self.config.playback.tick_ms,
            default_duration_ms=self.config.playback.default_duration_ms,
            on_track_change=self._on_track_change,
        )

    @classmethod
    def create(
        cls,
        config: Config,
        token_supplier: Optional[TokenSupplier] = None,
        refresh_credentials: Optional[RefreshCallback] = None,
        source: Optional[TrackSource] = None,
        rng: Optional[random.Random] = None,
    ) -> "Session":
        """Create an idle session wired from configuration.

        Args:
            config: Application configuration
            token_supplier: Bearer token supplier for Spotify (defaults to
                the [spotify] access_token)
            refresh_credentials: Called once when Spotify reports an expired
                token; returns True if a new token is available
            source: Primary track source override (tests, embedding UIs)
            rng: Random source for the heart-rate walk
        """
        local = build_local_source(config)

        if source is None and config.queue.source == "spotify":
            source = RemoteRecommendationSource(
                token_supplier or StaticTokenSupplier(config.spotify.access_token),
                market=config.spotify.market,
                limit=config.spotify.limit,
                timeout=config.spotify.timeout_seconds,
            )
        primary = source or local

        engine = QueueEngine(
            primary,
            fallback=local if primary is not local else None,
            max_length=config.queue.max_length,
            max_length_with_starter=config.queue.max_length_with_starter,
            starter_source=local,
            starter_size=config.queue.starter_size,
            refresh_credentials=refresh_credentials,
        )

        return cls(
            config=config,
            engine=engine,
            simulator=HeartRateSimulator.from_config(config.heart_rate, rng=rng),
            workout=get_workout(config.queue.default_workout),
            heart_rate=config.heart_rate.initial_bpm,
        )

    # Lifecycle

    def _begin_connect(self) -> bool:
        """Reset session state and activate the engine; False if already connected."""
        if self.connected:
            logger.debug("connect called on a connected session")
            return False

        self.heart_rate = self.config.heart_rate.initial_bpm
        self.history = []
        self.clock.reset()
        self.engine.connect()
        self.connected = True
        logger.info(f"Session connected ({self.workout.id}, {self.heart_rate} BPM)")
        return True

    def connect(self) -> Optional[QueueResult]:
        """Start the session: fresh state, first queue, playback per config."""
        if not self._begin_connect():
            return None

        result = self._reevaluate(Trigger.CONNECT)
        self._after_connect()
        return result

    async def connect_async(self) -> Optional[QueueResult]:
        """connect() with the first fetch on a worker thread."""
        if not self._begin_connect():
            return None

        result = await self._reevaluate_async(Trigger.CONNECT)
        self._after_connect()
        return result

    def _after_connect(self) -> None:
        if not self.config.playback.autoplay_on_connect:
            self.clock.pause()
        elif self.clock.active_track is not None:
            self.clock.start()

    def disconnect(self) -> None:
        """Tear down: drop the queue, active track and any in-flight fetch."""
        self.engine.disconnect()
        self.clock.reset()
        self.connected = False
        self.heart_rate = self.config.heart_rate.initial_bpm
        logger.info("Session disconnected")

    # Re-evaluation triggers

    def on_heart_rate_tick(self) -> Optional[QueueResult]:
        """Advance the heart rate one step and re-evaluate the queue."""
        if not self.connected:
            return None
        self.heart_rate = self.simulator.tick(self.heart_rate)
        return self._reevaluate(Trigger.HEART_RATE)

    async def on_heart_rate_tick_async(self) -> Optional[QueueResult]:
        if not self.connected:
            return None
        self.heart_rate = self.simulator.tick(self.heart_rate)
        return await self._reevaluate_async(Trigger.HEART_RATE)

    def set_workout(self, workout_id: str) -> Optional[QueueResult]:
        """Select a workout; re-evaluates when connected and the workout changed.

        Raises:
            ValueError: If workout_id is not a known workout
        """
        workout = get_workout(workout_id)
        if workout.id == self.workout.id:
            return None

        self.engine.cancel_pending()
        self.workout = workout
        logger.info(f"Workout changed to {workout.id}")
        if not self.connected:
            return None
        return self._reevaluate(Trigger.WORKOUT)

    async def set_workout_async(self, workout_id: str) -> Optional[QueueResult]:
        workout = get_workout(workout_id)
        if workout.id == self.workout.id:
            return None

        self.engine.cancel_pending()
        self.workout = workout
        logger.info(f"Workout changed to {workout.id}")
        if not self.connected:
            return None
        return await self._reevaluate_async(Trigger.WORKOUT)

    def _reevaluate(self, trigger: Trigger) -> Optional[QueueResult]:
        result = self.engine.reevaluate(
            self.heart_rate,
            self.workout,
            self.clock.active_track,
            self.clock.is_playing,
            trigger=trigger,
        )
        self._apply(result)
        return result

    async def _reevaluate_async(self, trigger: Trigger) -> Optional[QueueResult]:
        result = await self.engine.reevaluate_async(
            self.heart_rate,
            self.workout,
            lambda: self.clock.state,
            trigger=trigger,
        )
        self._apply(result)
        return result

    def _apply(self, result: Optional[QueueResult]) -> None:
        if result is None or not self.connected:
            return
        self.clock.load(result.active_track)

    # Playback controls

    def on_playback_tick(self) -> bool:
        """Advance simulated playback by one tick (auto-advances at track end)."""
        if not self.connected:
            return False
        return self.clock.tick()

    def toggle_playback(self) -> bool:
        return self.clock.toggle()

    def skip(self) -> Optional[Track]:
        return self.clock.advance()

    def seek(self, ratio: float) -> None:
        self.clock.seek(ratio)

    def _on_track_change(self, track: Optional[Track]) -> None:
        if track is not None:
            self.history.append(track.id)
        _announce(track)

    # Read side

    def get_queue(self) -> List[Track]:
        return list(self.engine.queue)

    def get_active_track(self) -> Optional[Track]:
        return self.clock.active_track

    def get_playback_state(self) -> Dict[str, Any]:
        """Progress snapshot for the UI."""
        return {
            "elapsed_ms": self.clock.elapsed_ms,
            "is_playing": self.clock.is_playing,
            "duration_ms": self.clock.duration_ms(),
        }

    def drain_diagnostics(self) -> List[Diagnostic]:
        return self.engine.drain_diagnostics()
