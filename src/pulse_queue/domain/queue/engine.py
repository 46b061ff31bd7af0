"""Queue engine: heart-rate driven queue rebuilding.

Turns track source candidates into a ranked, capacity-bounded queue and
decides what the active track should be after each re-evaluation.

Re-evaluation runs only on three triggers: heart-rate tick, workout change
and session connect. Source failures never escape: they become diagnostics
plus one attempt against the fallback source, and if that also fails the
last-known-good queue is kept.

Async re-evaluation is single-flight with supersession: every request takes
a new sequence number, and a fetch that resolves after a newer request (or
after cancel_pending) is discarded.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple

from loguru import logger

from pulse_queue.core.output import log
from pulse_queue.domain.library.exceptions import (
    AuthExpired,
    RateLimited,
    SourceUnavailable,
    StaleResult,
    TrackSourceError,
)
from pulse_queue.domain.library.models import Track
from pulse_queue.domain.library.provider import (
    TrackSource,
    dedupe_by_id,
    find_track,
    rank_by_distance,
)
from pulse_queue.domain.library.providers.local import LocalCatalogSource
from pulse_queue.domain.library.workouts import WorkoutProfile
from pulse_queue.domain.playback.state import PlaybackState

DEFAULT_MAX_LENGTH = 8
DEFAULT_MAX_LENGTH_WITH_STARTER = 10


class Trigger(str, Enum):
    """Events that cause a re-evaluation."""

    HEART_RATE = "heart_rate"
    WORKOUT = "workout"
    CONNECT = "connect"


class EngineState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class DiagnosticKind(str, Enum):
    NO_CANDIDATES = "no_candidates"
    AUTH_EXPIRED = "auth_expired"
    RATE_LIMITED = "rate_limited"
    SOURCE_UNAVAILABLE = "source_unavailable"
    FALLBACK_FAILED = "fallback_failed"


@dataclass(frozen=True)
class Diagnostic:
    """User-visible, non-fatal notice produced by a re-evaluation."""

    kind: DiagnosticKind
    message: str
    retry_after: Optional[float] = None


class QueueResult(NamedTuple):
    """Outcome of a re-evaluation."""

    queue: List[Track]
    active_track: Optional[Track]
    source: Optional[str] = None  # Name of the source that produced the queue


@dataclass
class _FetchOutcome:
    """Candidates (None when every source failed) plus diagnostics to publish."""

    candidates: Optional[List[Track]]
    source: Optional[str]
    diagnostics: List[Diagnostic] = field(default_factory=list)


PlaybackSupplier = Callable[[], PlaybackState]
RefreshCallback = Callable[[], bool]


def rebuild_queue(
    candidates: List[Track],
    heart_rate_bpm: float,
    active_track: Optional[Track],
    is_playing: bool,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> Tuple[List[Track], Optional[Track]]:
    """Build the new queue and active track from fresh candidates.

    - No candidates: empty queue, no active track.
    - Active track among the candidates: it moves to position 0 and stays active.
    - Otherwise the queue is the ranked candidates; the best match becomes
      active when playing or when nothing was active, and a paused user
      keeps their (now stale) track.

    The queue never holds duplicate ids and never exceeds max_length.

    Returns:
        (queue, active_track)
    """
    ranked = dedupe_by_id(rank_by_distance(candidates, heart_rate_bpm))
    if not ranked:
        return [], None

    current = find_track(ranked, active_track.id if active_track else None)
    if current is not None:
        queue = [current] + [track for track in ranked if track.id != current.id]
        return queue[:max_length], active_track

    queue = ranked[:max_length]
    if active_track is None or is_playing:
        return queue, queue[0]
    return queue, active_track


def merge_starter_tracks(
    queue: List[Track],
    starter: List[Track],
    heart_rate_bpm: float,
    limit: int = DEFAULT_MAX_LENGTH_WITH_STARTER,
) -> List[Track]:
    """Append starter tracks not already queued, up to limit entries."""
    queued_ids = {track.id for track in queue}
    merged = list(queue)
    for track in starter:
        if len(merged) >= limit:
            break
        if track.id in queued_ids:
            continue
        queued_ids.add(track.id)
        merged.append(track.with_bpm_distance(heart_rate_bpm))
    return merged[:limit]


class QueueEngine:
    """Owns the queue and the Idle/Active lifecycle.

    The primary source is injected; when it fails, the fallback source
    (normally the local catalog) is tried once with the same parameters.
    """

    def __init__(
        self,
        source: TrackSource,
        fallback: Optional[TrackSource] = None,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_length_with_starter: int = DEFAULT_MAX_LENGTH_WITH_STARTER,
        starter_source: Optional[LocalCatalogSource] = None,
        starter_size: int = 0,
        refresh_credentials: Optional[RefreshCallback] = None,
    ):
        self.source = source
        self.fallback = fallback
        self.max_length = max_length
        self.max_length_with_starter = max_length_with_starter
        self.starter_source = starter_source
        self.starter_size = starter_size
        self.refresh_credentials = refresh_credentials

        self.state = EngineState.IDLE
        self.queue: List[Track] = []
        self._diagnostics: List[Diagnostic] = []
        self._diagnostics_lock = threading.Lock()
        self._sequence = 0
        self._fetching: Optional[int] = None

    # Lifecycle

    def connect(self) -> None:
        """Enter Active with an empty queue."""
        self.cancel_pending()
        self.queue = []
        self.state = EngineState.ACTIVE
        logger.info(f"Queue engine active (source={self.source.name})")

    def disconnect(self) -> None:
        """Return to Idle, dropping the queue and any in-flight fetch."""
        self.cancel_pending()
        self.queue = []
        self.state = EngineState.IDLE
        with self._diagnostics_lock:
            self._diagnostics = []
        logger.info("Queue engine idle")

    @property
    def is_active(self) -> bool:
        return self.state is EngineState.ACTIVE

    @property
    def is_fetching(self) -> bool:
        """True while the most recent async request is outstanding."""
        return self._fetching is not None

    def cancel_pending(self) -> None:
        """Logically cancel any in-flight fetch; its result is dropped on arrival."""
        self._sequence += 1
        self._fetching = None

    # Diagnostics

    def drain_diagnostics(self) -> List[Diagnostic]:
        """Get and clear all diagnostics published since the last drain."""
        with self._diagnostics_lock:
            diagnostics = self._diagnostics[:]
            self._diagnostics = []
        return diagnostics

    def _publish(self, diagnostics: List[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            level = "info" if diagnostic.kind is DiagnosticKind.NO_CANDIDATES else "warning"
            log(diagnostic.message, level=level)
        with self._diagnostics_lock:
            self._diagnostics.extend(diagnostics)

    # Fetching

    def _fetch_primary(self, heart_rate_bpm: float, workout: WorkoutProfile) -> List[Track]:
        """Fetch from the primary source, refreshing credentials and retrying once on AuthExpired."""
        try:
            return self.source.fetch_candidates(heart_rate_bpm, workout)
        except AuthExpired:
            if self.refresh_credentials is None:
                raise
            logger.info(f"{self.source.name} credential expired, requesting refresh")
            if not self.refresh_credentials():
                logger.warning("Credential refresh failed")
                raise
        return self.source.fetch_candidates(heart_rate_bpm, workout)

    def _fetch_candidates(self, heart_rate_bpm: float, workout: WorkoutProfile) -> _FetchOutcome:
        """Fetch with fallback. Runs on the caller's thread or a worker thread."""
        fallback = self.fallback if self.fallback is not self.source else None
        try:
            candidates = self._fetch_primary(heart_rate_bpm, workout)
            return _FetchOutcome(candidates, self.source.name)
        except TrackSourceError as e:
            logger.warning(f"{self.source.name} fetch failed: {e!r}")
            error = e
        except Exception as e:
            logger.exception(f"Unexpected error from {self.source.name}")
            error = SourceUnavailable(f"unexpected error: {e}")

        diagnostics = [
            _diagnose_failure(self.source.name, error, fallback.name if fallback else None)
        ]

        if fallback is None:
            diagnostics.append(
                Diagnostic(DiagnosticKind.FALLBACK_FAILED, "No fallback source; keeping current queue")
            )
            return _FetchOutcome(None, None, diagnostics)

        try:
            candidates = fallback.fetch_candidates(heart_rate_bpm, workout)
        except Exception as e:
            logger.exception(f"Fallback source {fallback.name} failed")
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.FALLBACK_FAILED,
                    f"Fallback source {fallback.name} failed ({e}); keeping current queue",
                )
            )
            return _FetchOutcome(None, None, diagnostics)

        logger.info(f"Fell back to {fallback.name}: {len(candidates)} candidates")
        return _FetchOutcome(candidates, fallback.name, diagnostics)

    # Re-evaluation

    def reevaluate(
        self,
        heart_rate_bpm: float,
        workout: WorkoutProfile,
        active_track: Optional[Track],
        is_playing: bool,
        trigger: Trigger = Trigger.HEART_RATE,
    ) -> Optional[QueueResult]:
        """Fetch candidates synchronously and rebuild the queue.

        Supersedes any in-flight async request.

        Returns:
            QueueResult, or None when the engine is idle
        """
        if not self.is_active:
            logger.debug(f"Ignoring {trigger.value} re-evaluation while idle")
            return None

        self.cancel_pending()
        outcome = self._fetch_candidates(heart_rate_bpm, workout)
        self._publish(outcome.diagnostics)
        return self._apply(outcome, heart_rate_bpm, workout, active_track, is_playing, trigger)

    async def reevaluate_async(
        self,
        heart_rate_bpm: float,
        workout: WorkoutProfile,
        playback: PlaybackSupplier,
        trigger: Trigger = Trigger.HEART_RATE,
    ) -> Optional[QueueResult]:
        """Fetch candidates on a worker thread and rebuild the queue.

        playback is read when the fetch resolves, so the rebuild sees the
        active track as it is then, not as it was when the request started.

        Returns:
            QueueResult, or None when idle or when superseded
        """
        if not self.is_active:
            logger.debug(f"Ignoring {trigger.value} re-evaluation while idle")
            return None

        self._sequence += 1
        sequence = self._sequence
        self._fetching = sequence
        logger.debug(f"Fetch #{sequence} started ({trigger.value}, {heart_rate_bpm} BPM, {workout.id})")

        try:
            outcome = await asyncio.to_thread(self._fetch_candidates, heart_rate_bpm, workout)
            self._check_current(sequence)
        except StaleResult as e:
            logger.debug(f"Discarding stale result: {e}")
            return None
        finally:
            if self._fetching == sequence:
                self._fetching = None

        self._publish(outcome.diagnostics)
        state = playback()
        return self._apply(outcome, heart_rate_bpm, workout, state.active_track, state.is_playing, trigger)

    def _check_current(self, sequence: int) -> None:
        if sequence != self._sequence or not self.is_active:
            raise StaleResult(sequence, self._sequence)

    def _apply(
        self,
        outcome: _FetchOutcome,
        heart_rate_bpm: float,
        workout: WorkoutProfile,
        active_track: Optional[Track],
        is_playing: bool,
        trigger: Trigger,
    ) -> QueueResult:
        if outcome.candidates is None:
            # Last-known-good
            return QueueResult(list(self.queue), active_track, None)

        queue, new_active = rebuild_queue(
            outcome.candidates, heart_rate_bpm, active_track, is_playing, self.max_length
        )

        if not queue:
            self._publish(
                [
                    Diagnostic(
                        DiagnosticKind.NO_CANDIDATES,
                        f"No {workout.name} tracks match {heart_rate_bpm:g} BPM",
                    )
                ]
            )
        elif trigger is Trigger.CONNECT and self.starter_source and self.starter_size > 0:
            starter = self.starter_source.starter_tracks(workout, self.starter_size)
            queue = merge_starter_tracks(queue, starter, heart_rate_bpm, self.max_length_with_starter)

        self.queue = queue
        logger.debug(
            f"Queue rebuilt ({trigger.value}): {len(queue)} tracks from {outcome.source}, "
            f"active={new_active.id if new_active else None}"
        )
        return QueueResult(list(queue), new_active, outcome.source)


def _diagnose_failure(
    source_name: str, error: TrackSourceError, fallback_name: Optional[str]
) -> Diagnostic:
    """Convert a source failure into a diagnostic."""
    suffix = f"; using {fallback_name}" if fallback_name else ""
    if isinstance(error, AuthExpired):
        return Diagnostic(
            DiagnosticKind.AUTH_EXPIRED,
            f"{source_name} sign-in expired ({error}){suffix}",
        )
    if isinstance(error, RateLimited):
        return Diagnostic(
            DiagnosticKind.RATE_LIMITED,
            f"{source_name} rate limited ({error}){suffix}",
            retry_after=error.retry_after,
        )
    return Diagnostic(
        DiagnosticKind.SOURCE_UNAVAILABLE,
        f"{source_name} unavailable ({error}){suffix}",
    )
