"""
Simulated playback clock.

There is no audio: "playing" means elapsed time advances by one tick per
second. When elapsed time reaches the track's duration the clock advances
to the next queued track, looping back to the start of the queue.
"""

from typing import Callable, List, Optional

from loguru import logger

from pulse_queue.domain.library.models import DEFAULT_DURATION_MS, Track, same_track

from .state import PlaybackState, get_next_sequential_track

QueueSupplier = Callable[[], List[Track]]


class PlaybackClock:
    """Owns PlaybackState; reads the queue through queue_supplier.

    Invariant: while playing, elapsed_ms stays below the active track's
    duration once tick() returns.
    """

    def __init__(
        self,
        queue_supplier: QueueSupplier,
        tick_ms: int = 1000,
        default_duration_ms: int = DEFAULT_DURATION_MS,
        on_track_change: Optional[Callable[[Optional[Track]], None]] = None,
    ):
        self.queue_supplier = queue_supplier
        self.tick_ms = tick_ms
        self.default_duration_ms = default_duration_ms
        self.on_track_change = on_track_change
        self.state = PlaybackState()

    @property
    def active_track(self) -> Optional[Track]:
        return self.state.active_track

    @property
    def elapsed_ms(self) -> int:
        return self.state.elapsed_ms

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    def duration_ms(self) -> int:
        """Effective duration of the active track (0 when nothing is loaded)."""
        if not self.state.has_track:
            return 0
        return self.state.active_track.effective_duration_ms(self.default_duration_ms)

    def load(self, track: Optional[Track]) -> None:
        """Make track the active track.

        A different id resets elapsed time and starts playback. The same id
        keeps progress and only refreshes the stored value. None clears the
        active track and stops playback.
        """
        previous = self.state.active_track
        if track is None:
            self.state = PlaybackState()
            if previous is not None:
                logger.debug(f"Cleared active track {previous.id}")
                self._notify(None)
            return

        if same_track(previous, track):
            self.state = self.state._replace(active_track=track)
            return

        self.state = PlaybackState(active_track=track, elapsed_ms=0, is_playing=True)
        logger.debug(f"Loaded track {track.id}: {track.name} - {track.artist}")
        self._notify(track)

    def start(self) -> None:
        self.state = self.state._replace(is_playing=True)

    def pause(self) -> None:
        self.state = self.state._replace(is_playing=False)

    def toggle(self) -> bool:
        """Flip play/pause; starting with nothing loaded loads the head of the queue.

        Returns:
            New is_playing value
        """
        playing = not self.state.is_playing
        self.state = self.state._replace(is_playing=playing)

        if playing and not self.state.has_track:
            queue = self.queue_supplier()
            if queue:
                self.load(queue[0])
        return self.state.is_playing

    def tick(self) -> bool:
        """Advance elapsed time by one tick.

        No-op unless playing with a track loaded.

        Returns:
            True if the tick reached the end of the track and advanced
        """
        if not self.state.is_playing or not self.state.has_track:
            return False

        elapsed = self.state.elapsed_ms + self.tick_ms
        if elapsed < self.duration_ms():
            self.state = self.state._replace(elapsed_ms=elapsed)
            return False

        logger.debug(f"Track {self.state.active_track.id} finished, advancing")
        self.advance()
        # Advancing to the same track (single-entry queue) must still restart it
        self.state = self.state._replace(elapsed_ms=0)
        return True

    def advance(self) -> Optional[Track]:
        """Move to the next queued track, looping; clears the track if the queue is empty."""
        current = self.state.active_track
        next_track = get_next_sequential_track(
            self.queue_supplier(), current.id if current else None
        )
        self.load(next_track)
        return next_track

    def seek(self, ratio: float) -> None:
        """Jump to ratio of the active track's duration; resumes playback if paused."""
        if not self.state.has_track:
            return

        duration = self.duration_ms()
        if ratio != ratio:  # NaN
            ratio = 0.0
        ratio = max(0.0, min(1.0, ratio))
        position = max(0, min(duration, int(round(ratio * duration))))
        self.state = self.state._replace(elapsed_ms=position, is_playing=True)

    def reset(self) -> None:
        self.state = PlaybackState()

    def _notify(self, track: Optional[Track]) -> None:
        if self.on_track_change is not None:
            self.on_track_change(track)
