"""
Playback state for Pulse Queue

Holds the active track and simulated progress, and the circular queue
navigation used when a track ends or is skipped.
"""

from typing import NamedTuple, Optional, Sequence

from pulse_queue.domain.library.models import Track


class PlaybackState(NamedTuple):
    """Immutable playback state."""

    active_track: Optional[Track] = None
    elapsed_ms: int = 0
    is_playing: bool = False

    @property
    def has_track(self) -> bool:
        return self.active_track is not None


def get_track_position_in_queue(queue: Sequence[Track], track_id: Optional[str]) -> Optional[int]:
    """
    Get the position (0-based index) of a track in the queue.

    Args:
        queue: Current queue
        track_id: ID of the track to find

    Returns:
        0-based position of track, or None if not found
    """
    if track_id is None:
        return None
    for i, track in enumerate(queue):
        if track.id == track_id:
            return i
    return None


def get_next_sequential_track(queue: Sequence[Track], current_track_id: Optional[str]) -> Optional[Track]:
    """
    Get the track after the current one, looping back to the start.

    Args:
        queue: Current queue
        current_track_id: ID of the current track, or None to start from beginning

    Returns:
        Next track, queue[0] when the current track is last or not queued,
        or None if the queue is empty
    """
    if not queue:
        return None

    position = get_track_position_in_queue(queue, current_track_id)
    if position is None or position + 1 >= len(queue):
        return queue[0]
    return queue[position + 1]
