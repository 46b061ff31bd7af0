"""Playback domain - simulated playback clock and state.

This domain handles:
- Active track and elapsed time (PlaybackState)
- Play/pause/seek and per-second ticking (PlaybackClock)
- Circular progression through the queue
"""

from .clock import PlaybackClock
from .state import (
    PlaybackState,
    get_next_sequential_track,
    get_track_position_in_queue,
)

__all__ = [
    "PlaybackClock",
    "PlaybackState",
    "get_next_sequential_track",
    "get_track_position_in_queue",
]
