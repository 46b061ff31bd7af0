"""Tests for playback state and queue navigation."""

from pulse_queue.domain.playback.state import (
    PlaybackState,
    get_next_sequential_track,
    get_track_position_in_queue,
)

from conftest import make_track


class TestPlaybackState:
    def test_starts_empty(self) -> None:
        state = PlaybackState()
        assert state.active_track is None
        assert state.elapsed_ms == 0
        assert state.is_playing is False
        assert not state.has_track


class TestQueueNavigation:
    def setup_method(self) -> None:
        self.queue = [make_track("a"), make_track("b"), make_track("c")]

    def test_position(self) -> None:
        assert get_track_position_in_queue(self.queue, "b") == 1
        assert get_track_position_in_queue(self.queue, "z") is None
        assert get_track_position_in_queue(self.queue, None) is None

    def test_next_track(self) -> None:
        assert get_next_sequential_track(self.queue, "a").id == "b"

    def test_last_track_wraps(self) -> None:
        assert get_next_sequential_track(self.queue, "c").id == "a"

    def test_unknown_track_starts_from_head(self) -> None:
        assert get_next_sequential_track(self.queue, "z").id == "a"
        assert get_next_sequential_track(self.queue, None).id == "a"

    def test_empty_queue(self) -> None:
        assert get_next_sequential_track([], "a") is None
