"""Tests for the session object the UI drives."""

import asyncio

import pytest

from pulse_queue.domain.library.exceptions import SourceUnavailable
from pulse_queue.domain.queue.engine import DiagnosticKind
from pulse_queue.session import Session, build_local_source

from conftest import FakeSource, FixedRandom, make_track

YOGA_AT_72 = ["5", "17", "20", "22", "6", "29"]


def ids(tracks):
    return [track.id for track in tracks]


@pytest.fixture
def session(config) -> Session:
    return Session.create(config, rng=FixedRandom(0.5))


class TestConnect:
    def test_connect_builds_first_queue_and_plays(self, session) -> None:
        session.connect()

        assert session.connected
        assert ids(session.get_queue()) == YOGA_AT_72
        assert session.get_active_track().id == "5"
        assert session.get_playback_state() == {
            "elapsed_ms": 0,
            "is_playing": True,
            "duration_ms": 266000,
        }
        assert session.history == ["5"]

    def test_connect_async(self, session) -> None:
        result = asyncio.run(session.connect_async())

        assert ids(result.queue) == YOGA_AT_72
        assert session.get_active_track().id == "5"

    def test_second_connect_is_ignored(self, session) -> None:
        session.connect()
        assert session.connect() is None

    def test_no_autoplay_stays_paused(self, config) -> None:
        config.playback.autoplay_on_connect = False
        session = Session.create(config)

        session.connect()

        assert session.get_active_track().id == "5"
        assert not session.get_playback_state()["is_playing"]

    def test_starter_set_merged_on_connect(self, config) -> None:
        config.queue.default_workout = "cardio"
        config.queue.starter_size = 2
        session = Session.create(config, source=FakeSource([make_track("r1", bpm=130)]))

        session.connect()

        queue = session.get_queue()
        assert ids(queue)[0] == "r1"
        assert len(queue) == 3
        assert all(track.workout == "cardio" for track in queue)


class TestDisconnect:
    def test_disconnect_tears_down(self, session) -> None:
        session.connect()
        session.on_heart_rate_tick()

        session.disconnect()

        assert not session.connected
        assert session.get_queue() == []
        assert session.get_active_track() is None
        assert session.heart_rate == 72
        assert session.on_heart_rate_tick() is None
        assert session.on_playback_tick() is False


class TestTriggers:
    def test_heart_rate_tick_keeps_active_track(self, session) -> None:
        session.connect()

        result = session.on_heart_rate_tick()

        assert session.heart_rate == 73
        assert result.queue[0].id == "5"
        assert session.get_active_track().id == "5"

    def test_heart_rate_tick_async(self, session) -> None:
        session.connect()
        result = asyncio.run(session.on_heart_rate_tick_async())
        assert result.active_track.id == "5"

    def test_playback_ticks_do_not_reevaluate(self, config) -> None:
        source = FakeSource([make_track("a", bpm=72, workout="yoga")])
        session = Session.create(config, source=source)
        session.connect()

        for _ in range(10):
            session.on_playback_tick()

        assert len(source.calls) == 1
        assert session.get_playback_state()["elapsed_ms"] == 10000

    def test_set_workout_without_matches_clears_track(self, session) -> None:
        session.connect()

        result = session.set_workout("cardio")

        assert result.queue == []
        assert session.get_active_track() is None
        assert not session.get_playback_state()["is_playing"]
        kinds = [d.kind for d in session.drain_diagnostics()]
        assert kinds == [DiagnosticKind.NO_CANDIDATES]

    def test_same_workout_is_noop(self, session) -> None:
        session.connect()
        assert session.set_workout("yoga") is None

    def test_set_workout_before_connect(self, session) -> None:
        assert session.set_workout("hiit") is None
        assert session.workout.id == "hiit"

    def test_set_workout_async(self, session) -> None:
        session.connect()
        result = asyncio.run(session.set_workout_async("cardio"))
        assert result.queue == []

    def test_unknown_workout_raises(self, session) -> None:
        with pytest.raises(ValueError):
            session.set_workout("pilates")


class TestControls:
    def test_skip_and_toggle(self, session) -> None:
        session.connect()

        assert session.skip().id == "17"
        assert session.toggle_playback() is False
        assert session.toggle_playback() is True
        assert session.history == ["5", "17"]

    def test_seek(self, session) -> None:
        session.connect()
        session.seek(0.5)
        assert session.get_playback_state()["elapsed_ms"] == 133000


class TestSources:
    def test_remote_failure_falls_back_to_local(self, config) -> None:
        remote = FakeSource(errors=[SourceUnavailable("down")], name="spotify")
        session = Session.create(config, source=remote)

        result = session.connect()

        assert result.source == "local"
        assert ids(session.get_queue()) == YOGA_AT_72
        kinds = [d.kind for d in session.drain_diagnostics()]
        assert kinds == [DiagnosticKind.SOURCE_UNAVAILABLE]

    def test_spotify_source_from_config(self, config) -> None:
        config.queue.source = "spotify"
        session = Session.create(config, token_supplier=lambda: "token")

        assert session.engine.source.name == "spotify"
        assert session.engine.fallback.name == "local"

    def test_bad_catalog_uses_builtin(self, config, tmp_path) -> None:
        config.catalog.path = str(tmp_path / "missing.toml")
        assert len(build_local_source(config).catalog) == 30
