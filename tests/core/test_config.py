"""Tests for configuration parsing and loading."""

from pathlib import Path

import pytest

from pulse_queue.core.config import (
    VALID_WORKOUTS,
    Config,
    HeartRateConfig,
    PlaybackConfig,
    QueueConfig,
    apply_env_overrides,
    create_default_config,
    get_log_file_path,
    load_config,
    parse_config,
)
from pulse_queue.domain.library.workouts import WORKOUTS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep real environment and ~/.config out of the tests."""
    monkeypatch.delenv("SPOTIFY_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("PULSE_QUEUE_SOURCE", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


class TestParseConfig:
    def test_empty_document_gives_defaults(self) -> None:
        config = parse_config({})
        assert config.heart_rate.initial_bpm == 72
        assert config.queue.tolerance_bpm == 20
        assert config.queue.max_length == 8
        assert config.queue.max_length_with_starter == 10
        assert config.playback.default_duration_ms == 210000
        assert config.catalog.path is None

    def test_values_override_defaults(self) -> None:
        config = parse_config(
            {
                "queue": {"source": "spotify", "default_workout": "hiit", "tolerance_bpm": 15},
                "playback": {"autoplay_on_connect": False},
                "spotify": {"market": "GB"},
                "logging": {"level": "debug"},
            }
        )
        assert config.queue.source == "spotify"
        assert config.queue.default_workout == "hiit"
        assert config.queue.tolerance_bpm == 15
        assert config.queue.max_length == 8
        assert config.playback.autoplay_on_connect is False
        assert config.spotify.market == "GB"
        assert config.logging.level == "DEBUG"

    def test_invalid_section_falls_back(self, capsys) -> None:
        config = parse_config({"queue": {"default_workout": "pilates", "max_length": 3}})

        assert config.queue == QueueConfig()
        assert "Invalid queue configuration" in capsys.readouterr().out

    def test_invalid_heart_rate_bounds_fall_back(self) -> None:
        config = parse_config({"heart_rate": {"min_bpm": 210}})
        assert config.heart_rate == HeartRateConfig()

    @pytest.mark.parametrize("tick_ms", [0, -1000])
    def test_non_positive_tick_falls_back(self, tick_ms) -> None:
        config = parse_config({"playback": {"tick_ms": tick_ms, "autoplay_on_connect": False}})
        assert config.playback == PlaybackConfig()

    def test_non_positive_default_duration_rejected(self) -> None:
        with pytest.raises(ValueError, match="default_duration_ms"):
            PlaybackConfig(default_duration_ms=0).validate()

    def test_workout_ids_match_profiles(self) -> None:
        assert VALID_WORKOUTS == set(WORKOUTS)

    def test_default_config_parses_to_defaults(self) -> None:
        import tomllib

        assert parse_config(tomllib.loads(create_default_config())) == Config()


class TestQueueConfigValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"source": "youtube"},
            {"tolerance_bpm": -1},
            {"max_length": 0},
            {"max_length": 12, "max_length_with_starter": 10},
            {"starter_size": -2},
        ],
    )
    def test_rejects_invalid_values(self, kwargs) -> None:
        with pytest.raises(ValueError):
            QueueConfig(**kwargs).validate()


class TestEnvOverrides:
    def test_token_and_source(self, monkeypatch) -> None:
        monkeypatch.setenv("SPOTIFY_ACCESS_TOKEN", "abc")
        monkeypatch.setenv("PULSE_QUEUE_SOURCE", "spotify")

        config = apply_env_overrides(Config())

        assert config.spotify.access_token == "abc"
        assert config.queue.source == "spotify"

    def test_invalid_source_ignored(self, monkeypatch) -> None:
        monkeypatch.setenv("PULSE_QUEUE_SOURCE", "napster")
        assert apply_env_overrides(Config()).queue.source == "local"


class TestLoadConfig:
    def test_creates_default_file(self, tmp_path) -> None:
        path = tmp_path / "nested" / "config.toml"

        config = load_config(path)

        assert path.exists()
        assert config == Config()

    def test_reads_existing_file(self, tmp_path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('[queue]\ndefault_workout = "yoga"\n', encoding="utf-8")

        assert load_config(path).queue.default_workout == "yoga"

    def test_broken_file_uses_defaults(self, tmp_path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[queue\n", encoding="utf-8")

        assert load_config(path) == Config()


class TestLogFilePath:
    def test_default_under_data_dir(self, tmp_path) -> None:
        assert get_log_file_path(Config()) == tmp_path / "data" / "pulse-queue" / "pulse-queue.log"

    def test_custom_path(self) -> None:
        config = Config()
        config.logging.log_file = "/var/log/pq.log"
        assert get_log_file_path(config) == Path("/var/log/pq.log")
