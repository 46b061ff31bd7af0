"""Tests for the Spotify recommendation source."""

from unittest.mock import MagicMock

import pytest
import requests

from pulse_queue.domain.library.exceptions import AuthExpired, RateLimited, SourceUnavailable
from pulse_queue.domain.library.providers.spotify import (
    RemoteRecommendationSource,
    StaticTokenSupplier,
    sanitize_token,
    tempo_window_from_hr,
)
from pulse_queue.domain.library.workouts import get_workout


def mock_response(status_code=200, payload=None, headers=None, text=""):
    response = MagicMock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.headers = headers or {}
    response.text = text
    return response


def spotify_track(track_id, name="Song", artists=("Artist",), duration_ms=180000):
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": a} for a in artists],
        "duration_ms": duration_ms,
    }


def make_source(*responses, token="token-123"):
    session = MagicMock()
    session.get.side_effect = list(responses)
    source = RemoteRecommendationSource(StaticTokenSupplier(token), session=session)
    return source, session


class TestTempoWindow:
    def test_window_around_heart_rate(self) -> None:
        assert tempo_window_from_hr(130) == (110, 130, 150)

    def test_rounds_half_up(self) -> None:
        assert tempo_window_from_hr(72.5) == (53, 73, 93)

    def test_clamped_low(self) -> None:
        assert tempo_window_from_hr(30) == (40, 40, 60)

    def test_clamped_high(self) -> None:
        assert tempo_window_from_hr(230) == (200, 220, 220)

    @pytest.mark.parametrize("value", [None, 0])
    def test_missing_heart_rate_uses_fallback(self, value) -> None:
        assert tempo_window_from_hr(value) == (100, 120, 140)


class TestSanitizeToken:
    def test_strips_whitespace_and_quotes(self) -> None:
        assert sanitize_token('  "abc"  ') == "abc"
        assert sanitize_token("'abc'") == "abc"

    def test_none_is_empty(self) -> None:
        assert sanitize_token(None) == ""

    def test_supplier_swaps_token(self) -> None:
        supplier = StaticTokenSupplier()
        assert supplier() is None
        supplier.set_token(" new ")
        assert supplier() == "new"
        supplier.clear()
        assert supplier() is None


class TestFetchCandidates:
    """Tests for RemoteRecommendationSource.fetch_candidates."""

    def test_query_biased_by_tempo_and_genre(self) -> None:
        source, session = make_source(mock_response(payload={"tracks": []}))

        source.fetch_candidates(130, get_workout("cardio"))

        url = session.get.call_args.args[0]
        kwargs = session.get.call_args.kwargs
        assert url.endswith("/recommendations")
        assert kwargs["headers"] == {"Authorization": "Bearer token-123"}
        assert kwargs["params"]["seed_genres"] == "pop,dance"
        assert kwargs["params"]["target_tempo"] == 130
        assert kwargs["params"]["min_tempo"] == 110
        assert kwargs["params"]["max_tempo"] == 150
        assert kwargs["params"]["limit"] == 20

    def test_empty_result_is_not_an_error(self) -> None:
        source, session = make_source(mock_response(payload={"tracks": []}))
        assert source.fetch_candidates(72, get_workout("yoga")) == []
        assert session.get.call_count == 1

    def test_tracks_normalized_with_tempo(self) -> None:
        source, session = make_source(
            mock_response(
                payload={
                    "tracks": [
                        spotify_track("a", name=" One ", artists=("X", "Y")),
                        spotify_track("b", duration_ms=0),
                    ]
                }
            ),
            mock_response(payload={"audio_features": [{"id": "a", "tempo": 128.5}, None]}),
        )

        tracks = source.fetch_candidates(130, get_workout("cardio"))

        assert [t.id for t in tracks] == ["a", "b"]
        assert tracks[0].name == "One"
        assert tracks[0].artist == "X, Y"
        assert tracks[0].bpm == 128.5
        assert tracks[0].workout is None
        assert tracks[1].bpm is None
        assert tracks[1].duration_ms is None
        assert session.get.call_args.kwargs["params"] == {"ids": "a,b"}

    def test_missing_token_is_auth_expired(self) -> None:
        source, session = make_source(token=None)
        with pytest.raises(AuthExpired):
            source.fetch_candidates(72, get_workout("yoga"))
        session.get.assert_not_called()

    def test_401_is_auth_expired(self) -> None:
        source, _ = make_source(mock_response(401))
        with pytest.raises(AuthExpired):
            source.fetch_candidates(72, get_workout("yoga"))

    def test_429_carries_retry_after(self) -> None:
        source, _ = make_source(mock_response(429, headers={"Retry-After": "7"}))
        with pytest.raises(RateLimited) as exc_info:
            source.fetch_candidates(72, get_workout("yoga"))
        assert exc_info.value.retry_after == 7.0

    def test_429_without_header(self) -> None:
        source, _ = make_source(mock_response(429))
        with pytest.raises(RateLimited) as exc_info:
            source.fetch_candidates(72, get_workout("yoga"))
        assert exc_info.value.retry_after is None

    def test_server_error_is_unavailable(self) -> None:
        source, _ = make_source(mock_response(503, text="down"))
        with pytest.raises(SourceUnavailable, match="503") as exc_info:
            source.fetch_candidates(72, get_workout("yoga"))
        assert exc_info.value.status_code == 503

    def test_transport_error_is_unavailable(self) -> None:
        source, _ = make_source(requests.ConnectionError("no route"))
        with pytest.raises(SourceUnavailable):
            source.fetch_candidates(72, get_workout("yoga"))

    def test_invalid_json_is_unavailable(self) -> None:
        response = mock_response()
        response.json.side_effect = ValueError("bad json")
        source, _ = make_source(response)
        with pytest.raises(SourceUnavailable):
            source.fetch_candidates(72, get_workout("yoga"))


class TestFetchTempos:
    def test_batches_of_one_hundred(self) -> None:
        ids = [f"t{i}" for i in range(250)]
        source, session = make_source(
            mock_response(payload={"audio_features": []}),
            mock_response(payload={"audio_features": []}),
            mock_response(payload={"audio_features": [{"id": "t249", "tempo": 99.0}]}),
        )

        tempos = source.fetch_tempos(ids)

        assert session.get.call_count == 3
        batch_sizes = [
            len(call.kwargs["params"]["ids"].split(",")) for call in session.get.call_args_list
        ]
        assert batch_sizes == [100, 100, 50]
        assert tempos == {"t249": 99.0}

    def test_forbidden_leaves_tempo_unknown(self) -> None:
        source, _ = make_source(mock_response(403))
        assert source.fetch_tempos(["a"]) == {}

    def test_other_errors_propagate(self) -> None:
        source, _ = make_source(mock_response(500))
        with pytest.raises(SourceUnavailable):
            source.fetch_tempos(["a"])


def json_response(body):
    """200 response whose JSON body is exactly body (None included)."""
    response = mock_response()
    response.json.return_value = body
    return response


class TestMalformedResponses:
    """Well-formed HTTP, unexpected JSON shapes."""

    @pytest.mark.parametrize("body", [None, [], "tracks", 42])
    def test_non_object_body_is_unavailable(self, body) -> None:
        source, _ = make_source(json_response(body))
        with pytest.raises(SourceUnavailable, match="instead of an object"):
            source.fetch_candidates(72, get_workout("yoga"))

    def test_null_artists_gives_empty_artist(self) -> None:
        source, _ = make_source(
            json_response({"tracks": [{"id": "x", "name": "Song", "artists": None}]}),
            json_response({"audio_features": None}),
        )

        tracks = source.fetch_candidates(72, get_workout("yoga"))

        assert [t.id for t in tracks] == ["x"]
        assert tracks[0].artist == ""
        assert tracks[0].bpm is None

    def test_junk_entries_skipped(self) -> None:
        source, _ = make_source(
            json_response({"tracks": [None, "x", {"id": "a", "artists": [None, {"name": "A"}]}]}),
            json_response({"audio_features": ["junk", {"id": "a", "tempo": 70.0}]}),
        )

        tracks = source.fetch_candidates(72, get_workout("yoga"))

        assert [t.id for t in tracks] == ["a"]
        assert tracks[0].artist == "A"
        assert tracks[0].bpm == 70.0

    def test_tracks_not_a_list_is_empty(self) -> None:
        source, session = make_source(json_response({"tracks": {"id": "a"}}))
        assert source.fetch_candidates(72, get_workout("yoga")) == []
        assert session.get.call_count == 1
