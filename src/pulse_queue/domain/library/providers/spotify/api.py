"""
Spotify recommendation source.

Queries /recommendations biased by a tempo window around the heart rate and
by seed genres mapped from the workout, then fills in tempo from
/audio-features. HTTP failures are mapped onto the track source exceptions.
"""

from typing import Any, Dict, List, Optional, Tuple

import requests
from loguru import logger

from ...exceptions import AuthExpired, RateLimited, SourceUnavailable
from ...models import Track
from ...workouts import WorkoutProfile, genres_for
from .auth import TokenSupplier, sanitize_token

# Spotify API base URL
API_BASE = "https://api.spotify.com/v1"

# Tempo window bounds
MIN_TEMPO = 40
MAX_TEMPO = 220
TEMPO_WINDOW = 20
FALLBACK_TARGET_TEMPO = 120

# /audio-features accepts at most this many ids per request
AUDIO_FEATURES_BATCH = 100


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def tempo_window_from_hr(heart_rate_bpm: Optional[float]) -> Tuple[int, int, int]:
    """Compute (min, target, max) tempo around a heart rate, clamped to [40, 220]."""
    bpm = heart_rate_bpm if heart_rate_bpm else FALLBACK_TARGET_TEMPO
    target = max(MIN_TEMPO, min(MAX_TEMPO, _round_half_up(bpm)))
    low = max(MIN_TEMPO, target - TEMPO_WINDOW)
    high = min(MAX_TEMPO, target + TEMPO_WINDOW)
    return low, target, high


def _parse_retry_after(response: requests.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        logger.debug(f"Unparseable Retry-After header: {value!r}")
        return None


def _raise_for_status(response: requests.Response) -> None:
    """Map a non-2xx response onto the track source exceptions."""
    if response.ok:
        return

    status = response.status_code
    if status == 401:
        raise AuthExpired(
            "Spotify 401 Unauthorized: invalid or expired access token"
        )
    if status == 429:
        raise RateLimited(retry_after=_parse_retry_after(response))

    body = response.text.strip() if response.text else ""
    raise SourceUnavailable(
        f"Spotify {status}: {body or 'Unknown error'}", status_code=status
    )


def _normalize_spotify_track(track: Dict[str, Any], tempo: Optional[float]) -> Track:
    """Convert Spotify API track response to a Track."""
    return Track(
        id=track["id"],
        name=(track.get("name") or "").strip(),
        artist=", ".join(
            a["name"]
            for a in track.get("artists") or []
            if isinstance(a, dict) and a.get("name") is not None
        ),
        bpm=tempo,
        duration_ms=track.get("duration_ms") or None,
        workout=None,
    )


class RemoteRecommendationSource:
    """Track source backed by Spotify recommendations.

    Each call issues one /recommendations request and one /audio-features
    request per 100 ids. Nothing is cached between calls.
    """

    name = "spotify"

    def __init__(
        self,
        token_supplier: TokenSupplier,
        market: str = "US",
        limit: int = 20,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.token_supplier = token_supplier
        self.market = market
        self.limit = limit
        self.timeout = timeout
        self.http = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        token = sanitize_token(self.token_supplier())
        if not token:
            raise AuthExpired("No Spotify access token available")
        return {"Authorization": f"Bearer {token}"}

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{API_BASE}{path}"
        headers = self._headers()
        try:
            response = self.http.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceUnavailable(f"Spotify request failed: {e}") from e

        _raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailable(f"Spotify returned invalid JSON from {path}") from e

        if not isinstance(data, dict):
            raise SourceUnavailable(
                f"Spotify returned {type(data).__name__} instead of an object from {path}"
            )
        return data

    def fetch_candidates(self, heart_rate_bpm: float, workout: WorkoutProfile) -> List[Track]:
        """Fetch recommended tracks aligned to the heart rate and workout.

        Returns:
            Tracks in recommendation order with tempo filled in where known;
            an empty list when Spotify has no recommendations
        """
        low, target, high = tempo_window_from_hr(heart_rate_bpm)
        params = {
            "limit": self.limit,
            "seed_genres": ",".join(genres_for(workout)),
            "target_tempo": target,
            "min_tempo": low,
            "max_tempo": high,
            "market": self.market,
        }

        logger.debug(f"Spotify recommendations request: {params}")
        data = self._get_json("/recommendations", params)

        items = data.get("tracks") if isinstance(data.get("tracks"), list) else []
        items = [item for item in items if isinstance(item, dict) and item.get("id")]
        if not items:
            logger.info(f"Spotify returned no recommendations for {workout.id} @ {target} BPM")
            return []

        tempos = self.fetch_tempos([item["id"] for item in items])
        tracks = [_normalize_spotify_track(item, tempos.get(item["id"])) for item in items]
        logger.info(f"Spotify returned {len(tracks)} recommendations for {workout.id} @ {target} BPM")
        return tracks

    def fetch_tempos(self, track_ids: List[str]) -> Dict[str, Optional[float]]:
        """Look up tempo for track ids via /audio-features, 100 ids per request.

        A 403/404 from /audio-features leaves the affected ids without tempo;
        every other failure propagates.
        """
        tempos: Dict[str, Optional[float]] = {}
        for start in range(0, len(track_ids), AUDIO_FEATURES_BATCH):
            chunk = track_ids[start : start + AUDIO_FEATURES_BATCH]
            try:
                data = self._get_json("/audio-features", {"ids": ",".join(chunk)})
            except SourceUnavailable as e:
                if e.status_code in (403, 404):
                    logger.warning(f"Audio features unavailable ({e.status_code}), tempo unknown")
                    continue
                raise

            for features in data.get("audio_features") or []:
                if isinstance(features, dict) and features.get("id"):
                    tempos[features["id"]] = features.get("tempo")
        return tempos
