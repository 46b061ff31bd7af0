"""
Static track catalog.

The built-in catalog is the pool LocalCatalogSource matches against. An
alternative catalog can be loaded from a TOML file of [[tracks]] entries:

    [[tracks]]
    id = "31"
    name = "Run Boy Run"
    artist = "Woodkid"
    bpm = 130
    workout = "cardio"
    duration_ms = 224000
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from .models import Track
from .workouts import WORKOUTS

# (id, name, artist, bpm, workout, duration_ms)
_BUILTIN_ROWS: Tuple[Tuple[str, str, str, int, str, int], ...] = (
    ("1", "Electric Feel", "MGMT", 112, "cardio", 228000),
    ("2", "Uptown Funk", "Bruno Mars", 115, "cardio", 270000),
    ("3", "Stronger", "Kanye West", 104, "strength", 247000),
    ("4", "Eye of the Tiger", "Survivor", 109, "strength", 245000),
    ("5", "Breathe", "Telepopmusik", 72, "yoga", 266000),
    ("6", "Weightless", "Marconi Union", 60, "yoga", 625000),
    ("7", "Till I Collapse", "Eminem", 171, "hiit", 268000),
    ("8", "Thunderstruck", "AC/DC", 133, "hiit", 292000),
    ("9", "Cannot Stop", "Red Hot Chili Peppers", 118, "cardio", 269000),
    ("10", "Lose Yourself", "Eminem", 171, "hiit", 326000),
    ("11", "Work", "Rihanna", 92, "strength", 219000),
    ("12", "Sunflower", "Post Malone", 90, "warmup", 161000),
    ("13", "Levitating", "Dua Lipa", 103, "cardio", 203000),
    ("14", "Blinding Lights", "The Weeknd", 171, "cardio", 200000),
    ("15", "Do Not Stop Me Now", "Queen", 156, "cardio", 216000),
    ("16", "Shallow", "Lady Gaga", 96, "warmup", 218000),
    ("17", "Say Something", "A Great Big World", 72, "yoga", 272000),
    ("18", "The Scientist", "Coldplay", 73, "cooldown", 309000),
    ("19", "Fix You", "Coldplay", 68, "cooldown", 295000),
    ("20", "Skinny Love", "Bon Iver", 75, "yoga", 201000),
    ("21", "Gravity", "John Mayer", 70, "cooldown", 245000),
    ("22", "Hallelujah", "Jeff Buckley", 68, "yoga", 413000),
    ("23", "Mad World", "Gary Jules", 82, "cooldown", 185000),
    ("24", "Chasing Cars", "Snow Patrol", 76, "cooldown", 267000),
    ("25", "Physical", "Dua Lipa", 147, "hiit", 193000),
    ("26", "Higher Love", "Kygo, Whitney Houston", 104, "cardio", 225000),
    ("27", "Old Town Road", "Lil Nas X", 136, "strength", 157000),
    ("28", "Sweet Caroline", "Neil Diamond", 125, "warmup", 232000),
    ("29", "Strawberry Swing", "Coldplay", 90, "yoga", 235000),
    ("30", "One Dance", "Drake", 104, "strength", 174000),
)

BUILTIN_CATALOG: Tuple[Track, ...] = tuple(
    Track(id=row[0], name=row[1], artist=row[2], bpm=row[3], workout=row[4], duration_ms=row[5])
    for row in _BUILTIN_ROWS
)


def _track_from_entry(entry: Dict[str, Any], position: int) -> Track:
    """Convert one [[tracks]] table to a Track.

    Raises:
        ValueError: If required fields are missing or the workout is unknown
    """
    missing = [key for key in ("id", "name", "artist") if key not in entry]
    if missing:
        raise ValueError(f"Catalog entry #{position} is missing {', '.join(missing)}")

    workout = entry.get("workout")
    if workout is not None and workout not in WORKOUTS:
        raise ValueError(f"Catalog entry #{position} has unknown workout {workout!r}")

    bpm = entry.get("bpm")
    duration_ms = entry.get("duration_ms")
    return Track(
        id=str(entry["id"]),
        name=str(entry["name"]).strip(),
        artist=str(entry["artist"]).strip(),
        bpm=float(bpm) if bpm is not None else None,
        duration_ms=int(duration_ms) if duration_ms is not None else None,
        workout=workout,
    )


def parse_catalog(entries: Iterable[Dict[str, Any]]) -> List[Track]:
    """Build a catalog from [[tracks]] tables, keeping the first of any duplicate id."""
    tracks: List[Track] = []
    seen_ids = set()
    for position, entry in enumerate(entries, start=1):
        track = _track_from_entry(entry, position)
        if track.id in seen_ids:
            logger.warning(f"Skipping duplicate catalog id {track.id!r} (entry #{position})")
            continue
        seen_ids.add(track.id)
        tracks.append(track)
    return tracks


def load_catalog(path: Optional[str] = None) -> List[Track]:
    """Load the catalog from a TOML file, or the built-in catalog when path is None.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid TOML or an entry is malformed
    """
    if path is None:
        return list(BUILTIN_CATALOG)

    catalog_path = Path(path).expanduser()
    with open(catalog_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid catalog file {catalog_path}: {e}") from e

    tracks = parse_catalog(data.get("tracks", []))
    logger.info(f"Loaded {len(tracks)} tracks from catalog {catalog_path}")
    return tracks


def tracks_for_workout(catalog: Iterable[Track], workout_id: str) -> List[Track]:
    """Catalog tracks tagged with workout_id, in catalog order."""
    return [track for track in catalog if track.workout == workout_id]
