"""
Configuration management for Pulse Queue
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

VALID_SOURCES = {"local", "spotify"}
# Mirrors domain.library.workouts.WORKOUTS; core does not import domain
VALID_WORKOUTS = {"cardio", "strength", "yoga", "hiit", "warmup", "cooldown"}


@dataclass
class HeartRateConfig:
    """Configuration for the simulated heart-rate signal."""

    initial_bpm: int = 72
    min_bpm: int = 50
    max_bpm: int = 200
    max_step: float = 5.0  # Largest change per tick, in either direction
    interval_seconds: float = 2.0

    def validate(self) -> None:
        """Validate heart-rate configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.min_bpm > self.max_bpm:
            raise ValueError(
                f"min_bpm ({self.min_bpm}) must not exceed max_bpm ({self.max_bpm})"
            )
        if self.max_step < 0:
            raise ValueError(f"max_step must be >= 0, got {self.max_step}")
        if self.interval_seconds <= 0:
            raise ValueError(
                f"interval_seconds must be positive, got {self.interval_seconds}"
            )


@dataclass
class QueueConfig:
    """Configuration for queue building and matching."""

    source: str = "local"  # 'local' or 'spotify'
    tolerance_bpm: int = 20
    max_length: int = 8
    max_length_with_starter: int = 10
    starter_size: int = 2
    default_workout: str = "cardio"

    def validate(self) -> None:
        """Validate queue configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.source not in VALID_SOURCES:
            raise ValueError(
                f"Invalid track source: {self.source!r}. "
                f"Valid sources are: {sorted(VALID_SOURCES)}"
            )
        if self.default_workout not in VALID_WORKOUTS:
            raise ValueError(
                f"Invalid default workout: {self.default_workout!r}. "
                f"Valid workouts are: {sorted(VALID_WORKOUTS)}"
            )
        if self.tolerance_bpm < 0:
            raise ValueError(f"tolerance_bpm must be >= 0, got {self.tolerance_bpm}")
        if self.max_length <= 0:
            raise ValueError(f"max_length must be positive, got {self.max_length}")
        if self.max_length_with_starter < self.max_length:
            raise ValueError(
                "max_length_with_starter must be at least max_length "
                f"({self.max_length_with_starter} < {self.max_length})"
            )
        if self.starter_size < 0:
            raise ValueError(f"starter_size must be >= 0, got {self.starter_size}")


@dataclass
class PlaybackConfig:
    """Configuration for the simulated playback clock."""

    tick_ms: int = 1000
    default_duration_ms: int = 210000  # Used when a track has no known duration
    autoplay_on_connect: bool = True

    def validate(self) -> None:
        """Validate playback configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {self.tick_ms}")
        if self.default_duration_ms <= 0:
            raise ValueError(
                f"default_duration_ms must be positive, got {self.default_duration_ms}"
            )


@dataclass
class CatalogConfig:
    """Configuration for the local track catalog."""

    path: Optional[str] = None  # TOML catalog file (default: built-in catalog)


@dataclass
class SpotifyConfig:
    """Configuration for Spotify recommendations."""

    access_token: str = ""
    market: str = "US"
    limit: int = 20
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/pulse-queue/pulse-queue.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to console (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    heart_rate: HeartRateConfig = field(default_factory=HeartRateConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "pulse-queue"
    return Path.home() / ".config" / "pulse-queue"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "pulse-queue"
    return Path.home() / ".local" / "share" / "pulse-queue"


def get_log_file_path(config: Config) -> Path:
    """Get the log file path, honoring a custom [logging] log_file."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "pulse-queue.log"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/pulse-queue (or ~/.config/pulse-queue)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Pulse Queue Configuration

[heart_rate]
# Starting heart rate for the simulated signal
initial_bpm = 72

# Bounds of the random walk
min_bpm = 50
max_bpm = 200

# Largest change per tick (uniform in [-max_step, +max_step])
max_step = 5.0

# Seconds between heart-rate ticks
interval_seconds = 2.0

[queue]
# Track source: "local" (built-in catalog) or "spotify" (recommendations)
source = "local"

# Tracks further than this from the heart rate are not queued
tolerance_bpm = 20

# Maximum queue length
max_length = 8

# Maximum queue length once the connect-time starter set is merged in
max_length_with_starter = 10

# Number of starter tracks merged in on connect
starter_size = 2

# Workout selected when a session starts
default_workout = "cardio"

[playback]
# Milliseconds added per playback tick
tick_ms = 1000

# Duration assumed for tracks without a known length
default_duration_ms = 210000

# Start playing as soon as the session connects
autoplay_on_connect = true

[catalog]
# Alternative catalog file ([[tracks]] entries)
# path = "~/.config/pulse-queue/catalog.toml"

[spotify]
# Bearer token (or set SPOTIFY_ACCESS_TOKEN in the environment / .env)
# access_token = "..."

market = "US"
limit = 20
timeout_seconds = 30.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/pulse-queue/pulse-queue.log)
# log_file = "/path/to/custom/pulse-queue.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def _validated(section: Any, default: Any, name: str) -> Any:
    """Return section if it validates, otherwise warn and return default."""
    try:
        section.validate()
    except ValueError as e:
        print(f"Warning: Invalid {name} configuration: {e}")
        print(f"Using default {name} configuration.")
        return default
    return section


def parse_config(toml_data: Dict[str, Any]) -> Config:
    """Build a Config from parsed TOML data.

    Missing keys keep their defaults; invalid sections fall back to defaults.
    """
    config = Config()

    if "heart_rate" in toml_data:
        hr_data = toml_data["heart_rate"]
        config.heart_rate = _validated(
            HeartRateConfig(
                initial_bpm=hr_data.get("initial_bpm", config.heart_rate.initial_bpm),
                min_bpm=hr_data.get("min_bpm", config.heart_rate.min_bpm),
                max_bpm=hr_data.get("max_bpm", config.heart_rate.max_bpm),
                max_step=hr_data.get("max_step", config.heart_rate.max_step),
                interval_seconds=hr_data.get(
                    "interval_seconds", config.heart_rate.interval_seconds
                ),
            ),
            HeartRateConfig(),
            "heart_rate",
        )

    if "queue" in toml_data:
        queue_data = toml_data["queue"]
        config.queue = _validated(
            QueueConfig(
                source=queue_data.get("source", config.queue.source),
                tolerance_bpm=queue_data.get(
                    "tolerance_bpm", config.queue.tolerance_bpm
                ),
                max_length=queue_data.get("max_length", config.queue.max_length),
                max_length_with_starter=queue_data.get(
                    "max_length_with_starter", config.queue.max_length_with_starter
                ),
                starter_size=queue_data.get("starter_size", config.queue.starter_size),
                default_workout=queue_data.get(
                    "default_workout", config.queue.default_workout
                ),
            ),
            QueueConfig(),
            "queue",
        )

    if "playback" in toml_data:
        playback_data = toml_data["playback"]
        config.playback = _validated(
            PlaybackConfig(
                tick_ms=playback_data.get("tick_ms", config.playback.tick_ms),
                default_duration_ms=playback_data.get(
                    "default_duration_ms", config.playback.default_duration_ms
                ),
                autoplay_on_connect=playback_data.get(
                    "autoplay_on_connect", config.playback.autoplay_on_connect
                ),
            ),
            PlaybackConfig(),
            "playback",
        )

    if "catalog" in toml_data:
        catalog_path = toml_data["catalog"].get("path")
        if catalog_path:
            catalog_path = str(Path(catalog_path).expanduser())
        config.catalog = CatalogConfig(path=catalog_path)

    if "spotify" in toml_data:
        spotify_data = toml_data["spotify"]
        config.spotify = SpotifyConfig(
            access_token=spotify_data.get("access_token", config.spotify.access_token),
            market=spotify_data.get("market", config.spotify.market),
            limit=spotify_data.get("limit", config.spotify.limit),
            timeout_seconds=spotify_data.get(
                "timeout_seconds", config.spotify.timeout_seconds
            ),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def apply_env_overrides(config: Config) -> Config:
    """Override configuration with environment variables.

    - SPOTIFY_ACCESS_TOKEN
    - PULSE_QUEUE_SOURCE
    """
    spotify_token = os.environ.get("SPOTIFY_ACCESS_TOKEN")
    if spotify_token:
        config.spotify.access_token = spotify_token

    source = os.environ.get("PULSE_QUEUE_SOURCE")
    if source:
        if source in VALID_SOURCES:
            config.queue.source = source
        else:
            print(f"Warning: Ignoring invalid PULSE_QUEUE_SOURCE={source!r}")

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values (see apply_env_overrides).
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return apply_env_overrides(Config())

    return apply_env_overrides(parse_config(toml_data))
