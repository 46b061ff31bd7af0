"""
Command-line interface for Pulse Queue.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from pulse_queue.core.config import Config, get_log_file_path, load_config
from pulse_queue.core.console import get_console, safe_print, track_label
from pulse_queue.core.output import setup_loguru
from pulse_queue.domain.library.models import format_time
from pulse_queue.domain.library.workouts import WORKOUTS, get_workout
from pulse_queue.main import run_session
from pulse_queue.session import Session, build_local_source


def run_match(config: Config, bpm: float, workout_id: str) -> int:
    """Print the ranked local queue for a heart rate and workout."""
    workout = get_workout(workout_id)
    source = build_local_source(config)
    matches = source.fetch_candidates(bpm, workout)

    if not matches:
        safe_print(
            f"No {workout.name} tracks within ±{source.tolerance_bpm} of {bpm:g} BPM",
            style="yellow",
        )
        return 1

    safe_print(f"{workout.icon} {workout.name} @ {bpm:g} BPM", style="bold")
    for position, track in enumerate(matches, start=1):
        safe_print(
            f"{position:>2}. {track_label(track.name, track.artist, track.bpm)} "
            f"Δ{track.bpm_distance:g} {format_time(track.duration_ms)}"
        )
    return 0


def run_workouts() -> int:
    """List the workout profiles."""
    for workout in WORKOUTS.values():
        safe_print(
            f"{workout.icon} {workout.id:<9} {workout.name:<18} "
            f"{workout.range_label} (target {workout.target_bpm})"
        )
    return 0


def run_simulation(config: Config, seconds: Optional[float]) -> int:
    """Run a simulated session until seconds elapse or Ctrl+C."""
    session = Session.create(config)
    try:
        asyncio.run(run_session(session, seconds=seconds, console=get_console()))
    except KeyboardInterrupt:
        safe_print("\nStopped.", style="dim")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Pulse Queue - music matched to your heart rate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml")

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    match_parser = subparsers.add_parser("match", help="Show the ranked queue for a heart rate")
    match_parser.add_argument("--bpm", type=float, required=True, help="Heart rate")
    match_parser.add_argument(
        "--workout", choices=sorted(WORKOUTS), default=None, help="Workout category"
    )

    subparsers.add_parser("workouts", help="List workout profiles")

    run_parser = subparsers.add_parser("run", help="Run a simulated session")
    run_parser.add_argument(
        "--workout", choices=sorted(WORKOUTS), default=None, help="Workout category"
    )
    run_parser.add_argument(
        "--seconds", type=float, default=None, help="Stop after this many seconds"
    )
    run_parser.add_argument(
        "--source", choices=["local", "spotify"], default=None, help="Track source"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the pulse-queue command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        rotation=f"{config.logging.max_file_size_mb} MB",
        retention=config.logging.backup_count,
        console_output=config.logging.console_output,
    )

    workout = getattr(args, "workout", None)
    if workout:
        config.queue.default_workout = workout

    if args.subcommand == "match":
        sys.exit(run_match(config, args.bpm, config.queue.default_workout))

    if args.subcommand == "workouts":
        sys.exit(run_workouts())

    if args.subcommand == "run":
        if args.source:
            config.queue.source = args.source
        sys.exit(run_simulation(config, args.seconds))

    parser.print_help()
    sys.exit(0)


if __name__ == "__main__":
    main()
