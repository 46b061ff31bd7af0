"""Shared Rich Console plus the markup helpers the runner and CLI print with."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

_console: Console | None = None


def get_console() -> Console:
    """Get or create the shared Console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print through the shared Console.

    Args:
        message: Text (Rich markup allowed)
        style: Optional Rich style applied to the whole line
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def format_bpm(bpm: Optional[float]) -> str:
    """'128 BPM', or '? BPM' when the tempo is unknown."""
    return f"{bpm:g} BPM" if bpm is not None else "? BPM"


def track_label(name: str, artist: str, bpm: Optional[float] = None) -> str:
    """Markup for 'Name - Artist (tempo)' with user text escaped."""
    return f"[bold]{escape(name)}[/bold] - {escape(artist)} ({format_bpm(bpm)})"


def heart_rate_label(bpm: int, zone: str, color: str) -> str:
    return f"[{color}]♥ {bpm} BPM ({zone})[/{color}]"
