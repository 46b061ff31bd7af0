"""
Pulse Queue - timer-driven session runner

Two periodic callbacks drive a connected session on one event loop:
the heart-rate tick (every interval_seconds) and the playback tick (every
tick_ms). Heart-rate re-evaluations run as background tasks so a slow
remote fetch never stalls playback; the engine discards superseded results.
"""

import asyncio
import functools
from typing import Optional, Set

from loguru import logger
from rich.console import Console
from rich.markup import escape

from pulse_queue.core.console import get_console, heart_rate_label, track_label
from pulse_queue.core.output import clear_ui_mode, drain_pending_messages, set_ui_mode
from pulse_queue.domain.library.models import format_time
from pulse_queue.domain.library.workouts import heart_rate_zone
from pulse_queue.session import Session


def render_status(session: Session, console: Optional[Console] = None) -> None:
    """Print one status line: heart rate, now playing, progress, queue size."""
    console = console or get_console()
    zone, color = heart_rate_zone(session.heart_rate)
    state = session.get_playback_state()
    track = session.get_active_track()

    if track is None:
        now_playing = "[dim]nothing playing[/dim]"
    else:
        icon = "▶" if state["is_playing"] else "⏸"
        now_playing = (
            f"{icon} {track_label(track.name, track.artist, track.bpm)} "
            f"{format_time(state['elapsed_ms'])}/{format_time(state['duration_ms'])}"
        )

    console.print(
        f"{heart_rate_label(session.heart_rate, zone, color)} "
        f"{session.workout.icon} {session.workout.name} | {now_playing} | "
        f"queue {len(session.get_queue())}"
    )


def _finish_tick(pending: Set[asyncio.Task], task: asyncio.Task) -> None:
    pending.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.opt(exception=error).error("Heart-rate re-evaluation failed")


async def _heart_rate_loop(session: Session, pending: Set[asyncio.Task]) -> None:
    interval = session.simulator.interval_seconds
    while session.connected:
        await asyncio.sleep(interval)
        if not session.connected:
            break
        task = asyncio.create_task(session.on_heart_rate_tick_async())
        pending.add(task)
        task.add_done_callback(functools.partial(_finish_tick, pending))


async def _playback_loop(session: Session, console: Optional[Console]) -> None:
    interval = session.config.playback.tick_ms / 1000
    while session.connected:
        await asyncio.sleep(interval)
        if not session.connected:
            break
        session.on_playback_tick()
        session.drain_diagnostics()
        if console is not None:
            drain_pending_messages()
            render_status(session, console)


async def run_session(
    session: Session,
    seconds: Optional[float] = None,
    console: Optional[Console] = None,
) -> None:
    """Connect, run both timers for seconds (forever when None), then disconnect.

    Args:
        session: Idle session to drive
        seconds: How long to run; None runs until cancelled
        console: Where to render status lines (None renders nothing)
    """
    if console is not None:
        set_ui_mode(lambda message, color: console.print(f"[{color}]{escape(message)}[/{color}]"))

    await session.connect_async()
    if console is not None:
        drain_pending_messages()
        render_status(session, console)

    pending: Set[asyncio.Task] = set()
    timers = [
        asyncio.create_task(_heart_rate_loop(session, pending)),
        asyncio.create_task(_playback_loop(session, console)),
    ]

    try:
        if seconds is None:
            await asyncio.gather(*timers)
        else:
            await asyncio.sleep(seconds)
    finally:
        session.disconnect()
        for task in timers + list(pending):
            task.cancel()
        await asyncio.gather(*timers, *pending, return_exceptions=True)
        if console is not None:
            drain_pending_messages()
            clear_ui_mode()
        logger.info("Session runner stopped")
