"""
Unified output system using Loguru.
Replaces print() statements with dual output (console + file).
"""

import sys
import threading
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

# UI mode tracking (set when an embedding UI takes over the terminal)
_ui_mode_active = False
_ui_callback: Optional[Callable[[str, str], None]] = None
_ui_mode_lock = threading.Lock()

# Messages logged from source fetch threads, drained by the UI on its own loop
_pending_messages: list[tuple[str, str]] = []
_pending_messages_lock = threading.Lock()

LEVEL_COLORS = {
    "debug": "cyan",
    "info": "white",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru for file logging, optionally mirrored to stderr.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        rotation: Size at which the log file is rotated
        retention: Number of rotated files to keep
        console_output: Also emit log records on stderr (debugging aid)
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation=rotation,
        retention=retention,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_ui_mode(ui_callback: Optional[Callable[[str, str], None]] = None) -> None:
    """
    Enable UI mode - suppresses stdout printing, queues messages for the UI.

    Args:
        ui_callback: Optional callback invoked with (message, color) when the
            UI drains pending messages
    """
    global _ui_mode_active, _ui_callback
    with _ui_mode_lock:
        _ui_mode_active = True
        _ui_callback = ui_callback
        logger.debug("UI mode enabled - log() will queue messages for the UI")


def clear_ui_mode() -> None:
    """Disable UI mode - restores stdout printing."""
    global _ui_mode_active, _ui_callback
    with _ui_mode_lock:
        _ui_mode_active = False
        _ui_callback = None
        logger.debug("UI mode disabled - log() will print to stdout")


def drain_pending_messages() -> list[tuple[str, str]]:
    """
    Get and clear all pending UI messages.

    If a UI callback is registered, each message is also handed to it.

    Returns:
        List of (message, color) tuples
    """
    global _pending_messages
    with _pending_messages_lock:
        messages = _pending_messages[:]
        _pending_messages = []

    with _ui_mode_lock:
        callback = _ui_callback
    if callback is not None:
        for message, color in messages:
            callback(message, color)
    return messages


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND shows the message to the user.

    Use this instead of print() for user-facing messages that should also be logged.

    Args:
        message: User-facing message
        level: Log level (debug, info, success, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    with _ui_mode_lock:
        ui_mode = _ui_mode_active

    if ui_mode:
        color = LEVEL_COLORS.get(level, "white")
        with _pending_messages_lock:
            _pending_messages.append((message, color))
    elif level != "debug":
        print(message)
