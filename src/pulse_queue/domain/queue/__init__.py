"""Queue domain - heart-rate driven queue rebuilding."""

from .engine import (
    Diagnostic,
    DiagnosticKind,
    EngineState,
    QueueEngine,
    QueueResult,
    Trigger,
    merge_starter_tracks,
    rebuild_queue,
)

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "EngineState",
    "QueueEngine",
    "QueueResult",
    "Trigger",
    "merge_starter_tracks",
    "rebuild_queue",
]
