# src/stemsim_core/simulation/__init__.py
from .exceptions import StepFailure, SessionStateError
from .history import HistoryBuffer, HistoryEntry
from .scheduler import (
    RunState,
    TimerBackend,
    ManualTimer,
    AsyncioTimer,
    FrameScheduler,
    GenerationStepper,
    EventSource,
    ResizeRegistry,
)
from .session import SimulationSession, PVDiagramSession, create_session

__all__ = [
    # Exceptions
    "StepFailure",
    "SessionStateError",
    # History
    "HistoryBuffer",
    "HistoryEntry",
    # Run loops
    "RunState",
    "TimerBackend",
    "ManualTimer",
    "AsyncioTimer",
    "FrameScheduler",
    "GenerationStepper",
    "EventSource",
    "ResizeRegistry",
    # Sessions
    "SimulationSession",
    "PVDiagramSession",
    "create_session",
]
