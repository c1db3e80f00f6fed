from demin_sim.recording.events import (
    EventKind,
    LogsheetAction,
    LogsheetEntry,
    Severity,
    SimulationEvent,
    TickRecorder,
    format_clock_time,
)

__all__ = [
    "EventKind",
    "LogsheetAction",
    "LogsheetEntry",
    "Severity",
    "SimulationEvent",
    "TickRecorder",
    "format_clock_time",
]
