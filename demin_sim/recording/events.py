"""Machine-readable events and the operator logsheet.

Every state change the engine makes is recorded twice: as a
``SimulationEvent`` for the event feed and, for operator-relevant actions,
as a ``LogsheetEntry`` carrying the narrative an operator would write.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EventKind(str, Enum):
    REGEN_START = "REGEN_START"
    REGEN_PHASE_CHANGE = "REGEN_PHASE_CHANGE"
    REGEN_COMPLETE = "REGEN_COMPLETE"
    STATUS_CHANGE = "STATUS_CHANGE"
    CHANGE_BLOCKED = "CHANGE_BLOCKED"
    LEVEL_WARNING = "LEVEL_WARNING"
    TRANSFER_START = "TRANSFER_START"
    TRANSFER_END = "TRANSFER_END"
    EXHAUSTION = "EXHAUSTION"
    STREAM_SHUTDOWN = "STREAM_SHUTDOWN"
    STREAM_RESTORED = "STREAM_RESTORED"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogsheetAction(str, Enum):
    EXCHANGER_TO_SERVICE = "EXCHANGER_TO_SERVICE"
    EXCHANGER_TO_STANDBY = "EXCHANGER_TO_STANDBY"
    REGENERATION_STARTED = "REGENERATION_STARTED"
    REGENERATION_COMPLETED = "REGENERATION_COMPLETED"
    TRANSFER_STARTED = "TRANSFER_STARTED"
    TRANSFER_STOPPED = "TRANSFER_STOPPED"
    STANDBY_FILL_STARTED = "STANDBY_FILL_STARTED"
    STANDBY_FILL_COMPLETED = "STANDBY_FILL_COMPLETED"
    STREAM_SHUTDOWN = "STREAM_SHUTDOWN"
    STREAM_RESTORED = "STREAM_RESTORED"


@dataclass(frozen=True)
class SimulationEvent:
    timestamp: int
    kind: EventKind
    message: str
    equipment_id: str
    severity: Severity = Severity.INFO
    forced: bool = False     # Not subject to the cooldown rule

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "type": self.kind.value,
            "message": self.message,
            "equipmentId": self.equipment_id,
            "severity": self.severity.value,
            "forced": self.forced,
        }


@dataclass(frozen=True)
class LogsheetEntry:
    timestamp: int
    actual_time: str
    action: LogsheetAction
    equipment_id: str
    reason: str
    operator_action: str
    dg_level: Optional[float] = None
    dm_level: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "actualTime": self.actual_time,
            "action": self.action.value,
            "equipmentId": self.equipment_id,
            "reason": self.reason,
            "operatorAction": self.operator_action,
            "dgLevel": self.dg_level,
            "dmLevel": self.dm_level,
        }


def format_clock_time(minutes_into_shift: int, shift_start_hour: int) -> str:
    """Wall-clock ``HH:MM`` for a tick, wrapping past midnight."""
    total = shift_start_hour * 60 + minutes_into_shift
    hours = (total // 60) % 24
    mins = total % 60
    return f"{hours:02d}:{mins:02d}"


class TickRecorder:
    """Collects the events and logsheet entries produced during one tick."""

    def __init__(self, time: int, shift_start_hour: int = 0):
        self.time = time
        self.shift_start_hour = shift_start_hour
        self.events: List[SimulationEvent] = []
        self.logsheet: List[LogsheetEntry] = []

    def event(
        self,
        kind: EventKind,
        equipment_id: str,
        message: str,
        severity: Severity = Severity.INFO,
        forced: bool = False,
    ) -> SimulationEvent:
        event = SimulationEvent(
            timestamp=self.time,
            kind=kind,
            message=message,
            equipment_id=equipment_id,
            severity=severity,
            forced=forced,
        )
        self.events.append(event)
        return event

    def log(
        self,
        action: LogsheetAction,
        equipment_id: str,
        reason: str,
        operator_action: str,
        dg_level: Optional[float] = None,
        dm_level: Optional[float] = None,
    ) -> LogsheetEntry:
        entry = LogsheetEntry(
            timestamp=self.time,
            actual_time=format_clock_time(self.time, self.shift_start_hour),
            action=action,
            equipment_id=equipment_id,
            reason=reason,
            operator_action=operator_action,
            dg_level=dg_level,
            dm_level=dm_level,
        )
        self.logsheet.append(entry)
        return entry
