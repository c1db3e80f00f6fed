"""Stream shutdown when every DM tank is about to overflow."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List

from demin_sim.controllers.base import PlantReadings
from demin_sim.controllers.rules import balance_streams
from demin_sim.models.constants import PlantParameters
from demin_sim.models.plant_state import EquipmentStatus, ExchangerUnit, SimulationState
from demin_sim.recording.events import EventKind, LogsheetAction, Severity, TickRecorder


def stream_loads(state: SimulationState) -> Dict[str, float]:
    """Combined in-service load per stream letter, in stream order."""
    loads: Dict[str, float] = {}
    for unit in state.exchangers:
        loads.setdefault(unit.stream, 0.0)
        if unit.in_service:
            loads[unit.stream] += unit.current_load
    return loads


def stream_units(state: SimulationState, stream: str) -> List[ExchangerUnit]:
    return [e for e in state.exchangers if e.stream == stream]


class OverflowGuard:
    """Takes one whole stream off line on overflow and restores it on recovery."""

    def __init__(self, params: PlantParameters):
        self.params = params
        self.settings = params.overflow

    def step(self, state: SimulationState, recorder: TickRecorder) -> SimulationState:
        s = self.settings
        if (
            state.stream_out_of_service is None
            and state.dm_tanks
            and all(t.level > s.overflow_level_m for t in state.dm_tanks)
        ):
            state = self._shutdown(state, recorder)

        if state.stream_out_of_service is not None and any(
            t.level < s.recovery_level_m for t in state.dm_tanks
        ):
            state = self._restore(state, recorder)
        return state

    def _shutdown(self, state, recorder):
        loads = stream_loads(state)
        stream = max(loads, key=loads.get)
        shut = [u for u in stream_units(state, stream) if u.in_service]
        for unit in shut:
            state = state.set_status(unit.id, EquipmentStatus.STANDBY)
        state = replace(state, stream_out_of_service=stream)

        readings = PlantReadings.from_state(state)
        unit_ids = ", ".join(u.id for u in shut)
        recorder.event(
            EventKind.STREAM_SHUTDOWN,
            f"Stream-{stream}",
            f"Stream {stream} taken out of service - all tanks at overflow",
            Severity.ERROR,
            forced=True,
        )
        recorder.log(
            LogsheetAction.STREAM_SHUTDOWN,
            f"Stream-{stream}",
            f"All DM tanks above overflow level ({self.settings.overflow_level_m}m). "
            f"Shutting down Stream {stream} (highest combined load: "
            f"{loads[stream]:.0f}) to prevent overflow.",
            f"Shut down Stream {stream} ({unit_ids})",
            readings.dg_level,
            readings.avg_dm_level,
        )
        return balance_streams(state, readings, recorder)

    def _restore(self, state, recorder):
        stream = state.stream_out_of_service
        state = replace(state, stream_out_of_service=None)
        # units promoted elsewhere while the stream was down keep their places
        for unit in stream_units(state, stream):
            if (
                unit.status is EquipmentStatus.STANDBY
                and state.count_in_service(unit.type) < self.params.control.max_in_service
            ):
                state = state.set_status(unit.id, EquipmentStatus.SERVICE)

        readings = PlantReadings.from_state(state)
        recorder.event(
            EventKind.STREAM_RESTORED,
            f"Stream-{stream}",
            f"Stream {stream} returned to service",
            forced=True,
        )
        recorder.log(
            LogsheetAction.STREAM_RESTORED,
            f"Stream-{stream}",
            f"DM level dropped below {self.settings.recovery_level_m}m. "
            f"Restoring Stream {stream} to service.",
            f"Restored Stream {stream} to service",
            readings.dg_level,
            readings.avg_dm_level,
        )
        return balance_streams(state, readings, recorder)
