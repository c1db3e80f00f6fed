"""Forced changeover when a bed reaches its OBR limit."""

from __future__ import annotations

from demin_sim.models.constants import PlantParameters
from demin_sim.models.plant_state import (
    EXCHANGER_TYPES,
    EquipmentStatus,
    SimulationState,
)
from demin_sim.recording.events import EventKind, LogsheetAction, Severity, TickRecorder
from demin_sim.regeneration.state_machine import begin_regeneration, queue_for_regeneration


class ExhaustionDetector:
    """Swaps exhausted beds for standby beds and sends them to regeneration.

    Exhaustion is not a discretionary change, so the minimum-time-in-state
    rule does not apply to anything done here.
    """

    def __init__(self, params: PlantParameters):
        self.params = params

    def step(self, state: SimulationState, recorder: TickRecorder) -> SimulationState:
        for exchanger_type in EXCHANGER_TYPES:
            for unit_id in [e.id for e in state.of_type(exchanger_type)]:
                unit = state.exchanger(unit_id)
                if unit.in_service and unit.current_load >= unit.obr_limit:
                    state = self._exhaust(state, unit_id, recorder)
        return state

    def _exhaust(
        self, state: SimulationState, unit_id: str, recorder: TickRecorder
    ) -> SimulationState:
        unit = state.exchanger(unit_id)
        recorder.event(
            EventKind.EXHAUSTION,
            unit.id,
            f"{unit.id} reached OBR limit ({unit.current_load:.0f}/{unit.obr_limit:.0f} m3)",
            Severity.WARNING,
            forced=True,
        )

        replacement = next(
            (
                e for e in state.with_status(unit.type, EquipmentStatus.STANDBY)
                if e.id != unit.id and not state.is_held(e)
            ),
            None,
        )
        if replacement is not None:
            state = state.set_status(replacement.id, EquipmentStatus.SERVICE)
            recorder.event(
                EventKind.STATUS_CHANGE,
                replacement.id,
                f"{replacement.id} put into service - replacing exhausted {unit.id}",
                forced=True,
            )
            recorder.log(
                LogsheetAction.EXCHANGER_TO_SERVICE,
                replacement.id,
                f"{unit.id} exhausted at {unit.current_load:.0f} m3 (OBR "
                f"{unit.obr_limit:.0f} m3). Changing over to standby bed "
                f"{replacement.id} to keep {unit.type.value} output.",
                f"Put {replacement.id} into service (changeover from {unit.id})",
                state.dg_level,
                state.average_service_dm_level,
            )

        reason = f"{unit.id} reached OBR limit and requires regeneration."
        if state.bay(unit.type).is_idle:
            return begin_regeneration(state, unit.id, recorder, self.params, reason)
        return queue_for_regeneration(state, unit.id, recorder)
