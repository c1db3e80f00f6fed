"""Regeneration lifecycle: CHEMICAL -> RINSE -> COMPLETE.

Each exchanger type owns one regeneration bay. A cycle draws degasser and/or
DM water while it runs; on completion the bed's load resets, it is placed in
SERVICE or STANDBY, and the next exhausted bed waiting in the bay's queue
starts its own cycle in the same tick.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Tuple

from demin_sim.controllers.base import PlantReadings
from demin_sim.controllers.rules import goes_to_service_after_regeneration
from demin_sim.models.constants import PlantParameters
from demin_sim.models.plant_state import (
    EquipmentStatus,
    ExchangerType,
    RegenerationCycle,
    RegenerationPhase,
    SimulationState,
)
from demin_sim.recording.events import EventKind, LogsheetAction, Severity, TickRecorder


def start_cycle(
    exchanger_id: str,
    exchanger_type: ExchangerType,
    time: int,
    params: PlantParameters,
) -> RegenerationCycle:
    profile = params.regeneration_profile(exchanger_type)
    return RegenerationCycle(
        exchanger_id=exchanger_id,
        exchanger_type=exchanger_type,
        phase=RegenerationPhase.CHEMICAL,
        start_time=time,
        chemical_end_time=time + profile.chemical_minutes,
        total_end_time=time + profile.total_minutes,
        dg_window_end_time=(
            None if profile.dg_window_minutes is None
            else time + profile.dg_window_minutes
        ),
    )


def advance_cycle(cycle: RegenerationCycle, time: int) -> RegenerationCycle:
    """Return the cycle with its phase brought up to ``time``."""
    if time >= cycle.total_end_time:
        return replace(cycle, phase=RegenerationPhase.COMPLETE)
    if cycle.phase is RegenerationPhase.CHEMICAL and time >= cycle.chemical_end_time:
        return replace(cycle, phase=RegenerationPhase.RINSE)
    return cycle


def regeneration_draw(
    cycle: Optional[RegenerationCycle],
    time: int,
    params: PlantParameters,
) -> Tuple[float, float]:
    """Water drawn by a running cycle during the minute ending at ``time``.

    Returns:
        (DG draw, DM draw) in m3/h.
    """
    if cycle is None or cycle.phase is RegenerationPhase.COMPLETE:
        return 0.0, 0.0

    profile = params.regeneration_profile(cycle.exchanger_type)
    if cycle.phase is RegenerationPhase.CHEMICAL:
        in_window = cycle.dg_window_end_time is None or time < cycle.dg_window_end_time
        dg = profile.chemical_dg_rate_m3hr if in_window else 0.0
        return dg, profile.chemical_dm_rate_m3hr
    return profile.rinse_dg_rate_m3hr, 0.0


def begin_regeneration(
    state: SimulationState,
    exchanger_id: str,
    recorder: TickRecorder,
    params: PlantParameters,
    reason: str,
) -> SimulationState:
    """Put a bed into the (idle) regeneration bay of its type."""
    unit = state.exchanger(exchanger_id)
    bay = state.bay(unit.type)
    cycle = start_cycle(unit.id, unit.type, state.current_time, params)

    state = state.set_status(unit.id, EquipmentStatus.REGENERATION)
    state = state.replace_bay(replace(bay, active=cycle))

    recorder.event(
        EventKind.REGEN_START,
        unit.id,
        f"{unit.id} regeneration started",
        forced=True,
    )
    recorder.log(
        LogsheetAction.REGENERATION_STARTED,
        unit.id,
        reason,
        f"Started regeneration of {unit.id}",
        state.dg_level,
        state.average_service_dm_level,
    )
    return state


def queue_for_regeneration(
    state: SimulationState, exchanger_id: str, recorder: TickRecorder
) -> SimulationState:
    """Park an exhausted bed until its type's bay frees up."""
    unit = state.exchanger(exchanger_id)
    bay = state.bay(unit.type)
    state = state.set_status(unit.id, EquipmentStatus.EXHAUST)
    state = state.replace_bay(replace(bay, queue=bay.queue + (unit.id,)))
    recorder.event(
        EventKind.STATUS_CHANGE,
        unit.id,
        f"{unit.id} exhausted, queued for regeneration "
        f"(position {len(bay.queue) + 1})",
        severity=Severity.WARNING,
        forced=True,
    )
    return state


class RegenerationStateMachine:
    """Advances every bay's cycle by one tick."""

    def __init__(self, params: PlantParameters):
        self.params = params

    def step(self, state: SimulationState, recorder: TickRecorder) -> SimulationState:
        for bay in state.bays:
            if bay.is_idle:
                continue
            cycle = advance_cycle(bay.active, state.current_time)
            if cycle.phase is RegenerationPhase.COMPLETE:
                state = self._complete(state, cycle, recorder)
            elif cycle.phase is not bay.active.phase:
                recorder.event(
                    EventKind.REGEN_PHASE_CHANGE,
                    cycle.exchanger_id,
                    f"{cycle.exchanger_id} entered rinse phase",
                )
                state = state.replace_bay(replace(bay, active=cycle))
        return state

    def _complete(
        self,
        state: SimulationState,
        cycle: RegenerationCycle,
        recorder: TickRecorder,
    ) -> SimulationState:
        unit = state.exchanger(cycle.exchanger_id)
        readings = PlantReadings.from_state(state)
        to_service = goes_to_service_after_regeneration(
            state, unit, readings, self.params.control
        )
        status = EquipmentStatus.SERVICE if to_service else EquipmentStatus.STANDBY
        state = state.replace_exchanger(
            replace(
                unit,
                status=status,
                current_load=0.0,
                last_status_change=state.current_time,
            )
        )

        placement = "put into service" if to_service else "placed on standby"
        recorder.event(
            EventKind.REGEN_COMPLETE,
            unit.id,
            f"{unit.id} regeneration complete - {placement}",
            forced=True,
        )
        if to_service:
            recorder.event(
                EventKind.STATUS_CHANGE,
                unit.id,
                f"{unit.id} put into service after regeneration",
                forced=True,
            )
        recorder.log(
            LogsheetAction.REGENERATION_COMPLETED,
            unit.id,
            f"{unit.id} regeneration cycle completed "
            f"(DG {readings.dg_level:.2f}m, DM {readings.avg_dm_level:.2f}m). "
            f"Bed {placement}.",
            f"Completed regeneration of {unit.id}",
            readings.dg_level,
            readings.avg_dm_level,
        )

        bay = state.bay(unit.type)
        state = state.replace_bay(replace(bay, active=None))
        if bay.queue:
            next_id, rest = bay.queue[0], bay.queue[1:]
            state = state.replace_bay(replace(state.bay(unit.type), queue=rest))
            state = begin_regeneration(
                state,
                next_id,
                recorder,
                self.params,
                f"{next_id} dequeued from the exhaust queue after "
                f"{unit.id} freed the {unit.type.value} regeneration bay.",
            )
        return state
