"""Automatic exchanger placement rules.

Cation beds follow the degasser level, anion beds follow the DM level and
mixed beds follow the anion count. Hysteresis bands and a minimum time in
state keep beds from hunting between SERVICE and STANDBY; the stream
balance rule keeps anions >= cations and mixed beds == anions.
"""

from __future__ import annotations

from typing import List

from demin_sim.controllers.base import ControlRule, PlantReadings
from demin_sim.models.constants import ControlThresholds
from demin_sim.models.plant_state import (
    EquipmentStatus,
    ExchangerType,
    ExchangerUnit,
    SimulationState,
)
from demin_sim.recording.events import EventKind, LogsheetAction, Severity, TickRecorder

SAC = ExchangerType.SAC
SBA = ExchangerType.SBA
MB = ExchangerType.MB


def cooldown_clear(unit: ExchangerUnit, time: int, control: ControlThresholds) -> bool:
    """True once the unit has held its status for the minimum time."""
    return time - unit.last_status_change >= control.min_time_in_state_minutes


def lowest_load(units: List[ExchangerUnit]) -> ExchangerUnit:
    """Lowest-load unit; ties go to the first in configuration order."""
    return min(units, key=lambda e: e.current_load)


def change_status(
    state: SimulationState,
    unit: ExchangerUnit,
    status: EquipmentStatus,
    recorder: TickRecorder,
    readings: PlantReadings,
    message: str,
    reason: str,
    operator_action: str,
    severity: Severity = Severity.INFO,
    forced: bool = False,
) -> SimulationState:
    """Flip one unit and record the event and logsheet line for it."""
    state = state.set_status(unit.id, status)
    recorder.event(EventKind.STATUS_CHANGE, unit.id, message, severity, forced)
    action = (
        LogsheetAction.EXCHANGER_TO_SERVICE
        if status is EquipmentStatus.SERVICE
        else LogsheetAction.EXCHANGER_TO_STANDBY
    )
    recorder.log(
        action, unit.id, reason, operator_action, readings.dg_level, readings.avg_dm_level
    )
    return state


def goes_to_service_after_regeneration(
    state: SimulationState,
    unit: ExchangerUnit,
    readings: PlantReadings,
    control: ControlThresholds,
) -> bool:
    """Placement of a freshly regenerated bed, using the same bands as the rules."""
    if state.is_held(unit):
        return False
    in_service = state.count_in_service(unit.type)
    if in_service >= control.max_in_service:
        return False
    if unit.type is SAC:
        return (
            readings.dg_level < control.dg_sac_service_low_m
            and state.count_in_service(SBA) >= in_service + 1
        )
    if unit.type is SBA:
        return (
            readings.avg_dm_level < control.dm_sba_service_low_m
            and readings.dg_level > control.dg_sba_min_m
        )
    return in_service < state.count_in_service(SBA)


class SacToServiceRule(ControlRule):
    """DG low: bring cation beds on line, as long as anions can keep up."""

    @property
    def name(self) -> str:
        return "SAC to service"

    def applies(self, state: SimulationState, readings: PlantReadings) -> bool:
        return readings.dg_level < self.control.dg_sac_service_low_m

    def act(self, state, readings, recorder):
        c = self.control
        candidates = [
            u for u in state.with_status(SAC, EquipmentStatus.STANDBY)
            if not state.is_held(u) and cooldown_clear(u, state.current_time, c)
        ]
        in_service = state.count_in_service(SAC)
        sba = state.count_in_service(SBA)

        for unit in candidates:
            if in_service >= c.max_in_service:
                break
            if sba < in_service + 1:
                recorder.event(
                    EventKind.CHANGE_BLOCKED,
                    unit.id,
                    f"Cannot add {unit.id} to service - would violate anion >= cation "
                    f"balance (SBA: {sba}, SAC would be: {in_service + 1})",
                )
                break
            in_service += 1
            state = change_status(
                state,
                unit,
                EquipmentStatus.SERVICE,
                recorder,
                readings,
                f"{unit.id} put into service - DG below {c.dg_sac_service_low_m}m",
                f"DG level at {readings.dg_level:.2f}m (below {c.dg_sac_service_low_m}m "
                f"threshold). Putting cation exchanger into service to increase DG "
                f"inflow. Anion-cation balance maintained (SBA: {sba}, SAC: {in_service}).",
                f"Put {unit.id} into service",
                severity=Severity.WARNING,
            )
        return state


class SacToStandbyRule(ControlRule):
    """DG high: take the least-loaded cation beds off line."""

    @property
    def name(self) -> str:
        return "SAC to standby"

    def applies(self, state: SimulationState, readings: PlantReadings) -> bool:
        return readings.dg_level > self.control.dg_sac_standby_high_m

    def act(self, state, readings, recorder):
        c = self.control
        in_service = state.in_service(SAC)
        movable = [u for u in in_service if cooldown_clear(u, state.current_time, c)]
        count = len(in_service)

        while count > c.min_in_service and movable:
            unit = lowest_load(movable)
            movable.remove(unit)
            count -= 1
            state = change_status(
                state,
                unit,
                EquipmentStatus.STANDBY,
                recorder,
                readings,
                f"{unit.id} put on standby - DG above {c.dg_sac_standby_high_m}m",
                f"DG level at {readings.dg_level:.2f}m (above {c.dg_sac_standby_high_m}m "
                f"threshold). Putting cation exchanger on standby. Selected {unit.id} "
                f"(lowest load: {unit.current_load:.0f}).",
                f"Put {unit.id} on standby (lowest load)",
            )
        return state


class SbaToStandbyRule(ControlRule):
    """DM high, or DG critically low: take anion beds off line.

    Never drops below the number of cation beds in service.
    """

    @property
    def name(self) -> str:
        return "SBA to standby"

    def applies(self, state: SimulationState, readings: PlantReadings) -> bool:
        return (
            readings.avg_dm_level > self.control.dm_sba_standby_high_m
            or readings.dg_level < self.control.dg_sba_critical_m
        )

    def act(self, state, readings, recorder):
        c = self.control
        in_service = state.in_service(SBA)
        sac = state.count_in_service(SAC)
        minimum = max(c.min_in_service, sac)
        movable = [u for u in in_service if cooldown_clear(u, state.current_time, c)]
        count = len(in_service)

        if readings.dg_level < c.dg_sba_critical_m:
            trigger = (
                f"DG level CRITICAL at {readings.dg_level:.2f}m "
                f"(below {c.dg_sba_critical_m}m)"
            )
        else:
            trigger = (
                f"DM level at {readings.avg_dm_level:.2f}m "
                f"(above {c.dm_sba_standby_high_m}m)"
            )

        while count > minimum and movable:
            unit = lowest_load(movable)
            movable.remove(unit)
            count -= 1
            state = change_status(
                state,
                unit,
                EquipmentStatus.STANDBY,
                recorder,
                readings,
                f"{unit.id} put on standby - {trigger}",
                f"{trigger}. Putting anion exchanger on standby. Selected {unit.id} "
                f"(lowest load: {unit.current_load:.0f}). Anion-cation balance "
                f"maintained (SBA: {count}, SAC: {sac}).",
                f"Put {unit.id} on standby (lowest load)",
                severity=Severity.WARNING,
            )
        return state


class SbaToServiceRule(ControlRule):
    """DM low and DG healthy: bring anion beds on line."""

    @property
    def name(self) -> str:
        return "SBA to service"

    def applies(self, state: SimulationState, readings: PlantReadings) -> bool:
        return (
            readings.avg_dm_level < self.control.dm_sba_service_low_m
            and readings.dg_level > self.control.dg_sba_min_m
        )

    def act(self, state, readings, recorder):
        c = self.control
        candidates = [
            u for u in state.with_status(SBA, EquipmentStatus.STANDBY)
            if not state.is_held(u) and cooldown_clear(u, state.current_time, c)
        ]
        in_service = state.count_in_service(SBA)

        for unit in candidates:
            if in_service >= c.max_in_service:
                break
            in_service += 1
            state = change_status(
                state,
                unit,
                EquipmentStatus.SERVICE,
                recorder,
                readings,
                f"{unit.id} put into service - DM below {c.dm_sba_service_low_m}m, DG safe",
                f"DM level at {readings.avg_dm_level:.2f}m (below "
                f"{c.dm_sba_service_low_m}m) AND DG level at {readings.dg_level:.2f}m "
                f"(above {c.dg_sba_min_m}m). Putting anion exchanger into service to "
                f"increase DM production.",
                f"Put {unit.id} into service",
                severity=Severity.WARNING,
            )
        return state


def balance_streams(
    state: SimulationState, readings: PlantReadings, recorder: TickRecorder
) -> SimulationState:
    """Match MB to SBA, then cut SBA and SAC back to what downstream can take.

    These follow-on changes are forced: the cooldown does not apply.
    """
    sba = state.count_in_service(SBA)
    mb = state.count_in_service(MB)

    if mb < sba:
        for unit in state.with_status(MB, EquipmentStatus.STANDBY):
            if mb >= sba:
                break
            if state.is_held(unit):
                continue
            state = change_status(
                state,
                unit,
                EquipmentStatus.SERVICE,
                recorder,
                readings,
                f"{unit.id} put into service - matching SBA count",
                f"Matching MB count to SBA count. SBA in service: {sba}, MB was: {mb}. "
                f"Putting MB into service to maintain balance.",
                f"Put {unit.id} into service (matching SBA count)",
                forced=True,
            )
            mb += 1
    elif mb > sba:
        movable = state.in_service(MB)
        while mb > sba:
            unit = lowest_load(movable)
            movable.remove(unit)
            state = change_status(
                state,
                unit,
                EquipmentStatus.STANDBY,
                recorder,
                readings,
                f"{unit.id} put on standby - matching SBA count",
                f"Matching MB count to SBA count. SBA in service: {sba}, MB was: {mb}. "
                f"Selected {unit.id} (lowest load: {unit.current_load:.0f}) for standby.",
                f"Put {unit.id} on standby (matching SBA count, lowest load)",
                forced=True,
            )
            mb -= 1

    # No standby MB left: anions cannot run beyond the polishing capacity
    if sba > mb:
        movable = state.in_service(SBA)
        while sba > mb:
            unit = lowest_load(movable)
            movable.remove(unit)
            state = change_status(
                state,
                unit,
                EquipmentStatus.STANDBY,
                recorder,
                readings,
                f"{unit.id} put on standby - no mixed bed available",
                f"Only {mb} MB available for {sba} SBA in service. Selected "
                f"{unit.id} (lowest load: {unit.current_load:.0f}) for standby.",
                f"Put {unit.id} on standby (MB capacity)",
                severity=Severity.WARNING,
                forced=True,
            )
            sba -= 1

    sac = state.count_in_service(SAC)
    if sac > sba:
        movable = state.in_service(SAC)
        while sac > sba:
            unit = lowest_load(movable)
            movable.remove(unit)
            state = change_status(
                state,
                unit,
                EquipmentStatus.STANDBY,
                recorder,
                readings,
                f"{unit.id} put on standby - anion >= cation balance",
                f"SAC in service ({sac}) exceeds SBA in service ({sba}). Selected "
                f"{unit.id} (lowest load: {unit.current_load:.0f}) for standby.",
                f"Put {unit.id} on standby (anion-cation balance)",
                severity=Severity.WARNING,
                forced=True,
            )
            sac -= 1

    return state


class StreamBalanceRule(ControlRule):
    """MB count follows SBA count; anions never fall below cations."""

    @property
    def name(self) -> str:
        return "Stream balance"

    def applies(self, state: SimulationState, readings: PlantReadings) -> bool:
        sba = state.count_in_service(SBA)
        return (
            state.count_in_service(MB) != sba
            or state.count_in_service(SAC) > sba
        )

    def act(self, state, readings, recorder):
        return balance_streams(state, readings, recorder)
