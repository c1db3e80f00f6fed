"""Shift simulation driver.

Builds the initial plant state from a configuration, advances it one
minute at a time through the fixed component order

    integrate -> regeneration -> exhaustion -> policy -> transfer -> overflow

then raises tank level alarms and records a snapshot. A run is
deterministic: the same configuration and parameters always give the same
result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from demin_sim.controllers.policy import ControlPolicyEngine
from demin_sim.controllers.transfer import TransferController
from demin_sim.logger import get_logger
from demin_sim.models.config import SimulationConfig
from demin_sim.models.constants import (
    DEFAULT_PARAMETERS,
    SHIFT_INFO,
    PlantParameters,
    ShiftInfo,
)
from demin_sim.models.plant import FlowSnapshot, TickIntegrator, compute_flows
from demin_sim.models.plant_state import (
    EXCHANGER_TYPES,
    EquipmentStatus,
    ExchangerType,
    ExchangerUnit,
    RegenerationBay,
    RegenerationPhase,
    SimulationState,
    Tank,
    TankStatus,
    TankType,
    TransferOperation,
)
from demin_sim.recording.events import LogsheetEntry, SimulationEvent, TickRecorder
from demin_sim.regeneration.state_machine import RegenerationStateMachine
from demin_sim.safety.alarms import LevelAlarm
from demin_sim.safety.exhaustion import ExhaustionDetector
from demin_sim.safety.overflow import OverflowGuard
from demin_sim.scoring.summary import SimulationSummary, summarize


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExchangerSnapshot:
    id: str
    type: ExchangerType
    status: EquipmentStatus
    current_load: float
    load_percentage: float
    flow_rate: float


@dataclass(frozen=True)
class TankSnapshot:
    id: str
    type: TankType
    level: float
    volume: float            # m3
    status: TankStatus
    level_percentage: float


@dataclass(frozen=True)
class RegenerationDetail:
    exchanger_id: str
    exchanger_type: ExchangerType
    phase: RegenerationPhase
    elapsed_minutes: int
    remaining_minutes: int


@dataclass(frozen=True)
class RegenerationSnapshot:
    active: Tuple[str, ...]
    queued: Tuple[str, ...]
    phases: Dict[str, RegenerationPhase]
    details: Tuple[RegenerationDetail, ...]


@dataclass(frozen=True)
class TimelineSnapshot:
    timestamp: int
    exchangers: Dict[str, ExchangerSnapshot]
    tanks: Dict[str, TankSnapshot]
    flows: FlowSnapshot
    regeneration: RegenerationSnapshot
    transfer: TransferOperation
    stream_out_of_service: Optional[str]
    events: Tuple[SimulationEvent, ...]

    @property
    def dg_level(self) -> float:
        for tank in self.tanks.values():
            if tank.type is TankType.DG:
                return tank.level
        return 0.0

    def count_in_service(self, exchanger_type: ExchangerType) -> int:
        return sum(
            1 for e in self.exchangers.values()
            if e.type is exchanger_type and e.status is EquipmentStatus.SERVICE
        )


@dataclass(frozen=True)
class SimulationResult:
    config: SimulationConfig
    timeline: Tuple[TimelineSnapshot, ...]
    all_events: Tuple[SimulationEvent, ...]
    logsheet: Tuple[LogsheetEntry, ...]
    summary: SimulationSummary
    shift_info: ShiftInfo


def _tank_snapshot(tank: Tank, params: PlantParameters) -> TankSnapshot:
    geo = params.tanks
    if tank.type is TankType.DG:
        volume = tank.level * geo.dg_area_m2
        low, high = geo.dg_min_level_m, geo.dg_overflow_level_m
    else:
        volume = tank.level * geo.dm_volume_per_meter
        low, high = geo.dm_min_level_m, geo.dm_overflow_level_m
    return TankSnapshot(
        id=tank.id,
        type=tank.type,
        level=tank.level,
        volume=volume,
        status=tank.status,
        # 0% at the low alarm, 100% at overflow
        level_percentage=(tank.level - low) / (high - low) * 100.0,
    )


def _regeneration_snapshot(state: SimulationState) -> RegenerationSnapshot:
    t = state.current_time
    cycles = [b.active for b in state.bays if b.active is not None]
    return RegenerationSnapshot(
        active=tuple(c.exchanger_id for c in cycles),
        queued=tuple(uid for b in state.bays for uid in b.queue),
        phases={c.exchanger_id: c.phase for c in cycles},
        details=tuple(
            RegenerationDetail(
                exchanger_id=c.exchanger_id,
                exchanger_type=c.exchanger_type,
                phase=c.phase,
                elapsed_minutes=c.elapsed(t),
                remaining_minutes=c.remaining(t),
            )
            for c in cycles
        ),
    )


def build_snapshot(
    state: SimulationState,
    flows: FlowSnapshot,
    events: List[SimulationEvent],
    params: PlantParameters = DEFAULT_PARAMETERS,
) -> TimelineSnapshot:
    """Freeze the end-of-tick state into a timeline row."""
    exchangers = {
        e.id: ExchangerSnapshot(
            id=e.id,
            type=e.type,
            status=e.status,
            current_load=e.current_load,
            load_percentage=e.load_percentage,
            flow_rate=e.flow_rate,
        )
        for e in state.exchangers
    }
    tanks = {
        t.id: _tank_snapshot(t, params)
        for t in state.dg_tanks + state.dm_tanks
    }
    return TimelineSnapshot(
        timestamp=state.current_time,
        exchangers=exchangers,
        tanks=tanks,
        flows=flows,
        regeneration=_regeneration_snapshot(state),
        transfer=state.transfer,
        stream_out_of_service=state.stream_out_of_service,
        events=tuple(events),
    )


# ---------------------------------------------------------------------------
# Initial state
# ---------------------------------------------------------------------------

def _exchanger_from_config(e, exchanger_type: ExchangerType) -> ExchangerUnit:
    return ExchangerUnit(
        id=e.id,
        type=exchanger_type,
        status=e.initial_status,
        current_load=e.initial_load,
        obr_limit=e.obr_limit,
        flow_rate=e.flow_rate,
        last_status_change=0,
    )


def initialize(
    config: SimulationConfig, params: PlantParameters = DEFAULT_PARAMETERS
) -> SimulationState:
    """Plant state at t=0.

    Both DG tanks start at the first configured DG level because the
    degasser is one hydraulic volume.
    """
    exchangers = tuple(
        _exchanger_from_config(e, t)
        for t in EXCHANGER_TYPES
        for e in config.exchangers_of(t)
    )
    dg_level = config.dg_tanks[0].initial_level if config.dg_tanks else 0.0
    dg_tanks = tuple(
        Tank(id=t.id, type=TankType.DG, level=dg_level) for t in config.dg_tanks
    )
    dm_tanks = tuple(
        Tank(id=t.id, type=TankType.DM, level=t.initial_level, status=t.initial_status)
        for t in config.dm_tanks
    )
    return SimulationState(
        current_time=0,
        exchangers=exchangers,
        dg_tanks=dg_tanks,
        dm_tanks=dm_tanks,
        supply_demand=config.supply.total,
        bays=tuple(RegenerationBay(exchanger_type=t) for t in EXCHANGER_TYPES),
    )


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

class SimulationEngine:
    """Runs one shift for a fixed set of plant parameters."""

    def __init__(self, params: PlantParameters = DEFAULT_PARAMETERS):
        self.params = params
        self.integrator = TickIntegrator(params)
        self.regeneration = RegenerationStateMachine(params)
        self.exhaustion = ExhaustionDetector(params)
        self.policy = ControlPolicyEngine(params)
        self.transfer = TransferController(params)
        self.overflow = OverflowGuard(params)
        self.alarms = LevelAlarm(params)
        self.logger = get_logger()

    def initialize(self, config: SimulationConfig) -> SimulationState:
        return initialize(config, self.params)

    def tick(
        self, state: SimulationState, shift_start_hour: int = 0
    ) -> Tuple[SimulationState, TimelineSnapshot, TickRecorder]:
        """Advance one tick and return the new state, its snapshot and records."""
        start = state
        state, flows = self.integrator.step(state, self.params.tick_minutes)
        recorder = TickRecorder(state.current_time, shift_start_hour)

        state = self.regeneration.step(state, recorder)
        state = self.exhaustion.step(state, recorder)
        state = self.policy.step(state, recorder)
        state = self.transfer.step(state, recorder)
        state = self.overflow.step(state, recorder)
        self.alarms.check(start, state, recorder)

        snapshot = build_snapshot(state, flows, recorder.events, self.params)
        return state, snapshot, recorder

    def run(self, config: SimulationConfig) -> SimulationResult:
        shift_info = SHIFT_INFO[config.shift]
        state = self.initialize(config)
        self.logger.info(
            "Starting %s: %d minutes, supply %.1f m3/h",
            shift_info.name,
            self.params.duration_minutes,
            state.supply_demand,
        )

        timeline = [build_snapshot(state, compute_flows(state, 0, self.params), [], self.params)]
        events: List[SimulationEvent] = []
        logsheet: List[LogsheetEntry] = []

        n_ticks = self.params.duration_minutes // self.params.tick_minutes
        for _ in range(n_ticks):
            state, snapshot, recorder = self.tick(state, shift_info.start_hour)
            timeline.append(snapshot)
            events.extend(recorder.events)
            logsheet.extend(recorder.logsheet)

        summary = summarize(timeline, events, self.params.tick_minutes)
        self.logger.info(
            "Finished %s: %d events, %d logsheet entries, %d regenerations completed",
            shift_info.name,
            len(events),
            len(logsheet),
            summary.regenerations_completed,
        )
        return SimulationResult(
            config=config,
            timeline=tuple(timeline),
            all_events=tuple(events),
            logsheet=tuple(logsheet),
            summary=summary,
            shift_info=shift_info,
        )


def run(
    config: SimulationConfig, params: PlantParameters = DEFAULT_PARAMETERS
) -> SimulationResult:
    """Simulate one full shift."""
    return SimulationEngine(params).run(config)
