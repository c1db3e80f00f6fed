"""Mass-balance integration of tank levels and exchanger bed loads.

One call to ``TickIntegrator.step`` advances the continuous quantities by a
single time step. The step is a pure function of the incoming state: it
builds a new state and reports the flows it integrated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from demin_sim.models.constants import PlantParameters
from demin_sim.models.plant_state import (
    EquipmentStatus,
    ExchangerType,
    SimulationState,
    Tank,
    TankStatus,
    TransferMode,
)
from demin_sim.regeneration.state_machine import regeneration_draw


@dataclass(frozen=True)
class FlowSnapshot:
    """Flows integrated over one tick (all m3/h)."""

    sac_total_output: float
    sba_total_output: float
    mb_total_output: float
    total_supply: float
    dg_net_flow: float
    dm_net_flow: float
    dg_regen_consumption: float
    dm_regen_consumption: float
    transfer_rate: float = 0.0


def exchanger_output(state: SimulationState, exchanger_type: ExchangerType) -> float:
    return sum(e.flow_rate for e in state.in_service(exchanger_type))


def compute_flows(
    state: SimulationState, time: int, params: PlantParameters
) -> FlowSnapshot:
    """Flows the plant runs at when integrating the minute ending at ``time``."""
    sac = exchanger_output(state, ExchangerType.SAC)
    sba = exchanger_output(state, ExchangerType.SBA)
    mb = exchanger_output(state, ExchangerType.MB)

    dg_regen = 0.0
    dm_regen = 0.0
    for bay in state.bays:
        dg, dm = regeneration_draw(bay.active, time, params)
        dg_regen += dg
        dm_regen += dm

    transfer = state.transfer
    fill = transfer.rate if transfer.mode is TransferMode.FILL_STANDBY else 0.0
    draw = transfer.rate if transfer.mode is TransferMode.DRAW_FROM_STANDBY else 0.0

    return FlowSnapshot(
        sac_total_output=sac,
        sba_total_output=sba,
        mb_total_output=mb,
        total_supply=state.supply_demand,
        dg_net_flow=sac - sba - dg_regen,
        dm_net_flow=(mb - fill) - state.supply_demand - dm_regen + draw,
        dg_regen_consumption=dg_regen,
        dm_regen_consumption=dm_regen,
        transfer_rate=transfer.rate if transfer.active else 0.0,
    )


class TickIntegrator:
    """Advances tank levels and bed loads by one time step."""

    def __init__(self, params: PlantParameters):
        self.params = params

    def step(
        self, state: SimulationState, delta_minutes: int
    ) -> Tuple[SimulationState, FlowSnapshot]:
        time = state.current_time + delta_minutes
        flows = compute_flows(state, time, self.params)
        hours = delta_minutes / 60.0
        geo = self.params.tanks

        # --- Degasser: one shared volume exposed as two tanks ---
        dg_level = float(
            np.clip(
                state.dg_level + flows.dg_net_flow * hours / geo.dg_combined_area_m2,
                0.0,
                geo.dg_height_m,
            )
        )
        dg_tanks = tuple(replace(t, level=dg_level) for t in state.dg_tanks)

        # --- DM storage: net flow shared by the service tanks ---
        n_service = len(state.service_dm_tanks) or 1
        per_tank_m = flows.dm_net_flow * hours / n_service / geo.dm_volume_per_meter
        transfer = state.transfer
        transfer_m = transfer.rate * hours / geo.dm_volume_per_meter

        def next_dm(tank: Tank) -> Tank:
            if tank.status is TankStatus.SERVICE:
                level = tank.level + per_tank_m
            elif (
                transfer.mode is TransferMode.DRAW_FROM_STANDBY
                and tank.id == transfer.source_id
            ):
                level = tank.level - transfer_m
            elif (
                transfer.mode is TransferMode.FILL_STANDBY
                and tank.id == transfer.target_id
            ):
                level = tank.level + transfer_m
            else:
                return tank
            return replace(tank, level=float(np.clip(level, 0.0, geo.dm_height_m)))

        dm_tanks = tuple(next_dm(t) for t in state.dm_tanks)

        # --- Bed loads: only beds in service accumulate throughput ---
        exchangers = tuple(
            replace(e, current_load=e.current_load + e.flow_rate * hours)
            if e.status is EquipmentStatus.SERVICE
            else e
            for e in state.exchangers
        )

        next_state = replace(
            state,
            current_time=time,
            exchangers=exchangers,
            dg_tanks=dg_tanks,
            dm_tanks=dm_tanks,
        )
        return next_state, flows
